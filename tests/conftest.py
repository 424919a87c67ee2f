"""Pytest configuration.

Settings are read from the environment when ``studyplanner`` is first
imported, so the test environment is set up before any application import.
Every test gets a fresh in-memory SQLite database.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-with-at-least-32-chars"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["ACCESS_TOKEN_TTL"] = "15m"
os.environ["REFRESH_TOKEN_EXPIRE_DAYS"] = "30"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studyplanner.config import AuthSettings
from studyplanner.database.core import get_db
from studyplanner.database.init_db import init_database
from studyplanner.main import app
from studyplanner.rate_limiter import limiter


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    assert init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def auth_config():
    return AuthSettings(
        jwt_secret_key="unit-test-secret-key-with-at-least-32-chars",
        access_token_ttl=timedelta(minutes=15),
        refresh_token_expire_days=30,
    )


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    limiter.enabled = True


@pytest.fixture
def register(client):
    """Register a user through the API and return the JSON body."""
    def _register(email="ada@example.com", password="correct-horse-battery", display_name="Ada"):
        response = client.post(
            "/auth/register",
            json={"email": email, "password": password, "displayName": display_name},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def auth_headers(register):
    """Bearer headers for a freshly registered user."""
    def _headers(email="ada@example.com"):
        body = register(email=email)
        return {"Authorization": f"Bearer {body['accessToken']}"}

    return _headers
