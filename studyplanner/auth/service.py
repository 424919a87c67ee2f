from functools import lru_cache
from typing import Annotated
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
import logging

from ..config import get_settings, Settings
from ..database.core import DbSession
from ..entities.user import User
from ..exceptions import AuthenticationError, ConflictError, StorageUnavailable
from . import models
from .refresh_token_service import RefreshTokenAuthority, SqlAlchemyTokenStore
from .tokens import AccessTokenIssuer

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache(maxsize=8)
def get_password_context(rounds: int = 12) -> CryptContext:
    return CryptContext(schemes=['bcrypt'], deprecated='auto', bcrypt__rounds=rounds)


def verify_password(plain_password: str, hashed_password: str, rounds: int = 12) -> bool:
    return get_password_context(rounds).verify(plain_password, hashed_password)


def get_password_hash(password: str, rounds: int = 12) -> str:
    return get_password_context(rounds).hash(password)


def get_access_token_issuer(settings: Annotated[Settings, Depends(get_settings)]) -> AccessTokenIssuer:
    return AccessTokenIssuer(settings.auth)


def get_token_authority(
    db: DbSession,
    settings: Annotated[Settings, Depends(get_settings)],
) -> RefreshTokenAuthority:
    config = settings.auth
    return RefreshTokenAuthority(
        store=SqlAlchemyTokenStore(db),
        config=config,
        access_tokens=AccessTokenIssuer(config),
    )


TokenAuthority = Annotated[RefreshTokenAuthority, Depends(get_token_authority)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    issuer: Annotated[AccessTokenIssuer, Depends(get_access_token_issuer)],
) -> models.TokenData:
    """Resolve the caller from an ``Authorization: Bearer`` access token."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Missing bearer token")
    return models.TokenData(user_id=issuer.verify(credentials.credentials))


CurrentUser = Annotated[models.TokenData, Depends(get_current_user)]


def authenticate_user(email: str, password: str, db: Session, rounds: int = 12) -> User | None:
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash, rounds):
        logger.warning(f"Failed authentication attempt for email: {email}")
        return None
    return user


def create_session(user: User, authority: RefreshTokenAuthority) -> models.AuthResponse:
    """Start a new session chain: one access token and a fresh refresh token."""
    return models.AuthResponse(
        user=models.UserResponse.model_validate(user),
        access_token=authority.access_tokens.issue(user.id),
        refresh_token=authority.issue(user.id),
    )


def register_user(
    db: Session,
    register_user_request: models.RegisterUserRequest,
    authority: RefreshTokenAuthority,
    settings: Settings,
) -> models.AuthResponse:
    """Create the user if the email is free, then log them in."""
    existing_user = db.execute(
        select(User.id).where(User.email == register_user_request.email)
    ).first()
    if existing_user:
        raise ConflictError("A user with this email already exists.", error="email_taken")

    user = User(
        email=register_user_request.email,
        display_name=register_user_request.display_name,
        password_hash=get_password_hash(register_user_request.password, settings.password_hash_rounds),
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        raise ConflictError("A user with this email already exists.", error="email_taken")
    except SQLAlchemyError as e:
        db.rollback()  # Rollback on error to prevent partial data
        logger.error(f"Failed to register user: {register_user_request.email}. Error: {str(e)}")
        raise StorageUnavailable("Registration failed") from e

    logger.info(f"Registered new user: {user.id}")
    return create_session(user, authority)


def login_user(
    db: Session,
    login_request: models.LoginRequest,
    authority: RefreshTokenAuthority,
    settings: Settings,
) -> models.AuthResponse:
    user = authenticate_user(login_request.email, login_request.password, db, settings.password_hash_rounds)
    if not user:
        raise AuthenticationError("Invalid credentials", error="invalid_credentials")
    return create_session(user, authority)


def refresh_token_pair(refresh_token: str, authority: RefreshTokenAuthority) -> models.TokenPair:
    """Rotate the presented refresh token. Errors propagate to the caller."""
    rotated = authority.rotate(refresh_token)
    return models.TokenPair(access_token=rotated.access_token, refresh_token=rotated.refresh_token)
