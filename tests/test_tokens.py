"""Tests for the token primitives: opaque refresh values and JWT access tokens."""
import hashlib
from datetime import timedelta
from uuid import uuid4

import jwt
import pytest
from freezegun import freeze_time

from studyplanner.auth.tokens import AccessTokenIssuer, SecureTokenGenerator
from studyplanner.config import AuthSettings
from studyplanner.exceptions import AuthenticationError


class TestSecureTokenGenerator:

    def test_generate_is_urlsafe_with_256_bits(self):
        token = SecureTokenGenerator().generate()

        # 32 bytes base64-encoded is 43 characters
        assert len(token) >= 43
        assert all(c.isalnum() or c in "-_" for c in token)

    def test_generate_is_unique(self):
        generator = SecureTokenGenerator()

        assert len({generator.generate() for _ in range(50)}) == 50

    def test_hash_is_deterministic_sha256_hex(self):
        generator = SecureTokenGenerator()

        digest = generator.hash("some-token")

        assert digest == hashlib.sha256(b"some-token").hexdigest()
        assert generator.hash("some-token") == digest
        assert len(digest) == 64


class TestAccessTokenIssuer:

    def test_issue_and_verify_round_trip(self, auth_config):
        issuer = AccessTokenIssuer(auth_config)
        user_id = uuid4()

        assert issuer.verify(issuer.issue(user_id)) == user_id

    def test_claims(self, auth_config):
        user_id = uuid4()
        with freeze_time("2024-01-01 12:00:00"):
            token = AccessTokenIssuer(auth_config).issue(user_id)
            payload = jwt.decode(token, auth_config.jwt_secret_key, algorithms=["HS256"])

        assert payload["sub"] == str(user_id)
        assert payload["type"] == "access"
        assert payload["exp"] - payload["iat"] == 15 * 60

    def test_expired_token_is_rejected(self, auth_config):
        issuer = AccessTokenIssuer(auth_config)
        with freeze_time("2024-01-01 12:00:00") as frozen:
            token = issuer.issue(uuid4())
            frozen.tick(timedelta(minutes=16))

            with pytest.raises(AuthenticationError):
                issuer.verify(token)

    def test_token_signed_with_other_secret_is_rejected(self, auth_config):
        other = AuthSettings(jwt_secret_key="another-secret-key-that-is-32-chars-long!")
        token = AccessTokenIssuer(other).issue(uuid4())

        with pytest.raises(AuthenticationError):
            AccessTokenIssuer(auth_config).verify(token)

    def test_non_access_token_is_rejected(self, auth_config):
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "refresh"},
            auth_config.jwt_secret_key,
            algorithm="HS256",
        )

        with pytest.raises(AuthenticationError):
            AccessTokenIssuer(auth_config).verify(token)

    def test_garbage_is_rejected(self, auth_config):
        with pytest.raises(AuthenticationError):
            AccessTokenIssuer(auth_config).verify("not-a-jwt")
