import hashlib
import logging
import secrets
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID
import jwt
from jwt import PyJWTError

from ..config import AuthSettings
from ..exceptions import AuthenticationError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SecureTokenGenerator:
    """Opaque refresh token values and their one-way digests."""

    def __init__(self, nbytes: int = 32):
        self.nbytes = nbytes

    def generate(self) -> str:
        """Generate a cryptographically secure, URL-safe random token"""
        return secrets.token_urlsafe(self.nbytes)

    def hash(self, token: str) -> str:
        """SHA-256 hex digest; deterministic so it can be used as a lookup key"""
        return hashlib.sha256(token.encode("utf-8")).hexdigest()


class AccessTokenIssuer:
    """Mints and verifies short-lived JWT access tokens. Nothing is persisted."""

    def __init__(self, config: AuthSettings, clock: Clock = utc_now):
        self._config = config
        self._clock = clock

    def issue(self, user_id: UUID) -> str:
        now = self._clock()
        payload = {
            'sub': str(user_id),
            'type': 'access',
            'iat': now,
            'exp': now + self._config.access_token_ttl,
        }
        return jwt.encode(payload, self._config.jwt_secret_key, algorithm=self._config.algorithm)

    def verify(self, token: str) -> UUID:
        """Return the user id carried by a valid access token."""
        try:
            payload = jwt.decode(token, self._config.jwt_secret_key, algorithms=[self._config.algorithm])
        except PyJWTError as e:
            logger.warning(f"Access token verification failed: {str(e)}")
            raise AuthenticationError("Invalid token")

        if payload.get('type') != 'access':
            raise AuthenticationError("Invalid token type")

        try:
            return UUID(payload.get('sub') or '')
        except ValueError:
            raise AuthenticationError("Invalid token subject")
