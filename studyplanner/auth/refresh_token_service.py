"""
Refresh token issuance, rotation, revocation and reuse detection.

State lives entirely in the token store. A refresh token row moves from
active to revoked exactly once; the revoke is always a conditional write so
two requests racing on the same token cannot both rotate it.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol
from uuid import UUID
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import AuthSettings
from ..entities.refresh_token import RefreshToken
from ..exceptions import (
    InvalidRefreshToken,
    RefreshTokenExpired,
    RefreshTokenReuseDetected,
    StorageUnavailable,
)
from .tokens import AccessTokenIssuer, Clock, SecureTokenGenerator, utc_now

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Some backends (SQLite) hand back naive datetimes; they are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class RefreshTokenRecord:
    id: UUID
    user_id: UUID
    token_hash: str
    expires_at: datetime
    revoked_at: Optional[datetime]
    created_at: datetime

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    @classmethod
    def from_entity(cls, entity: RefreshToken) -> "RefreshTokenRecord":
        return cls(
            id=entity.id,
            user_id=entity.user_id,
            token_hash=entity.token_hash,
            expires_at=as_utc(entity.expires_at),
            revoked_at=as_utc(entity.revoked_at) if entity.revoked_at else None,
            created_at=as_utc(entity.created_at),
        )


@dataclass(frozen=True)
class RotatedTokens:
    user_id: UUID
    access_token: str
    refresh_token: str


class TokenGenerator(Protocol):
    def generate(self) -> str: ...

    def hash(self, token: str) -> str: ...


class TokenStore(Protocol):
    def find(self, token_hash: str) -> Optional[RefreshTokenRecord]: ...

    def insert(self, user_id: UUID, token_hash: str, expires_at: datetime) -> RefreshTokenRecord: ...

    def conditional_revoke(self, token_hash: str, at: datetime) -> bool: ...

    def revoke_all_for_user(self, user_id: UUID, at: datetime) -> int: ...


class SqlAlchemyTokenStore:
    """Token store on a SQLAlchemy session. Every write commits on its own."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, token_hash: str) -> Optional[RefreshTokenRecord]:
        try:
            entity = self.db.execute(
                select(RefreshToken).where(RefreshToken.token_hash == token_hash)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            self._fail("find", e)
        return RefreshTokenRecord.from_entity(entity) if entity else None

    def insert(self, user_id: UUID, token_hash: str, expires_at: datetime) -> RefreshTokenRecord:
        try:
            entity = RefreshToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
            self.db.add(entity)
            self.db.commit()
            self.db.refresh(entity)
        except SQLAlchemyError as e:
            self._fail("insert", e)
        return RefreshTokenRecord.from_entity(entity)

    def conditional_revoke(self, token_hash: str, at: datetime) -> bool:
        """Single UPDATE guarded by ``revoked_at IS NULL``; True only for the caller that flipped it."""
        try:
            result = self.db.execute(
                update(RefreshToken)
                .where(RefreshToken.token_hash == token_hash, RefreshToken.revoked_at.is_(None))
                .values(revoked_at=at)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("conditional_revoke", e)
        return result.rowcount == 1

    def revoke_all_for_user(self, user_id: UUID, at: datetime) -> int:
        try:
            result = self.db.execute(
                update(RefreshToken)
                .where(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
                .values(revoked_at=at)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("revoke_all_for_user", e)
        return result.rowcount

    def _fail(self, operation: str, error: SQLAlchemyError):
        self.db.rollback()
        logger.error(f"Refresh token store {operation} failed: {error}")
        raise StorageUnavailable(f"Token store {operation} failed") from error


class RefreshTokenAuthority:
    """Issues, rotates and revokes refresh tokens and detects their reuse."""

    def __init__(
        self,
        store: TokenStore,
        config: AuthSettings,
        access_tokens: AccessTokenIssuer,
        generator: TokenGenerator | None = None,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.config = config
        self.access_tokens = access_tokens
        self.generator = generator or SecureTokenGenerator()
        self.clock = clock

    @property
    def ttl(self) -> timedelta:
        return timedelta(days=self.config.refresh_token_expire_days)

    def hash(self, plaintext: str) -> str:
        return self.generator.hash(plaintext)

    def issue(self, user_id: UUID) -> str:
        """Persist a new refresh token for ``user_id`` and return its plaintext.

        The plaintext leaves this method once and is never stored or logged.
        """
        plaintext = self.generator.generate()
        record = self.store.insert(user_id, self.hash(plaintext), self.clock() + self.ttl)
        logger.debug(f"Issued refresh token {record.id} for user {user_id}")
        return plaintext

    def rotate(self, plaintext: str) -> RotatedTokens:
        """Exchange a refresh token for a new access token and refresh token.

        Raises:
            InvalidRefreshToken: no row matches the token.
            RefreshTokenReuseDetected: the token was already revoked. Every
                token of the user is revoked before this is raised.
            RefreshTokenExpired: the token outlived its TTL. It is revoked.
            StorageUnavailable: the store failed. If this happens after the
                old token was revoked, no successor exists and the client has
                to log in again.
        """
        token_hash = self.hash(plaintext)
        record = self.store.find(token_hash)
        now = self.clock()

        if record is None:
            logger.info("Refresh rejected: unknown token")
            raise InvalidRefreshToken("Refresh token not found")

        if record.is_revoked:
            self._revoke_lineage(record, now)

        if record.is_expired(now):
            self.store.conditional_revoke(token_hash, now)
            logger.info(f"Refresh rejected: token {record.id} of user {record.user_id} expired")
            raise RefreshTokenExpired("Refresh token expired", user_id=record.user_id)

        if not self.store.conditional_revoke(token_hash, now):
            # Another request revoked it between our read and our write
            self._revoke_lineage(record, now)

        successor = self.issue(record.user_id)
        return RotatedTokens(
            user_id=record.user_id,
            access_token=self.access_tokens.issue(record.user_id),
            refresh_token=successor,
        )

    def revoke(self, plaintext: str) -> None:
        """Logout: revoke the presented token. Unknown or already revoked tokens are ignored."""
        self.revoke_hash(self.hash(plaintext), self.clock())

    def revoke_hash(self, token_hash: str, at: datetime) -> bool:
        revoked = self.store.conditional_revoke(token_hash, at)
        if not revoked:
            logger.debug("Revoke was a no-op: token absent or already revoked")
        return revoked

    def revoke_all(self, user_id: UUID) -> int:
        """Revoke every active token of the user ("log out everywhere")."""
        count = self.store.revoke_all_for_user(user_id, self.clock())
        logger.info(f"Revoked {count} refresh token(s) for user {user_id}")
        return count

    def _revoke_lineage(self, record: RefreshTokenRecord, now: datetime):
        count = self.store.revoke_all_for_user(record.user_id, now)
        logger.critical(
            f"SECURITY: refresh token reuse detected for user {record.user_id} "
            f"(token {record.id}); revoked {count} active token(s)"
        )
        raise RefreshTokenReuseDetected("Refresh token reuse detected", user_id=record.user_id)
