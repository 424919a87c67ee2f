"""In-memory collaborators for exercising the refresh token authority."""
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from studyplanner.auth.refresh_token_service import RefreshTokenRecord
from studyplanner.exceptions import StorageUnavailable


class MutableClock:
    def __init__(self, start=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class CountingTokenGenerator:
    """Predictable tokens: token-1, token-2, ..."""

    def __init__(self):
        self.count = 0

    def generate(self):
        self.count += 1
        return f"token-{self.count}"

    def hash(self, token):
        return f"hash:{token}"


class InMemoryTokenStore:
    def __init__(self, clock):
        self.clock = clock
        self.rows = {}

    def find(self, token_hash):
        return self.rows.get(token_hash)

    def insert(self, user_id, token_hash, expires_at):
        if token_hash in self.rows:
            raise StorageUnavailable("duplicate token hash")
        record = RefreshTokenRecord(
            id=uuid4(),
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at,
            revoked_at=None,
            created_at=self.clock(),
        )
        self.rows[token_hash] = record
        return record

    def conditional_revoke(self, token_hash, at):
        record = self.rows.get(token_hash)
        if record is None or record.revoked_at is not None:
            return False
        self.rows[token_hash] = replace(record, revoked_at=at)
        return True

    def revoke_all_for_user(self, user_id, at):
        count = 0
        for token_hash, record in list(self.rows.items()):
            if record.user_id == user_id and record.revoked_at is None:
                self.rows[token_hash] = replace(record, revoked_at=at)
                count += 1
        return count

    def for_user(self, user_id):
        return [r for r in self.rows.values() if r.user_id == user_id]

    def active_for_user(self, user_id):
        return [r for r in self.for_user(user_id) if r.revoked_at is None]


class StaleReadStore:
    """Wraps a store and answers ``find`` from a snapshot taken earlier.

    Reproduces the window where two requests both read a token as active
    before either of them has written the revocation.
    """

    def __init__(self, store, snapshot):
        self.store = store
        self.snapshot = snapshot

    def find(self, token_hash):
        return self.snapshot

    def __getattr__(self, name):
        return getattr(self.store, name)


class FailingInsertStore:
    """Every insert fails as if the database went away."""

    def __init__(self, store):
        self.store = store

    def insert(self, user_id, token_hash, expires_at):
        raise StorageUnavailable("database unavailable")

    def __getattr__(self, name):
        return getattr(self.store, name)
