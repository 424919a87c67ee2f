"""Unit tests for RefreshTokenAuthority.

Runs against the in-memory store with a deterministic generator and a
controllable clock, so every state transition can be inspected directly.
"""
from datetime import timedelta
from uuid import uuid4

import pytest

from studyplanner.auth.refresh_token_service import RefreshTokenAuthority
from studyplanner.auth.tokens import AccessTokenIssuer
from studyplanner.exceptions import (
    InvalidRefreshToken,
    RefreshTokenError,
    RefreshTokenExpired,
    RefreshTokenReuseDetected,
    StorageUnavailable,
)
from tests.fakes import (
    CountingTokenGenerator,
    FailingInsertStore,
    InMemoryTokenStore,
    MutableClock,
    StaleReadStore,
)


@pytest.fixture
def clock():
    return MutableClock()


@pytest.fixture
def store(clock):
    return InMemoryTokenStore(clock)


@pytest.fixture
def generator():
    return CountingTokenGenerator()


@pytest.fixture
def authority(store, auth_config, generator, clock):
    return RefreshTokenAuthority(
        store=store,
        config=auth_config,
        access_tokens=AccessTokenIssuer(auth_config),
        generator=generator,
        clock=clock,
    )


@pytest.fixture
def user_id():
    return uuid4()


class TestIssue:

    def test_issue_persists_hash_only(self, authority, store, user_id):
        token = authority.issue(user_id)

        record = store.find(f"hash:{token}")
        assert record is not None
        assert record.user_id == user_id
        assert record.revoked_at is None
        assert all(r.token_hash != token for r in store.rows.values())

    def test_issue_sets_expiry_from_configured_ttl(self, authority, store, clock, user_id):
        token = authority.issue(user_id)

        record = store.find(f"hash:{token}")
        assert record.expires_at == clock.now + timedelta(days=30)

    def test_issue_returns_distinct_tokens(self, authority, user_id):
        assert authority.issue(user_id) != authority.issue(user_id)


class TestRotate:

    def test_rotate_after_issue_succeeds_with_new_token(self, authority, store, user_id):
        token = authority.issue(user_id)

        rotated = authority.rotate(token)

        assert rotated.user_id == user_id
        assert rotated.refresh_token != token
        assert store.find(f"hash:{token}").revoked_at is not None
        assert store.find(f"hash:{rotated.refresh_token}").revoked_at is None

    def test_rotate_mints_access_token_for_owner(self, authority, auth_config, user_id):
        rotated = authority.rotate(authority.issue(user_id))

        issuer = AccessTokenIssuer(auth_config)
        assert issuer.verify(rotated.access_token) == user_id

    def test_unknown_token_is_invalid_without_state_change(self, authority, store, user_id):
        authority.issue(user_id)
        before = dict(store.rows)

        with pytest.raises(InvalidRefreshToken):
            authority.rotate("never-issued")

        assert store.rows == before

    def test_second_rotation_of_same_token_is_reuse(self, authority, user_id):
        token = authority.issue(user_id)
        authority.rotate(token)

        with pytest.raises(RefreshTokenReuseDetected) as exc_info:
            authority.rotate(token)

        assert exc_info.value.user_id == user_id

    def test_reuse_revokes_every_token_of_the_user(self, authority, store, user_id):
        t1 = authority.issue(user_id)
        other_session = authority.issue(user_id)
        t2 = authority.rotate(t1).refresh_token

        with pytest.raises(RefreshTokenReuseDetected):
            authority.rotate(t1)

        assert store.active_for_user(user_id) == []
        for token in (t2, other_session):
            with pytest.raises(RefreshTokenError):
                authority.rotate(token)

    def test_reuse_leaves_other_users_alone(self, authority, store, user_id):
        bystander = uuid4()
        bystander_token = authority.issue(bystander)
        token = authority.issue(user_id)
        authority.rotate(token)

        with pytest.raises(RefreshTokenReuseDetected):
            authority.rotate(token)

        assert len(store.active_for_user(bystander)) == 1
        authority.rotate(bystander_token)

    def test_replayed_predecessor_kills_successor(self, authority, user_id):
        t1 = authority.issue(user_id)
        t2 = authority.rotate(t1).refresh_token

        with pytest.raises(RefreshTokenReuseDetected):
            authority.rotate(t1)
        with pytest.raises(RefreshTokenReuseDetected):
            authority.rotate(t2)

    def test_expired_token_is_rejected_and_revoked(self, authority, store, clock, user_id):
        token = authority.issue(user_id)
        clock.advance(days=31)

        with pytest.raises(RefreshTokenExpired):
            authority.rotate(token)

        assert store.find(f"hash:{token}").revoked_at == clock.now

    def test_token_expires_exactly_at_expiry(self, authority, clock, user_id):
        token = authority.issue(user_id)
        clock.advance(days=30)

        with pytest.raises(RefreshTokenExpired):
            authority.rotate(token)

    def test_token_still_valid_just_before_expiry(self, authority, clock, user_id):
        token = authority.issue(user_id)
        clock.advance(days=30, seconds=-1)

        assert authority.rotate(token).refresh_token

    def test_expired_token_presented_again_is_not_expired_again(self, authority, clock, user_id):
        token = authority.issue(user_id)
        clock.advance(days=31)
        with pytest.raises(RefreshTokenExpired):
            authority.rotate(token)

        # The row is now revoked, so it falls under the revoked-token rule
        with pytest.raises(RefreshTokenReuseDetected):
            authority.rotate(token)

    def test_successor_gets_a_fresh_ttl(self, authority, store, clock, user_id):
        token = authority.issue(user_id)
        clock.advance(days=20)

        rotated = authority.rotate(token)

        record = store.find(f"hash:{rotated.refresh_token}")
        assert record.expires_at == clock.now + timedelta(days=30)


class TestConcurrentRotation:

    def test_racing_rotations_produce_exactly_one_successor(self, authority, store, auth_config, generator, clock, user_id):
        token = authority.issue(user_id)
        snapshot = store.find(f"hash:{token}")

        # The loser read the row as active before the winner revoked it
        loser = RefreshTokenAuthority(
            store=StaleReadStore(store, snapshot),
            config=auth_config,
            access_tokens=AccessTokenIssuer(auth_config),
            generator=generator,
            clock=clock,
        )

        winner = authority.rotate(token)
        with pytest.raises(RefreshTokenReuseDetected):
            loser.rotate(token)

        rows = store.for_user(user_id)
        assert len(rows) == 2
        assert {r.token_hash for r in rows} == {f"hash:{token}", f"hash:{winner.refresh_token}"}
        # The loser treats the lost race as reuse and ends the whole chain
        assert store.active_for_user(user_id) == []


class TestStorageFailure:

    def test_failure_after_revoke_leaves_no_successor(self, store, auth_config, generator, clock, user_id):
        healthy = RefreshTokenAuthority(store, auth_config, AccessTokenIssuer(auth_config), generator, clock)
        token = healthy.issue(user_id)

        broken = RefreshTokenAuthority(
            FailingInsertStore(store), auth_config, AccessTokenIssuer(auth_config), generator, clock
        )
        with pytest.raises(StorageUnavailable):
            broken.rotate(token)

        assert store.find(f"hash:{token}").revoked_at is not None
        assert store.active_for_user(user_id) == []
        # Presenting it again after the outage is treated as reuse, forcing a new login
        with pytest.raises(RefreshTokenReuseDetected):
            healthy.rotate(token)


class TestRevoke:

    def test_revoke_marks_token_dead(self, authority, store, user_id):
        token = authority.issue(user_id)

        authority.revoke(token)

        assert store.find(f"hash:{token}").revoked_at is not None

    def test_revoke_is_idempotent_and_keeps_first_timestamp(self, authority, store, clock, user_id):
        token = authority.issue(user_id)
        first = clock.now

        assert authority.revoke_hash(f"hash:{token}", first) is True
        clock.advance(hours=1)
        assert authority.revoke_hash(f"hash:{token}", clock.now) is False

        assert store.find(f"hash:{token}").revoked_at == first

    def test_revoke_unknown_token_is_a_noop(self, authority, store):
        authority.revoke("never-issued")

        assert store.rows == {}

    def test_revoke_all_counts_only_active_tokens(self, authority, store, user_id):
        tokens = [authority.issue(user_id) for _ in range(3)]
        authority.revoke(tokens[0])

        assert authority.revoke_all(user_id) == 2
        assert authority.revoke_all(user_id) == 0
        assert store.active_for_user(user_id) == []
