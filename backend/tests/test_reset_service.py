"""Tests for administrator-issued password reset tokens."""

import asyncio
from datetime import timedelta
from uuid import uuid4

import pytest

from gtd_auth.core.errors.base import AuthenticationError, NotFoundError, ValidationError
from gtd_auth.services.auth.reset import INVALID_RESET_TOKEN, PasswordResetService, ResetConfig
from gtd_auth.services.auth.tokens import hash_reset_token

NEW_PASSWORD = "Brand-New-Pass-7"


@pytest.fixture
async def admin(make_user):
    return await make_user("root")


@pytest.fixture
async def target(make_user):
    return await make_user("alice")


class TestIssueToken:

    async def test_issue_token_stores_only_digest(self, reset_service, reset_tokens, admin, target, now):
        result = await reset_service.issue_token(admin.id, target.id, now)

        assert result.expires_at == now + timedelta(minutes=30)
        record = await reset_tokens.get_by_token_hash(hash_reset_token(result.raw_token))
        assert record is not None
        assert record.token_hash != result.raw_token
        assert record.user_id == target.id
        assert record.created_by_user_id == admin.id
        assert record.used_at is None
        assert await reset_tokens.get_by_token_hash(result.raw_token) is None

    async def test_issue_token_for_unknown_user(self, reset_service, admin, now):
        with pytest.raises(NotFoundError):
            await reset_service.issue_token(admin.id, uuid4(), now)

    async def test_tokens_are_unique(self, reset_service, admin, target, now):
        first = await reset_service.issue_token(admin.id, target.id, now)
        second = await reset_service.issue_token(admin.id, target.id, now)

        assert first.raw_token != second.raw_token

    async def test_custom_ttl(self, users, reset_tokens, hasher, admin, target, now):
        service = PasswordResetService(users, reset_tokens, hasher, ResetConfig(token_ttl=timedelta(hours=2)))

        result = await service.issue_token(admin.id, target.id, now)

        assert result.expires_at == now + timedelta(hours=2)


class TestResetPassword:

    async def test_reset_changes_password(self, reset_service, auth_service, reset_tokens, admin, target, now):
        issued = await reset_service.issue_token(admin.id, target.id, now)

        await reset_service.reset_password(issued.raw_token, NEW_PASSWORD, now + timedelta(minutes=5))

        result = await auth_service.login("alice", NEW_PASSWORD, now + timedelta(minutes=6))
        assert result.user_id == target.id
        with pytest.raises(AuthenticationError):
            await auth_service.login("alice", "Correct-Horse-9", now + timedelta(minutes=7))

        record = await reset_tokens.get_by_token_hash(hash_reset_token(issued.raw_token))
        assert record.used_at == now + timedelta(minutes=5)

    async def test_token_is_single_use(self, reset_service, admin, target, now):
        issued = await reset_service.issue_token(admin.id, target.id, now)
        await reset_service.reset_password(issued.raw_token, NEW_PASSWORD, now)

        with pytest.raises(ValidationError) as exc_info:
            await reset_service.reset_password(issued.raw_token, "Another-Pass-42", now)

        assert exc_info.value.message == INVALID_RESET_TOKEN
        assert exc_info.value.context["reason"] == "used"

    async def test_expired_token(self, reset_service, users, admin, target, now):
        issued = await reset_service.issue_token(admin.id, target.id, now)
        before = (await users.get_by_id(target.id)).password_hash

        with pytest.raises(ValidationError) as exc_info:
            await reset_service.reset_password(issued.raw_token, NEW_PASSWORD, issued.expires_at)

        assert exc_info.value.context["reason"] == "expired"
        assert (await users.get_by_id(target.id)).password_hash == before

    async def test_token_valid_just_before_expiry(self, reset_service, admin, target, now):
        issued = await reset_service.issue_token(admin.id, target.id, now)

        await reset_service.reset_password(
            issued.raw_token, NEW_PASSWORD, issued.expires_at - timedelta(microseconds=1)
        )

    async def test_unknown_token(self, reset_service, now):
        with pytest.raises(ValidationError) as exc_info:
            await reset_service.reset_password("not-a-real-token", NEW_PASSWORD, now)

        assert exc_info.value.message == INVALID_RESET_TOKEN
        assert exc_info.value.context["reason"] == "unknown"

    async def test_token_consumed_when_update_fails(self, reset_service, reset_tokens, users, admin, target, now):
        issued = await reset_service.issue_token(admin.id, target.id, now)

        async def broken_update(user_id, changes):
            raise RuntimeError("store unavailable")

        users.update = broken_update
        with pytest.raises(RuntimeError):
            await reset_service.reset_password(issued.raw_token, NEW_PASSWORD, now)

        record = await reset_tokens.get_by_token_hash(hash_reset_token(issued.raw_token))
        assert record.used_at == now

    async def test_concurrent_redemptions_claim_once(self, reset_service, reset_tokens, users, admin, target, now):
        issued = await reset_service.issue_token(admin.id, target.id, now)
        lookup = reset_tokens.get_by_token_hash

        async def slow_lookup(token_hash):
            record = await lookup(token_hash)
            # Let the other redemption read the same unused record.
            await asyncio.sleep(0)
            return record

        reset_tokens.get_by_token_hash = slow_lookup
        outcomes = await asyncio.gather(
            reset_service.reset_password(issued.raw_token, "First-Choice-11", now),
            reset_service.reset_password(issued.raw_token, "Second-Choice-22", now),
            return_exceptions=True,
        )

        winners = [i for i, outcome in enumerate(outcomes) if outcome is None]
        losers = [outcome for outcome in outcomes if isinstance(outcome, ValidationError)]
        assert len(winners) == 1
        assert len(losers) == 1
        assert losers[0].context["reason"] == "used"

        winning_password = ("First-Choice-11", "Second-Choice-22")[winners[0]]
        stored = await users.get_by_id(target.id)
        assert await reset_service.hasher.verify(winning_password, stored.password_hash)

    async def test_reset_does_not_touch_lockout(self, reset_service, users, make_user, admin, now):
        locked = await make_user(
            "bob", failed_login_count=5, lockout_until=now + timedelta(minutes=10)
        )
        issued = await reset_service.issue_token(admin.id, locked.id, now)

        await reset_service.reset_password(issued.raw_token, NEW_PASSWORD, now)

        stored = await users.get_by_id(locked.id)
        assert stored.failed_login_count == 5
        assert stored.lockout_until == now + timedelta(minutes=10)

    async def test_admin_issued_token_redeems_once(self, reset_service, admin, target, now):
        issued = await reset_service.issue_token(admin.id, target.id, now)

        await reset_service.reset_password(issued.raw_token, "NewPass12!", now)
        with pytest.raises(ValidationError):
            await reset_service.reset_password(issued.raw_token, "NewPass12!", now)
