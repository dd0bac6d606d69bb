"""Tests for bcrypt hashing and the password policy."""

import pytest

from gtd_auth.services.auth.password import PasswordManager, PasswordPolicy
from gtd_auth.services.auth.tokens import (
    fingerprint,
    generate_reset_token,
    generate_session_id,
    hash_reset_token,
)


@pytest.fixture(scope="module")
def manager() -> PasswordManager:
    return PasswordManager(rounds=4)


class TestPasswordManager:

    async def test_hash_and_verify(self, manager):
        password_hash = await manager.hash("Correct-Horse-9")

        assert password_hash != "Correct-Horse-9"
        assert password_hash.startswith("$2b$04$")
        assert await manager.verify("Correct-Horse-9", password_hash)
        assert not await manager.verify("correct-horse-9", password_hash)

    async def test_hashes_are_salted(self, manager):
        first = await manager.hash("Correct-Horse-9")
        second = await manager.hash("Correct-Horse-9")

        assert first != second
        assert await manager.verify("Correct-Horse-9", first)
        assert await manager.verify("Correct-Horse-9", second)

    @pytest.mark.parametrize("stored", ["", "not-a-hash", "$2b$04$short"])
    async def test_malformed_hash_is_a_mismatch(self, manager, stored):
        assert await manager.verify("Correct-Horse-9", stored) is False


class TestPasswordPolicy:

    @pytest.fixture
    def policy(self) -> PasswordPolicy:
        return PasswordPolicy()

    def test_strong_password(self, policy):
        assert policy.violations("Correct-Horse-9") == []
        assert policy.check_password_strength("Correct-Horse-9")["meets_requirements"]

    def test_too_short(self, policy):
        assert policy.violations("Ab1!") == ["Password must be at least 12 characters"]

    def test_too_long(self, policy):
        assert "Password must be at most 128 characters" in policy.violations("Aa1!" * 40)

    def test_too_few_character_classes(self, policy):
        assert policy.violations("alllowercase12") == [
            "Password must include 3 of 4 character classes"
        ]

    def test_denylisted(self):
        policy = PasswordPolicy(min_length=6, min_classes=1, denylist=frozenset({"letmein"}))

        assert policy.violations("LetMeIn") == ["Password is too common"]

    def test_strength_metrics(self, policy):
        result = policy.check_password_strength("abcDEF")

        assert result["lowercase"] and result["uppercase"]
        assert not result["digits"]
        assert result["score"] == 2
        assert result["length"] is False
        assert result["meets_requirements"] is False


def test_generated_secrets_are_url_safe_and_distinct():
    tokens = {generate_session_id() for _ in range(50)} | {generate_reset_token() for _ in range(50)}

    assert len(tokens) == 100
    assert all(len(token) >= 43 for token in tokens)
    assert all(set(token) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_") for token in tokens)


def test_reset_token_digest_and_fingerprint():
    digest = hash_reset_token("abc")

    assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    assert fingerprint("abc") == digest[:12]
