"""Unit tests for password hashing."""

import pytest

from latchkey.infrastructure.auth.password_hasher import (
    DUMMY_PASSWORD_HASH,
    hash_password,
    hash_password_async,
    verify_password,
    verify_password_async,
)


class TestHashPassword:
    def test_produces_argon2id_hash(self):
        hashed = hash_password("Passw0rdOk")

        assert hashed.startswith("$argon2id$")
        assert "Passw0rdOk" not in hashed

    def test_salt_differs_per_hash(self):
        first = hash_password("Passw0rdOk")
        second = hash_password("Passw0rdOk")

        assert first != second
        assert verify_password("Passw0rdOk", first)
        assert verify_password("Passw0rdOk", second)


class TestVerifyPassword:
    @pytest.mark.parametrize(
        ("candidate", "expected"),
        [
            ("Passw0rdOk", True),
            ("passw0rdok", False),
            ("Passw0rdOk ", False),
            ("", False),
        ],
    )
    def test_exact_match_only(self, candidate, expected):
        assert verify_password(candidate, hash_password("Passw0rdOk")) is expected

    def test_unparseable_hash_is_a_mismatch(self):
        assert verify_password("anything", "not-a-hash") is False

    def test_dummy_hash_rejects_guesses(self):
        assert DUMMY_PASSWORD_HASH.startswith("$argon2id$")
        assert verify_password("Passw0rdOk", DUMMY_PASSWORD_HASH) is False


@pytest.mark.asyncio
async def test_async_variants_agree_with_sync():
    hashed = await hash_password_async("Passw0rdOk")

    assert verify_password("Passw0rdOk", hashed)
    assert await verify_password_async("Passw0rdOk", hashed) is True
    assert await verify_password_async("Wrong0rdOk", hashed) is False
