"""
tests/test_passwords.py -- Unit tests for auth/passwords.py.

Covers:
  - hash_password produces a bcrypt hash that verify_password accepts
  - wrong password, malformed hash and non-string input verify False, never raise
  - passwords over 72 UTF-8 bytes are rejected instead of silently truncated
"""

from __future__ import annotations

import pytest

from auth.passwords import DUMMY_HASH, MAX_PASSWORD_BYTES, hash_password, verify_password


class TestHashPassword:
    def test_hash_is_bcrypt_and_not_plaintext(self) -> None:
        hashed = hash_password("secret1")
        assert hashed != "secret1"
        assert hashed.startswith("$2")

    def test_same_password_hashes_differently(self) -> None:
        """Each hash carries its own salt."""
        assert hash_password("secret1") != hash_password("secret1")

    def test_max_length_password_accepted(self) -> None:
        plain = "a" * MAX_PASSWORD_BYTES
        assert verify_password(plain, hash_password(plain))

    def test_over_long_password_rejected(self) -> None:
        with pytest.raises(ValueError):
            hash_password("a" * (MAX_PASSWORD_BYTES + 1))

    def test_multibyte_length_counted_in_bytes(self) -> None:
        """37 two-byte characters are 74 bytes -- over the limit."""
        with pytest.raises(ValueError):
            hash_password("é" * 37)


class TestVerifyPassword:
    def test_correct_password(self) -> None:
        assert verify_password("secret1", hash_password("secret1")) is True

    def test_wrong_password(self) -> None:
        assert verify_password("wrong", hash_password("secret1")) is False

    def test_malformed_hash_returns_false(self) -> None:
        assert verify_password("secret1", "not-a-bcrypt-hash") is False

    def test_none_hash_returns_false(self) -> None:
        assert verify_password("secret1", None) is False  # type: ignore[arg-type]

    def test_over_long_password_does_not_match_its_72_byte_prefix(self) -> None:
        """bcrypt 4.x would compare only the first 72 bytes."""
        hashed = hash_password("A" * MAX_PASSWORD_BYTES)
        assert verify_password("A" * MAX_PASSWORD_BYTES + "x", hashed) is False

    def test_dummy_hash_is_usable(self) -> None:
        """The timing dummy is a real hash that no ordinary password matches."""
        assert DUMMY_HASH.startswith("$2")
        assert verify_password("secret1", DUMMY_HASH) is False
