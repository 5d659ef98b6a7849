"""Tests for argon2id password hashing."""

import pytest

from wren.security.passwords import hash_password, needs_rehash, verify_password


class TestPasswords:
    def test_hash_is_argon2id(self) -> None:
        assert hash_password("hunter2").startswith("$argon2id$")

    def test_hashes_are_salted(self) -> None:
        assert hash_password("hunter2") != hash_password("hunter2")

    def test_verify_correct(self) -> None:
        assert verify_password("hunter2", hash_password("hunter2"))

    def test_verify_wrong(self) -> None:
        assert not verify_password("hunter3", hash_password("hunter2"))

    def test_verify_empty_inputs(self) -> None:
        hashed = hash_password("x")
        assert not verify_password("", hashed)
        assert not verify_password("x", "")

    def test_verify_foreign_hash(self) -> None:
        assert not verify_password("pw", "$2b$12$notanargonhashatall")

    def test_empty_password_rejected(self) -> None:
        with pytest.raises(ValueError):
            hash_password("")

    def test_fresh_hash_needs_no_rehash(self) -> None:
        assert not needs_rehash(hash_password("pw"))
