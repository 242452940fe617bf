"""Unit tests for refresh-secret hashing."""

from __future__ import annotations

import pytest
from refresh_engine.core.security import SecretHasher


@pytest.fixture()
def fast_hasher() -> SecretHasher:
    return SecretHasher(method="pbkdf2:sha256:1")


def test_hash_is_salted_and_not_plaintext(fast_hasher):
    first = fast_hasher.hash("signed.refresh.token")
    second = fast_hasher.hash("signed.refresh.token")
    assert "signed.refresh.token" not in first
    assert first != second
    assert fast_hasher.verify(first, "signed.refresh.token")
    assert fast_hasher.verify(second, "signed.refresh.token")


def test_verify_rejects_mismatch_and_garbage(fast_hasher):
    h = fast_hasher.hash("a")
    assert fast_hasher.verify(h, "b") is False
    assert fast_hasher.verify("", "a") is False
    assert fast_hasher.verify(h, "") is False


def test_empty_secret_cannot_be_hashed(fast_hasher):
    with pytest.raises(ValueError):
        fast_hasher.hash("")
