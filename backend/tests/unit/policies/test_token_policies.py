"""Unit tests for the time-dependent token predicates."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest
from refresh_engine.services._shared.policies.tokens import is_active, is_expired
from refresh_engine.services._shared.ports import RefreshTokenRecord

NOW = datetime(2026, 3, 1, tzinfo=UTC)


@pytest.fixture()
def record() -> RefreshTokenRecord:
    return RefreshTokenRecord(
        id="r1",
        jti="j1",
        token_family="f1",
        secret_hash="h",
        user_id="1",
        is_used=False,
        is_revoked=False,
        expires_at=NOW + timedelta(minutes=5),
        created_at=NOW - timedelta(minutes=5),
    )


def test_fresh_record_is_active(record):
    assert is_expired(record, NOW) is False
    assert is_active(record, NOW) is True


def test_expiry_boundary_is_inclusive(record):
    """A record expires exactly at ``expires_at``, not one tick later."""
    assert is_expired(record, record.expires_at) is True
    assert is_active(record, record.expires_at) is False
    assert is_expired(record, record.expires_at - timedelta(microseconds=1)) is False


@pytest.mark.parametrize("flag", ["is_used", "is_revoked"])
def test_used_or_revoked_record_is_not_active(record, flag):
    assert is_active(replace(record, **{flag: True}), NOW) is False


def test_record_is_immutable(record):
    with pytest.raises(AttributeError):
        record.is_used = True  # type: ignore[misc]
