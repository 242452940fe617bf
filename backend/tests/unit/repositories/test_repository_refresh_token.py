"""Unit tests for RefreshTokenRepository (persistence only, no commits)."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from refresh_engine.repositories import RefreshTokenRepository
from tests.factories.refresh_token import RefreshTokenFactory

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture()
def repo(session) -> RefreshTokenRepository:
    return RefreshTokenRepository(session=session)


def test_get_by_jti_and_filters(repo):
    row = RefreshTokenFactory(jti="a", token_family="f1", created_at=NOW)
    assert repo.get_by_jti("a").id == row.id
    assert repo.get_by_jti("nope") is None
    assert repo.find_one(token_family="f1").jti == "a"
    assert repo.count(user_id="1") == 1
    with pytest.raises(ValueError):
        repo.count(secret_hash="x")


def test_mark_used_if_unused_reports_rowcount(repo, session):
    RefreshTokenFactory(jti="a", created_at=NOW)
    assert repo.mark_used_if_unused(jti="a", used_at=NOW, replaced_by_jti="b") == 1
    assert repo.mark_used_if_unused(jti="a", used_at=NOW, replaced_by_jti="c") == 0
    session.commit()
    session.expire_all()
    row = repo.get_by_jti("a")
    assert row.is_used is True
    assert row.replaced_by_jti == "b"


def test_mark_used_if_unused_skips_revoked_rows(repo, session):
    RefreshTokenFactory(jti="a", created_at=NOW, is_revoked=True)
    assert repo.mark_used_if_unused(jti="a", used_at=NOW, replaced_by_jti="b") == 0
    session.commit()
    session.expire_all()
    assert repo.get_by_jti("a").is_used is False


def test_revoke_where_requires_and_whitelists_filters(repo):
    RefreshTokenFactory(jti="a", token_family="f1", created_at=NOW)
    RefreshTokenFactory(jti="b", token_family="f1", created_at=NOW)
    with pytest.raises(ValueError):
        repo.revoke_where()
    with pytest.raises(ValueError):
        repo.revoke_where(ip_address="1.1.1.1")
    assert repo.revoke_where(token_family="f1", user_id="1") == 2
    assert repo.revoke_where(token_family="f1", user_id="1") == 0


def test_active_queries_and_delete_expired(repo):
    RefreshTokenFactory(jti="live", created_at=NOW - timedelta(minutes=1))
    RefreshTokenFactory(jti="used", created_at=NOW - timedelta(minutes=2), is_used=True)
    RefreshTokenFactory(jti="revoked", created_at=NOW - timedelta(minutes=3), is_revoked=True)
    RefreshTokenFactory(
        jti="expired",
        created_at=NOW - timedelta(days=9),
        expires_at=NOW - timedelta(days=2),
    )
    assert [r.jti for r in repo.list_active_for_user("1", NOW)] == ["live"]
    assert repo.count_active_for_user("1", NOW) == 1
    assert repo.delete_expired(NOW) == 1
    assert repo.get_by_jti("expired") is None
