"""Integration tests for the ``flask tokens`` command group."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from refresh_engine.core.engine import get_session_service
from refresh_engine.services.sessions import StartSessionIn


def test_cleanup_deletes_expired(app, db):
    svc = get_session_service()
    past = datetime.now(UTC) - timedelta(days=30)
    svc.store.insert(
        jti="stale",
        token_family="f-old",
        secret_hash="h",
        user_id="9",
        expires_at=past + timedelta(days=7),
        created_at=past,
    )
    svc.start(StartSessionIn(user_id=9))

    result = app.test_cli_runner().invoke(args=["tokens", "cleanup"])

    assert result.exit_code == 0
    assert "Deleted 1 expired refresh token(s)." in result.output
    assert svc.store.find_by_jti("stale") is None
    assert svc.count_sessions(9) == 1


def test_revoke_user(app, db):
    svc = get_session_service()
    svc.start(StartSessionIn(user_id=5))
    svc.start(StartSessionIn(user_id=5))

    result = app.test_cli_runner().invoke(args=["tokens", "revoke-user", "5", "--yes"])

    assert result.exit_code == 0
    assert svc.count_sessions(5) == 0


def test_revoke_user_asks_for_confirmation(app, db):
    svc = get_session_service()
    svc.start(StartSessionIn(user_id=5))

    result = app.test_cli_runner().invoke(args=["tokens", "revoke-user", "5"], input="n\n")

    assert result.exit_code != 0
    assert svc.count_sessions(5) == 1
