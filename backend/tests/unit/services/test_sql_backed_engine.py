# tests/unit/services/test_sql_backed_engine.py
"""
The session service wired exactly as the app wires it (PyJWT signer, secure
ids, SQLAlchemy store), with wall-clock time controlled by freezegun.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from freezegun import freeze_time
from refresh_engine.core.config import TestingConfig
from refresh_engine.core.engine import build_session_service
from refresh_engine.infra.sqlalchemy.sqlalchemy_token_record_store import (
    SQLAlchemyTokenRecordStore,
)
from refresh_engine.services._shared.errors import ReplayDetectedError, TokenExpiredError
from refresh_engine.services.sessions import RefreshIn, StartSessionIn

SETTINGS = {
    "JWT_ACCESS_SECRET": TestingConfig.JWT_ACCESS_SECRET,
    "JWT_REFRESH_SECRET": TestingConfig.JWT_REFRESH_SECRET,
    "ACCESS_TOKEN_TTL_SECONDS": 60,
    "REFRESH_TOKEN_TTL_SECONDS": 600,
    "REFRESH_SECRET_HASH_METHOD": "pbkdf2:sha256:1",
    "TOKEN_STORE_BACKEND": "sql",
}


@pytest.fixture()
def sql_sessions(session):
    return build_session_service(SETTINGS, store=SQLAlchemyTokenRecordStore())


def test_rotation_chain_persists(sql_sessions):
    with freeze_time("2026-05-01 10:00:00") as frozen:
        first = sql_sessions.start(StartSessionIn(user_id=3, role="user"))
        frozen.tick(timedelta(seconds=30))
        second = sql_sessions.refresh(RefreshIn(refresh_token=first.refresh_token))
        frozen.tick(timedelta(seconds=30))
        third = sql_sessions.refresh(RefreshIn(refresh_token=second.refresh_token))

        claims = sql_sessions.signer.verify_refresh(third.refresh_token)
        chain = sql_sessions.store.list_family(claims["tokenFamily"])
        assert [r.is_used for r in chain] == [True, True, False]
        assert chain[0].replaced_by_jti == chain[1].jti
        assert chain[1].replaced_by_jti == chain[2].jti
        assert sql_sessions.count_sessions(3) == 1


def test_replay_cascades_in_database(sql_sessions):
    with freeze_time("2026-05-01 10:00:00"):
        first = sql_sessions.start(StartSessionIn(user_id=3))
        second = sql_sessions.refresh(RefreshIn(refresh_token=first.refresh_token))

        with pytest.raises(ReplayDetectedError):
            sql_sessions.refresh(RefreshIn(refresh_token=first.refresh_token))

        claims = sql_sessions.signer.verify_refresh(second.refresh_token)
        assert sql_sessions.store.find_by_jti(claims["jti"]).is_revoked is True


def test_expired_refresh_token(sql_sessions):
    with freeze_time("2026-05-01 10:00:00") as frozen:
        pair = sql_sessions.start(StartSessionIn(user_id=3))
        claims = sql_sessions.signer.verify_refresh(pair.refresh_token)
        frozen.tick(timedelta(seconds=600))

        with pytest.raises(TokenExpiredError):
            sql_sessions.refresh(RefreshIn(refresh_token=pair.refresh_token))
        with pytest.raises(TokenExpiredError):
            sql_sessions.validator.validate(claims["jti"], pair.refresh_token)
        assert sql_sessions.cleanup_expired() == 1
