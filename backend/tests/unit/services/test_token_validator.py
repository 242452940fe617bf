# tests/unit/services/test_token_validator.py
from __future__ import annotations

from datetime import timedelta

import pytest
from refresh_engine.services._shared.errors import (
    InvalidTokenError,
    ReplayDetectedError,
    TokenExpiredError,
    TokenRevokedError,
)


def _issue(issuer, signer, user_id=1):
    out = issuer.issue(user_id, {"role": "user"})
    return out.refresh_token, signer.verify_refresh(out.refresh_token)


def test_valid_token_returns_record(issuer, signer, validator):
    token, claims = _issue(issuer, signer)
    rec = validator.validate(claims["jti"], token)
    assert rec.jti == claims["jti"]


def test_unknown_jti_is_invalid(validator):
    with pytest.raises(InvalidTokenError):
        validator.validate("missing", "whatever")


def test_secret_mismatch_is_invalid(issuer, signer, validator):
    _, claims = _issue(issuer, signer)
    other, _ = _issue(issuer, signer)
    with pytest.raises(InvalidTokenError):
        validator.validate(claims["jti"], other)


def test_expired_record(issuer, signer, validator, clock):
    token, claims = _issue(issuer, signer)
    clock.advance(seconds=3600)  # exactly at expires_at
    with pytest.raises(TokenExpiredError):
        validator.validate(claims["jti"], token)


def test_expiry_is_checked_before_replay(issuer, signer, validator, store, clock):
    token, claims = _issue(issuer, signer)
    store.mark_used(jti=claims["jti"], used_at=clock(), replaced_by_jti="x")
    clock.advance(hours=2)
    with pytest.raises(TokenExpiredError):
        validator.validate(claims["jti"], token)
    assert store.find_by_jti(claims["jti"]).is_revoked is False


def test_revoked_record(issuer, signer, validator, store):
    token, claims = _issue(issuer, signer)
    store.revoke(claims["jti"])
    with pytest.raises(TokenRevokedError):
        validator.validate(claims["jti"], token)


def test_used_record_is_replay_and_revokes_family(issuer, signer, validator, store, clock):
    token, claims = _issue(issuer, signer)
    _, unrelated = _issue(issuer, signer)
    store.mark_used(jti=claims["jti"], used_at=clock(), replaced_by_jti="next")
    sibling = store.insert(
        jti="next",
        token_family=claims["tokenFamily"],
        secret_hash="h",
        user_id="1",
        expires_at=clock() + timedelta(hours=1),
        created_at=clock(),
    )

    with pytest.raises(ReplayDetectedError) as exc:
        validator.validate(claims["jti"], token)

    assert exc.value.token_family == claims["tokenFamily"]
    assert exc.value.user_id == "1"
    assert store.find_by_jti(sibling.jti).is_revoked is True
    assert store.find_by_jti(unrelated["jti"]).is_revoked is False


def test_replay_wins_over_wrong_secret(issuer, signer, validator, store, clock):
    """A used record is a replay whatever secret accompanies it."""
    _, claims = _issue(issuer, signer)
    store.mark_used(jti=claims["jti"], used_at=clock(), replaced_by_jti="x")
    with pytest.raises(ReplayDetectedError):
        validator.validate(claims["jti"], "garbage")
