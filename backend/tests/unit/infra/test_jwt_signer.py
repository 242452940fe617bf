"""Unit tests for the PyJWT credential signer."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest
from refresh_engine.core.config import ConfigurationError
from refresh_engine.infra.jwt.pyjwt_credential_signer import JWTCredentialSigner
from refresh_engine.services._shared.errors import InvalidTokenError, TokenExpiredError
from tests.helpers.utils import FrozenClock

ACCESS = "access-secret-0123456789abcdef0123"
REFRESH = "refresh-secret-0123456789abcdef012"


@pytest.fixture()
def frozen() -> FrozenClock:
    return FrozenClock(datetime.now(UTC).replace(microsecond=0))


@pytest.fixture()
def jwt_signer(frozen) -> JWTCredentialSigner:
    return JWTCredentialSigner(ACCESS, REFRESH, issuer="refresh-engine", clock=frozen)


PAYLOAD = {"sub": "42", "email": "a@example.com", "role": "user", "jti": "j1", "tokenFamily": "f1"}


def test_roundtrip_adds_type_and_lifetime(jwt_signer, frozen):
    token = jwt_signer.sign_refresh(PAYLOAD, expires_in=60)
    claims = jwt_signer.verify_refresh(token)
    assert claims["sub"] == "42"
    assert claims["tokenFamily"] == "f1"
    assert claims["type"] == "refresh"
    assert claims["iss"] == "refresh-engine"
    assert claims["exp"] - claims["iat"] == 60


def test_access_and_refresh_use_separate_keys(jwt_signer):
    refresh = jwt_signer.sign_refresh(PAYLOAD, expires_in=60)
    access = jwt_signer.sign_access(PAYLOAD, expires_in=60)
    jwt.decode(refresh, REFRESH, algorithms=["HS256"], options={"verify_iss": False})
    with pytest.raises(jwt.InvalidSignatureError):
        jwt.decode(refresh, ACCESS, algorithms=["HS256"])
    with pytest.raises(InvalidTokenError):
        jwt_signer.verify_access(refresh)
    with pytest.raises(InvalidTokenError):
        jwt_signer.verify_refresh(access)


def test_expired_token_raises_expired(jwt_signer, frozen):
    token = jwt_signer.sign_refresh(PAYLOAD, expires_in=60)
    frozen.advance(seconds=60)
    with pytest.raises(TokenExpiredError):
        jwt_signer.verify_refresh(token)
    # Logout path ignores expiry but still checks the signature
    assert jwt_signer.verify_refresh(token, verify_exp=False)["jti"] == "j1"


def test_tampered_token_is_invalid(jwt_signer):
    token = jwt_signer.sign_refresh(PAYLOAD, expires_in=60)
    forged = jwt.encode(
        {
            **PAYLOAD,
            "type": "refresh",
            "iat": datetime.now(UTC),
            "exp": datetime.now(UTC) + timedelta(hours=1),
        },
        "attacker-key-0123456789abcdef012345",
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError):
        jwt_signer.verify_refresh(forged)
    header, body, sig = token.split(".")
    with pytest.raises(InvalidTokenError):
        jwt_signer.verify_refresh(f"{header}.{body}.{'A' * len(sig)}")
    with pytest.raises(InvalidTokenError):
        jwt_signer.verify_refresh("not-a-jwt")


def test_wrong_issuer_is_invalid(frozen):
    other = JWTCredentialSigner(ACCESS, REFRESH, issuer="someone-else", clock=frozen)
    ours = JWTCredentialSigner(ACCESS, REFRESH, issuer="refresh-engine", clock=frozen)
    with pytest.raises(InvalidTokenError):
        ours.verify_refresh(other.sign_refresh(PAYLOAD, expires_in=60))


@pytest.mark.parametrize(
    "access, refresh",
    [(None, REFRESH), (ACCESS, None), ("", REFRESH), (ACCESS, ACCESS)],
)
def test_missing_or_shared_secrets_fail_fast(access, refresh):
    with pytest.raises(ConfigurationError):
        JWTCredentialSigner(access, refresh)
