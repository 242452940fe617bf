# refresh_engine/infra/jwt/pyjwt_credential_signer.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, cast

import jwt

from refresh_engine.core.config import ConfigurationError
from refresh_engine.services._shared.base import Clock, utcnow
from refresh_engine.services._shared.errors import InvalidTokenError, TokenExpiredError
from refresh_engine.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    CredentialSigner,
)


@dataclass(slots=True)
class JWTCredentialSigner(CredentialSigner):
    """
    HMAC JWT adapter built on PyJWT.

    Access and refresh credentials are signed with *different* keys so a
    leaked access key cannot mint refresh tokens. Each token carries a
    ``type`` claim and verification rejects the wrong kind.

    :param access_secret: Key for access credentials.
    :param refresh_secret: Key for refresh credentials.
    :param algorithm: HMAC algorithm (``HS256`` by default).
    :param issuer: Optional ``iss`` claim, enforced on verification.
    :param clock: Source of ``iat``/``exp``.
    :param leeway: Clock-skew tolerance in seconds when checking ``exp``.
    :raises ConfigurationError: If a secret is missing or both are equal.
    """

    access_secret: str | None
    refresh_secret: str | None
    algorithm: str = "HS256"
    issuer: str | None = None
    clock: Clock = field(default=utcnow)
    leeway: int = 0

    def __post_init__(self) -> None:
        if not self.access_secret or not self.refresh_secret:
            raise ConfigurationError(
                "JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must both be set."
            )
        if self.access_secret == self.refresh_secret:
            raise ConfigurationError("Access and refresh signing secrets must differ.")

    # ------------------------------------------------------------------ sign

    def _sign(self, payload: dict[str, Any], *, key: str, ttype: str, expires_in: int) -> str:
        now = self.clock()
        claims = dict(payload)
        claims.update(
            {
                "type": ttype,
                "iat": now,
                "exp": now + timedelta(seconds=expires_in),
            }
        )
        if self.issuer:
            claims["iss"] = self.issuer
        return jwt.encode(claims, key, algorithm=self.algorithm)

    def sign_access(self, payload: dict[str, Any], *, expires_in: int) -> str:
        return self._sign(
            payload,
            key=cast(str, self.access_secret),
            ttype=ACCESS_TOKEN_TYPE,
            expires_in=expires_in,
        )

    def sign_refresh(self, payload: dict[str, Any], *, expires_in: int) -> str:
        return self._sign(
            payload,
            key=cast(str, self.refresh_secret),
            ttype=REFRESH_TOKEN_TYPE,
            expires_in=expires_in,
        )

    # ---------------------------------------------------------------- verify

    def _verify(self, token: str, *, key: str, ttype: str, verify_exp: bool) -> dict[str, Any]:
        options: dict[str, Any] = {
            "require": ["exp", "iat", "sub"],
            "verify_exp": False,
            "verify_iat": False,
        }
        try:
            claims = cast(
                dict[str, Any],
                jwt.decode(
                    token,
                    key,
                    algorithms=[self.algorithm],
                    issuer=self.issuer,
                    options=options,
                ),
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError() from exc

        # Expiry is judged against the injected clock, not the wall clock
        if verify_exp and int(claims["exp"]) <= int(self.clock().timestamp()) - self.leeway:
            raise TokenExpiredError()
        if claims.get("type") != ttype:
            raise InvalidTokenError()
        return claims

    def verify_access(self, token: str) -> dict[str, Any]:
        return self._verify(
            token,
            key=cast(str, self.access_secret),
            ttype=ACCESS_TOKEN_TYPE,
            verify_exp=True,
        )

    def verify_refresh(self, token: str, *, verify_exp: bool = True) -> dict[str, Any]:
        return self._verify(
            token,
            key=cast(str, self.refresh_secret),
            ttype=REFRESH_TOKEN_TYPE,
            verify_exp=verify_exp,
        )
