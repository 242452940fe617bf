from __future__ import annotations

from typing import Any, Protocol

from refresh_engine.services._shared.errors import InvalidTokenError

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class CredentialSigner(Protocol):
    """
    Port for signing and verifying bearer credentials.

    Access and refresh credentials use separate keys and lifetimes. Verifiers
    raise :class:`~refresh_engine.services._shared.errors.InvalidTokenError`
    on a bad signature or wrong token type and
    :class:`~refresh_engine.services._shared.errors.TokenExpiredError` when the
    embedded ``exp`` has passed.
    """

    def sign_access(self, payload: dict[str, Any], *, expires_in: int) -> str: ...

    def sign_refresh(self, payload: dict[str, Any], *, expires_in: int) -> str: ...

    def verify_access(self, token: str) -> dict[str, Any]: ...

    def verify_refresh(self, token: str, *, verify_exp: bool = True) -> dict[str, Any]: ...


class StubCredentialSigner(CredentialSigner):
    """Deterministic signer used in unit tests (no cryptography, no expiry)."""

    def __init__(self) -> None:
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}

    def _mk(self, payload: dict[str, Any], *, ttype: str, expires_in: int) -> str:
        self._seq += 1
        token = f"{ttype}.{payload.get('sub')}.{payload.get('jti')}.{self._seq}"
        self._issued[token] = {**payload, "type": ttype, "expires_in": expires_in}
        return token

    def _verify(self, token: str, ttype: str) -> dict[str, Any]:
        claims = self._issued.get(token)
        if claims is None or claims["type"] != ttype:
            raise InvalidTokenError()
        return dict(claims)

    def sign_access(self, payload: dict[str, Any], *, expires_in: int) -> str:
        return self._mk(payload, ttype=ACCESS_TOKEN_TYPE, expires_in=expires_in)

    def sign_refresh(self, payload: dict[str, Any], *, expires_in: int) -> str:
        return self._mk(payload, ttype=REFRESH_TOKEN_TYPE, expires_in=expires_in)

    def verify_access(self, token: str) -> dict[str, Any]:
        return self._verify(token, ACCESS_TOKEN_TYPE)

    def verify_refresh(self, token: str, *, verify_exp: bool = True) -> dict[str, Any]:
        return self._verify(token, REFRESH_TOKEN_TYPE)
