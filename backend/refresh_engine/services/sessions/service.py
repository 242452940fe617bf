# refresh_engine/services/sessions/service.py
from __future__ import annotations

import logging
from typing import Any

from refresh_engine.services._shared.base import BaseService, Clock
from refresh_engine.services._shared.errors import InvalidTokenError
from refresh_engine.services._shared.ports import (
    CredentialSigner,
    IdentifierGenerator,
    RefreshTokenRecord,
    TokenRecordStore,
)
from refresh_engine.services.sessions.dto import (
    LogoutIn,
    RefreshIn,
    SessionOut,
    StartSessionIn,
    TokenPairOut,
)
from refresh_engine.services.tokens import (
    FamilyRevoker,
    TokenEngineConfig,
    TokenIssuer,
    TokenRotator,
    TokenValidator,
)

logger = logging.getLogger(__name__)

# Claims copied from a refresh credential onto its successor
CARRIED_CLAIMS = ("email", "role")


class SessionService(BaseService):
    """
    Session lifecycle (start / refresh / logout) on top of the token engine.

    The service owns no state: it verifies signatures, then sequences the
    issuer, validator, rotator and revoker. Request details (ip, User-Agent)
    arrive as plain values from the API layer.
    """

    def __init__(
        self,
        *,
        store: TokenRecordStore,
        signer: CredentialSigner,
        ids: IdentifierGenerator,
        issuer: TokenIssuer,
        validator: TokenValidator,
        rotator: TokenRotator,
        revoker: FamilyRevoker,
        config: TokenEngineConfig,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.store = store
        self.signer = signer
        self.ids = ids
        self.issuer = issuer
        self.validator = validator
        self.rotator = rotator
        self.revoker = revoker
        self.cfg = config

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _claim(claims: dict[str, Any], name: str) -> str:
        value = claims.get(name)
        if not isinstance(value, str) or not value:
            raise InvalidTokenError()
        return value

    # ------------------------------------------------------------------ #
    # Start
    # ------------------------------------------------------------------ #

    def start(self, dto: StartSessionIn) -> TokenPairOut:
        """
        Open a new token family for an authenticated user.

        :param dto: Principal, claims and provenance.
        :returns: Access/Refresh token pair.
        """
        claims = {k: v for k, v in (("email", dto.email), ("role", dto.role)) if v is not None}
        issued = self.issuer.issue(dto.user_id, claims, ip=dto.ip, user_agent=dto.user_agent)
        return TokenPairOut(
            access_token=issued.access_token,
            refresh_token=issued.refresh_token,
            expires_in=issued.expires_in,
            token_type=issued.token_type,
        )

    # ------------------------------------------------------------------ #
    # Refresh with rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Rotate a refresh token and emit a new token pair.

        Security
        --------
        - Signature, type and ``exp`` are checked before touching the store.
        - The stored record is validated (expiry, replay, revocation, hash).
        - The rotation is a compare-and-swap; a lost race is not retried.

        :raises TokenError: Any subclass; see the validator and rotator.
        """
        claims = self.signer.verify_refresh(dto.refresh_token)
        old_jti = self._claim(claims, "jti")
        subject = self._claim(claims, "sub")

        record = self.validator.validate(old_jti, dto.refresh_token)
        if record.user_id != subject:
            raise InvalidTokenError()

        new_jti = self.ids.new_id()
        access, refresh = self.issuer.sign_pair(
            user_id=subject,
            claims={k: claims[k] for k in CARRIED_CLAIMS if k in claims},
            jti=new_jti,
            token_family=record.token_family,
        )
        self.rotator.rotate(
            old_jti,
            refresh,
            new_jti,
            self.cfg.refresh_ttl_seconds,
            ip=dto.ip,
            user_agent=dto.user_agent,
        )
        return TokenPairOut(
            access_token=access,
            refresh_token=refresh,
            expires_in=self.cfg.access_ttl_seconds,
        )

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        End the session bound to a refresh token (or all of the user's).

        The signature must be valid but an expired token is accepted, so a
        client can always sign out. Repeated logouts are no-ops.
        """
        claims = self.signer.verify_refresh(dto.refresh_token, verify_exp=False)
        subject = self._claim(claims, "sub")
        if dto.all_sessions:
            self.revoker.revoke_all_for_user(subject)
            return
        self.revoker.revoke_family(self._claim(claims, "tokenFamily"), subject)

    # ------------------------------------------------------------------ #
    # Queries & maintenance
    # ------------------------------------------------------------------ #

    @staticmethod
    def _to_session(record: RefreshTokenRecord) -> SessionOut:
        return SessionOut(
            token_family=record.token_family,
            created_at=record.created_at,
            expires_at=record.expires_at,
            ip_address=record.ip_address,
            user_agent=record.user_agent,
        )

    def list_sessions(self, user_id: str | int) -> list[SessionOut]:
        """Return the user's active sessions, newest first."""
        return [self._to_session(r) for r in self.store.list_active(str(user_id), self.now_utc())]

    def count_sessions(self, user_id: str | int) -> int:
        """Return how many active sessions the user has."""
        return self.store.count_active(str(user_id), self.now_utc())

    def cleanup_expired(self) -> int:
        """Hard-delete expired records. :returns: number of records removed."""
        count = self.store.delete_expired(self.now_utc())
        logger.info("Expired refresh tokens deleted", extra={"count": count})
        return count

    def authenticate_access(self, token: str) -> dict[str, Any]:
        """Verify an access credential and return its claims."""
        claims = self.signer.verify_access(token)
        self._claim(claims, "sub")
        return claims
