# refresh_engine/services/tokens/issuer.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

from refresh_engine.core.security import SecretHasher
from refresh_engine.services._shared.base import BaseService, Clock
from refresh_engine.services._shared.ports import (
    CredentialSigner,
    IdentifierGenerator,
    TokenRecordStore,
)
from refresh_engine.services.tokens.dto import IssuedTokens, TokenEngineConfig

logger = logging.getLogger(__name__)

# Claims owned by the engine; caller claims never override them
RESERVED_CLAIMS = frozenset({"sub", "jti", "tokenFamily", "type", "iat", "exp", "iss"})


class TokenIssuer(BaseService):
    """
    Start a new token family at sign-in.

    The record is persisted *before* the credentials are returned, so no
    refresh token ever exists without its server-side state.
    """

    def __init__(
        self,
        *,
        store: TokenRecordStore,
        signer: CredentialSigner,
        ids: IdentifierGenerator,
        hasher: SecretHasher,
        config: TokenEngineConfig,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.store = store
        self.signer = signer
        self.ids = ids
        self.hasher = hasher
        self.cfg = config

    def sign_pair(
        self,
        *,
        user_id: str | int,
        claims: Mapping[str, Any],
        jti: str,
        token_family: str,
    ) -> tuple[str, str]:
        """
        Sign an access/refresh pair for an existing or new family.

        :returns: ``(access_token, refresh_token)``.
        """
        payload: dict[str, Any] = {k: v for k, v in claims.items() if k not in RESERVED_CLAIMS}
        payload.update({"sub": str(user_id), "jti": jti, "tokenFamily": token_family})
        access = self.signer.sign_access(payload, expires_in=self.cfg.access_ttl_seconds)
        refresh = self.signer.sign_refresh(payload, expires_in=self.cfg.refresh_ttl_seconds)
        return access, refresh

    def issue(
        self,
        user_id: str | int,
        claims: Mapping[str, Any] | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> IssuedTokens:
        """
        Issue the first pair of a fresh family.

        :param user_id: Authenticated principal (encoded as ``sub``).
        :param claims: Extra claims such as ``email`` and ``role``.
        :param ip: Client address, stored for provenance only.
        :param user_agent: Client User-Agent, stored for provenance only.
        :returns: Signed credentials and the access lifetime.
        """
        # Two independent draws: a family id is not derivable from a jti
        jti = self.ids.new_id()
        token_family = self.ids.new_id()
        access, refresh = self.sign_pair(
            user_id=user_id, claims=claims or {}, jti=jti, token_family=token_family
        )

        now = self.now_utc()
        self.store.insert(
            jti=jti,
            token_family=token_family,
            secret_hash=self.hasher.hash(refresh),
            user_id=str(user_id),
            expires_at=now + timedelta(seconds=self.cfg.refresh_ttl_seconds),
            created_at=now,
            ip_address=ip,
            user_agent=user_agent,
        )
        logger.debug(
            "Token family issued", extra={"user_id": str(user_id), "token_family": token_family}
        )
        return IssuedTokens(
            access_token=access,
            refresh_token=refresh,
            expires_in=self.cfg.access_ttl_seconds,
        )
