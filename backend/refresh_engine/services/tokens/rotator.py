# refresh_engine/services/tokens/rotator.py
from __future__ import annotations

import logging
from datetime import timedelta

from refresh_engine.core.security import SecretHasher
from refresh_engine.services._shared.base import BaseService, Clock
from refresh_engine.services._shared.errors import (
    ConcurrentRotationError,
    InvalidTokenError,
    ReplayDetectedError,
    TokenRevokedError,
)
from refresh_engine.services._shared.ports import RefreshTokenRecord, TokenRecordStore
from refresh_engine.services.tokens.dto import TokenEngineConfig
from refresh_engine.services.tokens.revoker import FamilyRevoker

logger = logging.getLogger(__name__)


class TokenRotator(BaseService):
    """
    Consume a validated refresh token and chain its successor.

    Step 1 is a compare-and-swap enforced by the store (``is_used`` false to
    true, only while unrevoked); exactly one caller wins per predecessor.
    Step 2 inserts the successor in the same family. A committed step 1 is
    never rolled back.
    """

    def __init__(
        self,
        *,
        store: TokenRecordStore,
        hasher: SecretHasher,
        revoker: FamilyRevoker,
        config: TokenEngineConfig,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.store = store
        self.hasher = hasher
        self.revoker = revoker
        self.cfg = config

    def rotate(
        self,
        old_jti: str,
        new_signed_refresh_token: str,
        new_jti: str,
        ttl_seconds: int,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> RefreshTokenRecord:
        """
        Mark ``old_jti`` used and persist its successor.

        :param old_jti: Predecessor, already accepted by the validator.
        :param new_signed_refresh_token: Successor credential (only its hash is stored).
        :param new_jti: Successor identifier, embedded in the credential.
        :param ttl_seconds: Successor lifetime.
        :returns: The successor record.
        :raises InvalidTokenError: The predecessor does not exist.
        :raises ReplayDetectedError: The predecessor was consumed by an earlier
            rotation; its family is revoked first.
        :raises TokenRevokedError: The family was revoked before or during
            this rotation.
        :raises ConcurrentRotationError: A concurrent request consumed the
            predecessor between our read and our write.
        """
        old = self.store.find_by_jti(old_jti)
        if old is None:
            raise InvalidTokenError()

        if old.is_used:
            self.revoker.revoke_family(old.token_family, old.user_id)
            logger.warning(
                "Refresh token replay detected on rotation",
                extra={"user_id": old.user_id, "token_family": old.token_family},
            )
            raise ReplayDetectedError(token_family=old.token_family, user_id=old.user_id)

        if old.is_revoked:
            raise TokenRevokedError()

        now = self.now_utc()
        if not self.store.mark_used(jti=old_jti, used_at=now, replaced_by_jti=new_jti):
            current = self.store.find_by_jti(old_jti)
            if current is not None and current.is_revoked:
                raise TokenRevokedError()
            if self.cfg.revoke_family_on_concurrent_rotation:
                self.revoker.revoke_family(old.token_family, old.user_id)
            logger.warning(
                "Concurrent refresh token rotation lost",
                extra={"user_id": old.user_id, "token_family": old.token_family},
            )
            raise ConcurrentRotationError()

        successor = self.store.insert(
            jti=new_jti,
            token_family=old.token_family,
            secret_hash=self.hasher.hash(new_signed_refresh_token),
            user_id=old.user_id,
            expires_at=now + timedelta(seconds=ttl_seconds),
            created_at=now,
            ip_address=ip,
            user_agent=user_agent,
        )

        # A family revocation that ran between mark_used and insert missed the successor
        latest = self.store.find_by_jti(old_jti)
        if latest is not None and latest.is_revoked:
            self.store.revoke(new_jti)
            raise TokenRevokedError()

        logger.debug(
            "Refresh token rotated",
            extra={"user_id": old.user_id, "token_family": old.token_family},
        )
        return successor
