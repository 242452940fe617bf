# refresh_engine/services/tokens/validator.py
from __future__ import annotations

import logging

from refresh_engine.core.security import SecretHasher
from refresh_engine.services._shared.base import BaseService, Clock
from refresh_engine.services._shared.errors import (
    InvalidTokenError,
    ReplayDetectedError,
    TokenExpiredError,
    TokenRevokedError,
)
from refresh_engine.services._shared.policies.tokens import is_expired
from refresh_engine.services._shared.ports import RefreshTokenRecord, TokenRecordStore
from refresh_engine.services.tokens.revoker import FamilyRevoker

logger = logging.getLogger(__name__)


class TokenValidator(BaseService):
    """
    Decide whether a presented refresh credential may be used.

    One read, then a fixed branch order: existence, expiry, replay,
    revocation, and only then the secret. A consumed token is a replay even
    when its secret is bit-perfect.
    """

    def __init__(
        self,
        *,
        store: TokenRecordStore,
        hasher: SecretHasher,
        revoker: FamilyRevoker,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.store = store
        self.hasher = hasher
        self.revoker = revoker

    def validate(self, jti: str, presented_secret: str) -> RefreshTokenRecord:
        """
        Return the record for ``jti`` if the presented secret may be rotated.

        :param jti: Identifier read from the verified credential.
        :param presented_secret: The signed refresh credential as received.
        :raises InvalidTokenError: Unknown ``jti`` or secret mismatch.
        :raises TokenExpiredError: Past ``expires_at``.
        :raises ReplayDetectedError: Already consumed; the family is revoked first.
        :raises TokenRevokedError: Revoked by logout or an administrator.
        """
        record = self.store.find_by_jti(jti)
        if record is None:
            raise InvalidTokenError()

        if is_expired(record, self.now_utc()):
            raise TokenExpiredError()

        if record.is_used:
            self.revoker.revoke_family(record.token_family, record.user_id)
            logger.warning(
                "Refresh token replay detected",
                extra={"user_id": record.user_id, "token_family": record.token_family},
            )
            raise ReplayDetectedError(token_family=record.token_family, user_id=record.user_id)

        if record.is_revoked:
            raise TokenRevokedError()

        if not self.hasher.verify(record.secret_hash, presented_secret):
            raise InvalidTokenError()

        return record
