# refresh_engine/services/tokens/revoker.py
from __future__ import annotations

import logging

from refresh_engine.services._shared.ports import TokenRecordStore

logger = logging.getLogger(__name__)


class FamilyRevoker:
    """
    Bulk revocation of refresh tokens.

    Every operation is a conditional update on ``is_revoked = false`` rows, so
    calling it twice is harmless. Callers get no count back; it is logged.
    """

    def __init__(self, *, store: TokenRecordStore) -> None:
        self.store = store

    def revoke_family(self, token_family: str, user_id: str) -> None:
        """Revoke every record of ``token_family`` owned by ``user_id``."""
        count = self.store.revoke_family(token_family=token_family, user_id=user_id)
        logger.info(
            "Token family revoked",
            extra={"token_family": token_family, "user_id": user_id, "count": count},
        )

    def revoke_all_for_user(self, user_id: str) -> None:
        """Revoke every record of ``user_id`` across all families."""
        count = self.store.revoke_all_for_user(user_id)
        logger.info("All user tokens revoked", extra={"user_id": user_id, "count": count})

    def revoke_token(self, jti: str) -> None:
        """Revoke one record (administrative action on a single device)."""
        changed = self.store.revoke(jti)
        logger.info("Token revoked", extra={"count": int(changed)})
