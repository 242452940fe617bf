"""Time-dependent predicates over refresh-token records.

Records are plain values; every rule that depends on "now" lives here so the
caller decides which clock applies.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from refresh_engine.services._shared.ports.token_record_store import RefreshTokenRecord


def is_expired(record: RefreshTokenRecord, now: datetime) -> bool:
    """Return True once ``now`` has reached the record's ``expires_at``."""
    return now >= record.expires_at


def is_active(record: RefreshTokenRecord, now: datetime) -> bool:
    """Return True if the record is neither used, revoked nor expired."""
    return not record.is_used and not record.is_revoked and not is_expired(record, now)
