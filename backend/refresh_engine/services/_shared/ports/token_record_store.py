from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Protocol
from uuid import uuid4

from refresh_engine.services._shared.policies.tokens import is_active


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    Persisted state of one issued refresh token.

    :ivar id: Opaque, store-assigned identifier.
    :ivar jti: Token identifier embedded in the signed credential (lookup key).
    :ivar token_family: Lineage shared by every token descended from one sign-in.
    :ivar secret_hash: One-way hash of the signed refresh credential.
    :ivar user_id: Owning principal (string-encoded ``sub``).
    :ivar is_used: Set once, when the record is rotated.
    :ivar is_revoked: Set once, when the family or user is revoked.
    :ivar expires_at: Absolute expiry (UTC).
    :ivar created_at: Creation timestamp (UTC).
    :ivar last_used_at: Rotation timestamp that consumed this record.
    :ivar replaced_by_jti: Forward pointer to the successor's jti.
    :ivar ip_address: Provenance only; never affects validity.
    :ivar user_agent: Provenance only; never affects validity.
    """

    id: str
    jti: str
    token_family: str
    secret_hash: str
    user_id: str
    is_used: bool
    is_revoked: bool
    expires_at: datetime
    created_at: datetime
    last_used_at: datetime | None = None
    replaced_by_jti: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


class TokenRecordStore(Protocol):
    """
    Stateful store for refresh-token records.

    Every mutation MUST be either an insert or a conditional/idempotent
    update; ``mark_used`` MUST be a compare-and-swap enforced by the store.
    """

    def find_by_jti(self, jti: str) -> RefreshTokenRecord | None:
        """Fetch a record by jti (``None`` when unknown)."""

    def insert(
        self,
        *,
        jti: str,
        token_family: str,
        secret_hash: str,
        user_id: str,
        expires_at: datetime,
        created_at: datetime,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> RefreshTokenRecord:
        """Persist a brand-new, unused and unrevoked record."""

    def mark_used(self, *, jti: str, used_at: datetime, replaced_by_jti: str) -> bool:
        """
        Consume ``jti`` only if it is still unused and unrevoked.

        :returns: ``True`` if this call flipped ``is_used``; ``False`` when the
            record is missing, was revoked, or somebody else consumed it first.
        """

    def revoke_family(self, *, token_family: str, user_id: str) -> int:
        """Revoke every not-yet-revoked record of the family. :returns: rows changed."""

    def revoke_all_for_user(self, user_id: str) -> int:
        """Revoke every not-yet-revoked record of the user. :returns: rows changed."""

    def revoke(self, jti: str) -> bool:
        """Revoke a single record. :returns: True if it changed."""

    def list_family(self, token_family: str) -> list[RefreshTokenRecord]:
        """List every record of a family, oldest first."""

    def list_active(self, user_id: str, now: datetime) -> list[RefreshTokenRecord]:
        """List active records of a user, newest first."""

    def count_active(self, user_id: str, now: datetime) -> int:
        """Count active records of a user."""

    def delete_expired(self, now: datetime) -> int:
        """Hard-delete records whose ``expires_at`` has passed. :returns: rows deleted."""


class InMemoryTokenRecordStore(TokenRecordStore):
    """
    In-memory record store with atomic conditional updates.

    .. note::
       Uses a threading lock to emulate row-level atomicity in unit tests.
    """

    def __init__(self) -> None:
        self._by_jti: dict[str, RefreshTokenRecord] = {}
        self._lock = threading.Lock()

    # -------------------------- API ----------------------------

    def find_by_jti(self, jti: str) -> RefreshTokenRecord | None:
        with self._lock:
            return self._by_jti.get(jti)

    def insert(
        self,
        *,
        jti: str,
        token_family: str,
        secret_hash: str,
        user_id: str,
        expires_at: datetime,
        created_at: datetime,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> RefreshTokenRecord:
        record = RefreshTokenRecord(
            id=uuid4().hex,
            jti=jti,
            token_family=token_family,
            secret_hash=secret_hash,
            user_id=user_id,
            is_used=False,
            is_revoked=False,
            expires_at=expires_at,
            created_at=created_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        with self._lock:
            if jti in self._by_jti:
                raise ValueError(f"Duplicate jti: {jti}")
            self._by_jti[jti] = record
        return record

    def mark_used(self, *, jti: str, used_at: datetime, replaced_by_jti: str) -> bool:
        with self._lock:
            current = self._by_jti.get(jti)
            if current is None or current.is_used or current.is_revoked:
                return False
            self._by_jti[jti] = replace(
                current, is_used=True, last_used_at=used_at, replaced_by_jti=replaced_by_jti
            )
            return True

    def revoke_family(self, *, token_family: str, user_id: str) -> int:
        return self._revoke_where(
            lambda r: r.token_family == token_family and r.user_id == user_id
        )

    def revoke_all_for_user(self, user_id: str) -> int:
        return self._revoke_where(lambda r: r.user_id == user_id)

    def revoke(self, jti: str) -> bool:
        return self._revoke_where(lambda r: r.jti == jti) == 1

    def list_family(self, token_family: str) -> list[RefreshTokenRecord]:
        with self._lock:
            rows = [r for r in self._by_jti.values() if r.token_family == token_family]
        return sorted(rows, key=lambda r: r.created_at)

    def list_active(self, user_id: str, now: datetime) -> list[RefreshTokenRecord]:
        with self._lock:
            rows = [r for r in self._by_jti.values() if r.user_id == user_id and is_active(r, now)]
        return sorted(rows, key=lambda r: r.created_at, reverse=True)

    def count_active(self, user_id: str, now: datetime) -> int:
        return len(self.list_active(user_id, now))

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            stale = [j for j, r in self._by_jti.items() if r.expires_at <= now]
            for j in stale:
                del self._by_jti[j]
            return len(stale)

    # ------------------------- helpers -------------------------

    def _revoke_where(self, predicate) -> int:
        with self._lock:
            changed = 0
            for j, r in self._by_jti.items():
                if not r.is_revoked and predicate(r):
                    self._by_jti[j] = replace(r, is_revoked=True)
                    changed += 1
            return changed
