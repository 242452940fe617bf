# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from refresh_engine.models.refresh_token import RefreshToken
from refresh_engine.services._shared.ports import RefreshTokenRecord, TokenRecordStore
from refresh_engine.uow import SQLAlchemyUnitOfWork


def _aware(dt: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back; every stored value is UTC.
    if dt is None:
        return None
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


def to_record(row: RefreshToken) -> RefreshTokenRecord:
    """Detach an ORM row into an immutable :class:`RefreshTokenRecord`."""
    return RefreshTokenRecord(
        id=row.id,
        jti=row.jti,
        token_family=row.token_family,
        secret_hash=row.secret_hash,
        user_id=row.user_id,
        is_used=bool(row.is_used),
        is_revoked=bool(row.is_revoked),
        expires_at=_aware(row.expires_at),  # type: ignore[arg-type]
        created_at=_aware(row.created_at),  # type: ignore[arg-type]
        last_used_at=_aware(row.last_used_at),
        replaced_by_jti=row.replaced_by_jti,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
    )


@dataclass(slots=True)
class SQLAlchemyTokenRecordStore(TokenRecordStore):
    """
    Relational refresh-token store.

    Each call runs in its own Unit of Work (one short transaction). The
    single-use guarantee comes from ``mark_used`` being a conditional
    ``UPDATE ... WHERE is_used = false`` whose affected-row count decides the
    winner; no read-modify-write happens in Python.

    :param uow_factory: Callable returning a fresh writer Unit of Work.
    """

    uow_factory: Callable[[], SQLAlchemyUnitOfWork] = field(default=SQLAlchemyUnitOfWork)

    # -------------------- reads ------------------------

    def find_by_jti(self, jti: str) -> RefreshTokenRecord | None:
        with self.uow_factory() as uow:
            row = uow.refresh_tokens.get_by_jti(jti)
            return to_record(row) if row is not None else None

    def list_family(self, token_family: str) -> list[RefreshTokenRecord]:
        with self.uow_factory() as uow:
            return [to_record(r) for r in uow.refresh_tokens.list_family(token_family)]

    def list_active(self, user_id: str, now: datetime) -> list[RefreshTokenRecord]:
        with self.uow_factory() as uow:
            rows = uow.refresh_tokens.list_active_for_user(user_id, now)
            return [to_record(r) for r in rows]

    def count_active(self, user_id: str, now: datetime) -> int:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.count_active_for_user(user_id, now)

    # -------------------- writes -----------------------

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
        with self.uow_factory() as uow:
            row = uow.refresh_tokens.add(
                RefreshToken(
                    jti=jti,
                    token_family=token_family,
                    secret_hash=secret_hash,
                    user_id=user_id,
                    is_used=False,
                    is_revoked=False,
                    expires_at=expires_at,
                    created_at=created_at,
                    updated_at=created_at,
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
            )
            # Detach before commit expires the instance
            record = to_record(row)
        return record

    def mark_used(self, *, jti: str, used_at: datetime, replaced_by_jti: str) -> bool:
        with self.uow_factory() as uow:
            changed = uow.refresh_tokens.mark_used_if_unused(
                jti=jti, used_at=used_at, replaced_by_jti=replaced_by_jti
            )
        return changed == 1

    def revoke_family(self, *, token_family: str, user_id: str) -> int:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.revoke_where(token_family=token_family, user_id=user_id)

    def revoke_all_for_user(self, user_id: str) -> int:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.revoke_where(user_id=user_id)

    def revoke(self, jti: str) -> bool:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.revoke_where(jti=jti) == 1

    def delete_expired(self, now: datetime) -> int:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.delete_expired(now)
