"""Refresh-token repository: lookups and conditional bulk updates."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, cast

from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import CursorResult

from refresh_engine.models.refresh_token import RefreshToken
from refresh_engine.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`.

    Every mutating method is a single conditional ``UPDATE``/``DELETE`` so the
    database arbitrates concurrent writers; callers read the affected-row
    count instead of re-reading state.
    """

    model = RefreshToken

    def _filterable_fields(self):
        """Whitelist fields safe for equality filters."""
        return {
            "jti": RefreshToken.jti,
            "token_family": RefreshToken.token_family,
            "user_id": RefreshToken.user_id,
            "is_used": RefreshToken.is_used,
            "is_revoked": RefreshToken.is_revoked,
        }

    def _rowcount(self, stmt: Any) -> int:
        result = cast(CursorResult[Any], self.session.execute(stmt))
        return int(result.rowcount or 0)

    # ---------------------------- Lookups ----------------------------

    def get_by_jti(self, jti: str) -> RefreshToken | None:
        """Fetch a row by jti.

        :param jti: Token identifier.
        :type jti: str
        :returns: Row or ``None``.
        :rtype: RefreshToken | None
        """
        stmt = select(RefreshToken).where(RefreshToken.jti == jti)
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def list_family(self, token_family: str) -> Sequence[RefreshToken]:
        """Return every row of a family ordered from oldest to newest."""
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.token_family == token_family)
            .order_by(RefreshToken.created_at.asc(), RefreshToken.id.asc())
        )
        return self.session.execute(stmt).scalars().all()

    def _active_clause(self, user_id: str, now: datetime) -> list[Any]:
        return [
            RefreshToken.user_id == user_id,
            RefreshToken.is_revoked.is_(False),
            RefreshToken.is_used.is_(False),
            RefreshToken.expires_at > now,
        ]

    def list_active_for_user(self, user_id: str, now: datetime) -> Sequence[RefreshToken]:
        """Return active rows of a user, newest first."""
        stmt = (
            select(RefreshToken)
            .where(*self._active_clause(user_id, now))
            .order_by(RefreshToken.created_at.desc(), RefreshToken.id.desc())
        )
        return self.session.execute(stmt).scalars().all()

    def count_active_for_user(self, user_id: str, now: datetime) -> int:
        """Count active rows of a user."""
        stmt = select(func.count()).select_from(RefreshToken).where(
            *self._active_clause(user_id, now)
        )
        return int(self.session.execute(stmt).scalar_one())

    # ---------------------------- Conditional writes ----------------------------

    def mark_used_if_unused(self, *, jti: str, used_at: datetime, replaced_by_jti: str) -> int:
        """Compare-and-swap ``is_used`` from false to true on an unrevoked row.

        ``UPDATE refresh_tokens SET is_used = true ...
        WHERE jti = ? AND is_used = false AND is_revoked = false``

        :returns: Affected rows (``1`` for the winner, ``0`` otherwise).
        :rtype: int
        """
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.jti == jti,
                RefreshToken.is_used.is_(False),
                RefreshToken.is_revoked.is_(False),
            )
            .values(is_used=True, last_used_at=used_at, replaced_by_jti=replaced_by_jti)
            .execution_options(synchronize_session=False)
        )
        return self._rowcount(stmt)

    def revoke_where(self, **filters: Any) -> int:
        """Set ``is_revoked`` on every unrevoked row matching ``filters``.

        :param filters: Whitelisted equality filters (at least one required).
        :type filters: dict[str, Any]
        :returns: Affected rows.
        :rtype: int
        :raises ValueError: If no filter is given.
        """
        if not filters:
            raise ValueError("Refusing to revoke every refresh token without a filter.")
        allowed = self._filterable_fields()
        clauses = [RefreshToken.is_revoked.is_(False)]
        for k, v in filters.items():
            col = allowed.get(k)
            if col is None:
                raise ValueError(f"Unknown or non-filterable field: {k}")
            clauses.append(col == v)
        stmt = (
            update(RefreshToken)
            .where(*clauses)
            .values(is_revoked=True)
            .execution_options(synchronize_session=False)
        )
        return self._rowcount(stmt)

    def delete_expired(self, now: datetime) -> int:
        """Hard-delete rows whose ``expires_at`` is not after ``now``."""
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return self._rowcount(stmt)
