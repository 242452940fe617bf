"""Refresh-token record persisted for rotation and replay detection."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column, validates

from refresh_engine.core.extensions import db

from .base import ReprMixin, TimestampMixin, UUIDPKMixin


class RefreshToken(UUIDPKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    One row per issued refresh token.

    Rows descended from the same sign-in share ``token_family`` and form a
    forward chain through ``replaced_by_jti``. Only the hash of the signed
    credential is stored.

    Fields
    ------
    jti : str
        Identifier embedded in the signed credential. Unique forever.
    token_family : str
        Session lineage shared by every rotation of one sign-in.
    secret_hash : str
        Salted one-way hash of the refresh credential.
    user_id : str
        Owning principal (string-encoded subject). No FK: user records live
        in another bounded context.
    is_used : bool
        Flipped once, by a successful rotation.
    is_revoked : bool
        Flipped once, by logout, admin action or replay detection.
    expires_at : datetime
        Absolute expiry.
    last_used_at : datetime | None
        Rotation timestamp that consumed the row.
    replaced_by_jti : str | None
        Successor jti.
    ip_address, user_agent : str | None
        Provenance metadata, informational only.
    """

    __tablename__ = "refresh_tokens"
    __repr_fields__ = ("jti", "token_family", "is_used", "is_revoked")

    # Columns
    jti: Mapped[str] = mapped_column(String(128), nullable=False)
    token_family: Mapped[str] = mapped_column(String(128), nullable=False)
    secret_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    is_used: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    is_revoked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    replaced_by_jti: Mapped[str | None] = mapped_column(String(128), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    # Constraints & indexes
    __table_args__ = (
        UniqueConstraint("jti", name="uq_refresh_tokens_jti"),
        Index("ix_refresh_tokens_user_id_is_revoked", "user_id", "is_revoked"),
        Index("ix_refresh_tokens_token_family_is_revoked", "token_family", "is_revoked"),
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )

    # -------------------- Validators --------------------
    @validates("user_agent")
    def _truncate_user_agent(self, key: str, value: str | None) -> str | None:
        """
        Clip oversized user agents to the column width.

        :param key: Field name (``user_agent``).
        :type key: str
        :param value: Raw header value.
        :type value: str | None
        :returns: Value truncated to 512 characters.
        :rtype: str | None
        """
        if value is None:
            return None
        return value[:512]
