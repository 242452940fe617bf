"""Column mixins shared by the persistence models (typed 2.0)."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar
from uuid import uuid4

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column


class TimestampMixin:
    """Audit columns ``created_at`` / ``updated_at``.

    ``created_at`` is normally supplied by the engine clock so stored
    timestamps agree with ``expires_at``; the server default only covers rows
    written outside the engine (fixtures, manual SQL). ``updated_at`` moves on
    every UPDATE, which makes the last rotation or revocation visible.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class UUIDPKMixin:
    """Opaque ``id`` (32-char hex UUID4) assigned before the INSERT is flushed."""

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid4().hex)


class ReprMixin:
    """``__repr__`` built from the attributes named in ``__repr_fields__``.

    Never list secret material (hashes, raw tokens) here: reprs end up in
    tracebacks and log lines.
    """

    __repr_fields__: ClassVar[tuple[str, ...]] = ("id",)

    def __repr__(self) -> str:
        fields = " ".join(f"{name}={getattr(self, name, None)}" for name in self.__repr_fields__)
        return f"<{type(self).__name__} {fields}>"
