"""
Unit of Work contract for token-store writes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from refresh_engine.repositories import RefreshTokenRepository


class UnitOfWork(ABC):
    """
    One transaction around one store operation.

    A clean exit commits; an exception inside the block (or a failing commit)
    rolls back and propagates. Conditional writes such as ``mark_used`` only
    count as won once the commit succeeded.
    """

    refresh_tokens: RefreshTokenRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
