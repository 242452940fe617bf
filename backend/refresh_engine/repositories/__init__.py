"""Repository package exposing persistence-layer access for domain models."""

from __future__ import annotations

from refresh_engine.repositories.base import BaseRepository
from refresh_engine.repositories.refresh_token import RefreshTokenRepository

__all__ = [
    "BaseRepository",
    "RefreshTokenRepository",
]
