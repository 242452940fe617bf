"""Convenience exports for application schemas."""

from __future__ import annotations

from .session import LogoutSchema, RefreshSchema, SessionSchema, TokenPairSchema

__all__ = [
    "RefreshSchema",
    "LogoutSchema",
    "TokenPairSchema",
    "SessionSchema",
]
