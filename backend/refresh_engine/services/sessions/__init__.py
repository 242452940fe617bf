"""Session lifecycle service built on the token engine."""

from __future__ import annotations

from .dto import LogoutIn, RefreshIn, SessionOut, StartSessionIn, TokenPairOut
from .service import SessionService

__all__ = [
    "SessionService",
    "StartSessionIn",
    "RefreshIn",
    "LogoutIn",
    "TokenPairOut",
    "SessionOut",
]
