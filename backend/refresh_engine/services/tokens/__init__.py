"""Refresh-token lifecycle engine: issue, validate, rotate, revoke."""

from __future__ import annotations

from .dto import IssuedTokens, TokenEngineConfig
from .issuer import TokenIssuer
from .revoker import FamilyRevoker
from .rotator import TokenRotator
from .validator import TokenValidator

__all__ = [
    "IssuedTokens",
    "TokenEngineConfig",
    "TokenIssuer",
    "TokenValidator",
    "TokenRotator",
    "FamilyRevoker",
]
