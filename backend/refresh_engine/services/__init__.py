"""Service layer public API.

Re-exports
----------
- Base primitives (from ``refresh_engine.services._shared.base``)
    * :class:`BaseService`

- Token engine (from ``refresh_engine.services.tokens``)
    * :class:`TokenIssuer`, :class:`TokenValidator`, :class:`TokenRotator`,
      :class:`FamilyRevoker`
    * DTOs: :class:`TokenEngineConfig`, :class:`IssuedTokens`

- Session service (from ``refresh_engine.services.sessions``)
    * :class:`SessionService`
    * DTOs: :class:`StartSessionIn`, :class:`RefreshIn`, :class:`LogoutIn`,
      :class:`TokenPairOut`, :class:`SessionOut`
"""

from __future__ import annotations

from ._shared.base import BaseService
from .sessions import (
    LogoutIn,
    RefreshIn,
    SessionOut,
    SessionService,
    StartSessionIn,
    TokenPairOut,
)
from .tokens import (
    FamilyRevoker,
    IssuedTokens,
    TokenEngineConfig,
    TokenIssuer,
    TokenRotator,
    TokenValidator,
)

__all__ = [
    # Base
    "BaseService",
    # Token engine
    "TokenIssuer",
    "TokenValidator",
    "TokenRotator",
    "FamilyRevoker",
    "TokenEngineConfig",
    "IssuedTokens",
    # Sessions
    "SessionService",
    "StartSessionIn",
    "RefreshIn",
    "LogoutIn",
    "TokenPairOut",
    "SessionOut",
]
