"""
refresh_engine.services._shared.ports
=====================================

Collection of *ports* (hexagonal interfaces) the token engine depends on.

Modules
-------
- :mod:`token_record_store`:
    Defines :class:`~.TokenRecordStore` and the :class:`~.RefreshTokenRecord`
    value type, plus an in-memory implementation for tests.

- :mod:`credential_signer`:
    Defines :class:`~.CredentialSigner`: signing/verification of access and
    refresh credentials (opaque cryptographic primitive).

- :mod:`identifier_generator`:
    Defines :class:`~.IdentifierGenerator`: jti and family identifiers.

Design Notes
------------
Concrete adapters (SQLAlchemy, Redis, PyJWT, ``secrets``) implement these
interfaces under ``refresh_engine.infra``.
"""

from __future__ import annotations

from .credential_signer import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    CredentialSigner,
    StubCredentialSigner,
)
from .identifier_generator import IdentifierGenerator, SequentialIdentifierGenerator
from .token_record_store import (
    InMemoryTokenRecordStore,
    RefreshTokenRecord,
    TokenRecordStore,
)

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "CredentialSigner",
    "StubCredentialSigner",
    "IdentifierGenerator",
    "SequentialIdentifierGenerator",
    "TokenRecordStore",
    "RefreshTokenRecord",
    "InMemoryTokenRecordStore",
]
