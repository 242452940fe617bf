"""Token engine wiring: build the store, signer and services from config."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from flask import Flask, current_app

from refresh_engine.core.config import STORE_BACKENDS, ConfigurationError, as_bool
from refresh_engine.core.security import SecretHasher
from refresh_engine.services._shared.base import Clock
from refresh_engine.services._shared.ports import InMemoryTokenRecordStore, TokenRecordStore
from refresh_engine.services.sessions import SessionService
from refresh_engine.services.tokens import (
    FamilyRevoker,
    TokenEngineConfig,
    TokenIssuer,
    TokenRotator,
    TokenValidator,
)

log = logging.getLogger(__name__)

EXTENSION_KEY = "session_service"


def build_store(config: Mapping[str, Any]) -> TokenRecordStore:
    """Instantiate the record store selected by ``TOKEN_STORE_BACKEND``.

    Raises
    ------
    ConfigurationError
        If the backend name is unknown or Redis is selected without a client.
    """
    backend = str(config.get("TOKEN_STORE_BACKEND", "sql")).lower()
    if backend not in STORE_BACKENDS:
        raise ConfigurationError(
            f"TOKEN_STORE_BACKEND must be one of {sorted(STORE_BACKENDS)}, got {backend!r}"
        )

    if backend == "memory":
        return InMemoryTokenRecordStore()

    if backend == "redis":
        from refresh_engine.core.extensions import redis_client
        from refresh_engine.infra.redis.redis_token_record_store import RedisTokenRecordStore

        if redis_client is None:
            raise ConfigurationError("TOKEN_STORE_BACKEND=redis requires REDIS_URL.")
        return RedisTokenRecordStore(redis_client)

    from refresh_engine.infra.sqlalchemy.sqlalchemy_token_record_store import (
        SQLAlchemyTokenRecordStore,
    )

    return SQLAlchemyTokenRecordStore()


def build_session_service(
    config: Mapping[str, Any],
    *,
    store: TokenRecordStore | None = None,
    clock: Clock | None = None,
) -> SessionService:
    """Assemble the engine components around one store and one clock."""
    from refresh_engine.infra.crypto.secure_identifier_generator import (
        SecureIdentifierGenerator,
    )
    from refresh_engine.infra.jwt.pyjwt_credential_signer import JWTCredentialSigner

    engine_cfg = TokenEngineConfig(
        access_ttl_seconds=int(config.get("ACCESS_TOKEN_TTL_SECONDS", 900)),
        refresh_ttl_seconds=int(config.get("REFRESH_TOKEN_TTL_SECONDS", 604800)),
        revoke_family_on_concurrent_rotation=as_bool(
            config.get("REVOKE_FAMILY_ON_CONCURRENT_ROTATION"), False
        ),
    )
    signer_kwargs: dict[str, Any] = {
        "access_secret": config.get("JWT_ACCESS_SECRET"),
        "refresh_secret": config.get("JWT_REFRESH_SECRET"),
        "algorithm": config.get("JWT_ALGORITHM", "HS256"),
        "issuer": config.get("JWT_ISSUER"),
    }
    if clock is not None:
        signer_kwargs["clock"] = clock
    signer = JWTCredentialSigner(**signer_kwargs)

    store = store if store is not None else build_store(config)
    ids = SecureIdentifierGenerator()
    hasher = SecretHasher(method=config.get("REFRESH_SECRET_HASH_METHOD", "pbkdf2:sha256:1000"))
    revoker = FamilyRevoker(store=store)

    return SessionService(
        store=store,
        signer=signer,
        ids=ids,
        issuer=TokenIssuer(
            store=store, signer=signer, ids=ids, hasher=hasher, config=engine_cfg, clock=clock
        ),
        validator=TokenValidator(store=store, hasher=hasher, revoker=revoker, clock=clock),
        rotator=TokenRotator(
            store=store, hasher=hasher, revoker=revoker, config=engine_cfg, clock=clock
        ),
        revoker=revoker,
        config=engine_cfg,
        clock=clock,
    )


def init_app(app: Flask) -> None:
    """Build the session service once and expose it via ``app.extensions``.

    Fails fast (``ConfigurationError``) when signing secrets are missing.
    """
    service = build_session_service(app.config)
    app.extensions[EXTENSION_KEY] = service
    log.info(
        "Token engine ready",
        extra={"backend": str(app.config.get("TOKEN_STORE_BACKEND", "sql")).lower()},
    )


def get_session_service() -> SessionService:
    """Return the session service of the current application."""
    service = current_app.extensions.get(EXTENSION_KEY)
    if service is None:
        raise RuntimeError("Token engine is not initialized. Call engine.init_app().")
    return service
