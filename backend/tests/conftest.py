"""Pytest fixtures for the token engine.

The Flask application is created once per session (``TestingConfig``: an
in-memory SQLite database and throwaway signing secrets). Tables are created
and dropped around every test that asks for ``db`` so committed rows never
leak between cases; the SQL store commits through its own Unit of Work.
"""

from __future__ import annotations

import os

import pytest
from refresh_engine.core.config import TestingConfig
from refresh_engine.core.extensions import db as _db  # Flask-SQLAlchemy instance
from refresh_engine.core.security import SecretHasher
from refresh_engine.factory import create_app  # application factory under test
from refresh_engine.services._shared.ports import (
    InMemoryTokenRecordStore,
    SequentialIdentifierGenerator,
    StubCredentialSigner,
)
from refresh_engine.services.sessions import SessionService
from refresh_engine.services.tokens import (
    FamilyRevoker,
    TokenEngineConfig,
    TokenIssuer,
    TokenRotator,
    TokenValidator,
)
from tests.helpers.utils import T0, FrozenClock


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestingConfig` applied, kept inside
        an application context for the whole session.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestingConfig, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    with app.app_context():
        yield app


@pytest.fixture()
def db(app):
    """Create all tables for one test and drop them afterwards.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    _db.create_all()
    yield _db
    _db.session.remove()
    _db.drop_all()


@pytest.fixture()
def session(db):
    """Return the Flask-scoped session used by repositories and the UoW."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(db.session)
    yield db.session
    SQLAlchemySession.set(None)


@pytest.fixture()
def client(app, db):
    """Flask test client with a fresh schema."""
    return app.test_client()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Engine wired to in-memory doubles -----------------------------------------
@pytest.fixture()
def clock() -> FrozenClock:
    """Manually advanced UTC clock starting at ``T0``."""
    return FrozenClock(T0)


@pytest.fixture()
def store() -> InMemoryTokenRecordStore:
    return InMemoryTokenRecordStore()


@pytest.fixture()
def hasher() -> SecretHasher:
    # Low iteration count keeps the suite fast
    return SecretHasher(method="pbkdf2:sha256:1")


@pytest.fixture()
def engine_cfg() -> TokenEngineConfig:
    return TokenEngineConfig(access_ttl_seconds=900, refresh_ttl_seconds=3600)


@pytest.fixture()
def signer() -> StubCredentialSigner:
    return StubCredentialSigner()


@pytest.fixture()
def ids() -> SequentialIdentifierGenerator:
    return SequentialIdentifierGenerator(prefix="id")


@pytest.fixture()
def revoker(store) -> FamilyRevoker:
    return FamilyRevoker(store=store)


@pytest.fixture()
def issuer(store, signer, ids, hasher, engine_cfg, clock) -> TokenIssuer:
    return TokenIssuer(
        store=store, signer=signer, ids=ids, hasher=hasher, config=engine_cfg, clock=clock
    )


@pytest.fixture()
def validator(store, hasher, revoker, clock) -> TokenValidator:
    return TokenValidator(store=store, hasher=hasher, revoker=revoker, clock=clock)


@pytest.fixture()
def rotator(store, hasher, revoker, engine_cfg, clock) -> TokenRotator:
    return TokenRotator(
        store=store, hasher=hasher, revoker=revoker, config=engine_cfg, clock=clock
    )


@pytest.fixture()
def sessions(
    store, signer, ids, issuer, validator, rotator, revoker, engine_cfg, clock
) -> SessionService:
    """SessionService wired to in-memory doubles and the frozen clock."""
    return SessionService(
        store=store,
        signer=signer,
        ids=ids,
        issuer=issuer,
        validator=validator,
        rotator=rotator,
        revoker=revoker,
        config=engine_cfg,
        clock=clock,
    )
