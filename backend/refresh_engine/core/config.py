"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

STORE_BACKENDS: Final[frozenset[str]] = frozenset({"sql", "redis", "memory"})


# Load .env in development (no-op when the file is missing)
load_dotenv()


class ConfigurationError(RuntimeError):
    """Raised at startup when mandatory settings are missing or unsafe."""


TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "y", "on"})


def as_bool(value: object, default: bool = False) -> bool:
    """Coerce a setting that may arrive as a string into a boolean.

    ``None`` yields ``default``; real booleans pass through; anything else is
    compared against :data:`TRUTHY` after ``str()``, so ``"false"`` is ``False``.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUTHY


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    return as_bool(os.getenv(name), default)


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: int
        Value returned when the variable is unset or blank.

    Returns
    -------
    int
        Parsed value.

    Raises
    ------
    ConfigurationError
        If the variable is set but is not a valid integer.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {val!r}") from exc


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    JWT_ACCESS_SECRET: str | None
        Key signing short-lived access credentials. No fallback: the engine
        refuses to start without it.
    JWT_REFRESH_SECRET: str | None
        Key signing refresh credentials. Must differ from the access key.
    JWT_ALGORITHM: str
        HMAC algorithm used by the PyJWT signer.
    JWT_ISSUER: str | None
        Optional ``iss`` claim stamped on and required from every credential.
    ACCESS_TOKEN_TTL_SECONDS: int
        Access credential lifetime (15 minutes by default).
    REFRESH_TOKEN_TTL_SECONDS: int
        Refresh credential lifetime (7 days by default).
    TOKEN_STORE_BACKEND: str
        ``"sql"`` (default), ``"redis"`` or ``"memory"``.
    REDIS_URL: str | None
        Connection URL, required when the Redis backend is selected.
    REFRESH_SECRET_HASH_METHOD: str
        Werkzeug hash method used for ``secret_hash``.
    REVOKE_FAMILY_ON_CONCURRENT_ROTATION: bool
        Also revoke the family when a concurrent rotation loses the race.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Signing secrets: deliberately no defaults
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER") or None

    # Lifetimes (fallback defaults live here, not in the engine)
    ACCESS_TOKEN_TTL_SECONDS = env_int("ACCESS_TOKEN_TTL_SECONDS", 900)
    REFRESH_TOKEN_TTL_SECONDS = env_int("REFRESH_TOKEN_TTL_SECONDS", 604800)

    # Token store
    TOKEN_STORE_BACKEND = os.getenv("TOKEN_STORE_BACKEND", "sql").strip().lower()
    REDIS_URL = os.getenv("REDIS_URL") or None
    REFRESH_SECRET_HASH_METHOD = os.getenv("REFRESH_SECRET_HASH_METHOD", "pbkdf2:sha256:1000")
    REVOKE_FAMILY_ON_CONCURRENT_ROTATION = env_bool("REVOKE_FAMILY_ON_CONCURRENT_ROTATION", False)

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & proxy
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)
    PROXY_TRUSTED_HOPS = env_int("PROXY_TRUSTED_HOPS", 1)

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Secrets are still read from the environment (or ``.env``); development
    does not get a guessable fallback either.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Ships throwaway signing secrets so the suite does not depend on env.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = True
    JWT_ACCESS_SECRET = "test-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET = "test-refresh-secret-fedcba9876543210"
    TOKEN_STORE_BACKEND = "sql"
    REDIS_URL = None
    REVOKE_FAMILY_ON_CONCURRENT_ROTATION = False
    REFRESH_SECRET_HASH_METHOD = "pbkdf2:sha256:1"
    USE_PROXYFIX = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments."""

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
