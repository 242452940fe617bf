"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask, HTTP, SQLAlchemy or Redis directly. They serve as stable contracts
between the token engine, its adapters and the session service.

The translation to HTTP responses (RFC 7807) is handled by
``refresh_engine/core/errors.py`` via ``BaseService.translate_exceptions()``.

Infrastructure failures (database unavailable, Redis down, ...) are *not*
part of this taxonomy: they propagate unchanged.
"""

from __future__ import annotations

# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer or BaseService will later translate them to APIError.
    """

    pass


class TokenError(ServiceError):
    """
    Base class for every refresh-token failure.

    :ivar code: Stable machine-readable identifier surfaced to clients.
    """

    code = "invalid_token"
    default_message = "Refresh token is not valid. Please sign in."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


# --------------------------------------------------------------------------- #
# Token lifecycle errors
# --------------------------------------------------------------------------- #


class InvalidTokenError(TokenError):
    """Unknown jti, bad signature, or secret mismatch."""

    code = "invalid_token"
    default_message = "Refresh token is not valid. Please sign in."


class TokenExpiredError(TokenError):
    """The record exists but is past ``expires_at``."""

    code = "token_expired"
    default_message = "Refresh token has expired. Please sign in."


class TokenRevokedError(TokenError):
    """The record was revoked by logout or an administrative action."""

    code = "token_revoked"
    default_message = "Refresh token has been revoked. Please sign in."


class ReplayDetectedError(TokenError):
    """
    An already-rotated token was presented again.

    Raised only after every record of the family has been revoked.

    :param token_family: Family that was revoked.
    :type token_family: str
    :param user_id: Owner of the family.
    :type user_id: str
    """

    code = "replay_detected"
    default_message = (
        "Refresh token reuse detected. All sessions of this sign-in were terminated; "
        "please sign in again."
    )

    def __init__(
        self,
        message: str | None = None,
        *,
        token_family: str | None = None,
        user_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.token_family = token_family
        self.user_id = user_id


class ConcurrentRotationError(TokenError):
    """Another request consumed the same refresh token first."""

    code = "concurrent_rotation"
    default_message = "Refresh token was already used by a concurrent request. Please sign in."


__all__ = [
    "ServiceError",
    "TokenError",
    "InvalidTokenError",
    "TokenExpiredError",
    "TokenRevokedError",
    "ReplayDetectedError",
    "ConcurrentRotationError",
]
