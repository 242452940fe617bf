# refresh_engine/services/_shared/base.py
from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from refresh_engine.core import errors as api_errors
from refresh_engine.services._shared.errors import (
    ReplayDetectedError,
    ServiceError,
    TokenError,
)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Return the current timezone-aware UTC time."""
    return datetime.now(UTC)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Own the clock so time-dependent rules are testable.
    * Centralize error translation (domain → HTTP).
    * Keep services thin, orchestration-only, no web/ORM leakage.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        """
        Initialize the base service.

        :param clock: Callable returning an aware UTC ``datetime``.
        :type clock: Callable[[], datetime] | None
        """
        self.clock: Clock = clock or utcnow

    def now_utc(self) -> datetime:
        """Return "now" according to the injected clock."""
        return self.clock()

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, ReplayDetectedError):
            # → 403: every session of the sign-in was terminated
            return api_errors.Forbidden(str(exc), code=exc.code)

        if isinstance(exc, TokenError):
            # → 401: re-authentication required
            return api_errors.Unauthorized(str(exc), code=exc.code)

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(
                message=str(exc),
                status_code=400,
                code="bad_request",
            )

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
