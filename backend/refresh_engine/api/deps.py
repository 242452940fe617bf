"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from refresh_engine.core.engine import get_session_service
from refresh_engine.core.errors import Unauthorized
from refresh_engine.services.sessions import SessionService

F = TypeVar("F", bound=Callable[..., Any])


def session_service() -> SessionService:
    """Return the session service bound to the current application."""

    return get_session_service()


def client_context() -> tuple[str | None, str | None]:
    """Return ``(ip, user_agent)`` of the current request as plain values."""

    ua = request.headers.get("User-Agent") or None
    return request.remote_addr, ua


def bearer_token() -> str:
    """Extract the bearer credential from ``Authorization``."""

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Missing bearer token", code="missing_token")
    return token.strip()


def require_access_token(func: F) -> F:
    """Ensure the request carries a valid access token; claims go to ``g``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        g.access_claims = session_service().authenticate_access(bearer_token())
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def no_content() -> Response:
    """Return an empty ``204 No Content`` response."""

    return Response(status=204)


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
