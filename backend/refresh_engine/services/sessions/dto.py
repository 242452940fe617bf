# refresh_engine/services/sessions/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class StartSessionIn:
    """
    Input DTO for starting a session after credentials were verified.

    :param user_id: Authenticated principal.
    :type user_id: str | int
    :param email: Optional e-mail claim.
    :type email: str | None
    :param role: Optional role claim.
    :type role: str | None
    :param ip: Client address (provenance only).
    :type ip: str | None
    :param user_agent: Client User-Agent (provenance only).
    :type user_agent: str | None
    """

    user_id: str | int
    email: str | None = None
    role: str | None = None
    ip: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str
    ip: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Encoded refresh JWT (expired ones are accepted).
    :type refresh_token: str
    :param all_sessions: If True, revoke every session of the user.
    :type all_sessions: bool
    """

    refresh_token: str
    all_sessions: bool = False


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :param refresh_token: Encoded refresh JWT.
    :param expires_in: Access token lifetime in seconds.
    :param token_type: Authorization scheme.
    """

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"


@dataclass(frozen=True, slots=True)
class SessionOut:
    """One active sign-in as shown to its owner (no secrets)."""

    token_family: str
    created_at: datetime
    expires_at: datetime
    ip_address: str | None
    user_agent: str | None
