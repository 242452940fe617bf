# refresh_engine/services/tokens/dto.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TokenEngineConfig:
    """
    Lifetimes and policy knobs shared by the engine components.

    :param access_ttl_seconds: Access credential lifetime.
    :type access_ttl_seconds: int
    :param refresh_ttl_seconds: Refresh credential lifetime.
    :type refresh_ttl_seconds: int
    :param revoke_family_on_concurrent_rotation: Also revoke the family when a
        rotation loses the compare-and-swap race.
    :type revoke_family_on_concurrent_rotation: bool
    :raises ValueError: If a lifetime is not positive.
    """

    access_ttl_seconds: int = 900
    refresh_ttl_seconds: int = 604800
    revoke_family_on_concurrent_rotation: bool = False

    def __post_init__(self) -> None:
        if self.access_ttl_seconds <= 0 or self.refresh_ttl_seconds <= 0:
            raise ValueError("Token lifetimes must be positive.")


@dataclass(frozen=True, slots=True)
class IssuedTokens:
    """
    Credentials handed back to the client.

    :param access_token: Signed access credential.
    :param refresh_token: Signed refresh credential.
    :param expires_in: Access credential lifetime in seconds.
    :param token_type: Authorization scheme.
    """

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"
