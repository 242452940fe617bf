from __future__ import annotations

import secrets
from dataclasses import dataclass

from refresh_engine.services._shared.ports import IdentifierGenerator

MIN_ENTROPY_BYTES = 16


@dataclass(frozen=True, slots=True)
class SecureIdentifierGenerator(IdentifierGenerator):
    """
    Cryptographically random identifiers (hex-encoded).

    :param nbytes: Random bytes per identifier (the hex string is twice as long).
    :raises ValueError: If ``nbytes`` is below 16 (128 bits).
    """

    nbytes: int = 32

    def __post_init__(self) -> None:
        if self.nbytes < MIN_ENTROPY_BYTES:
            raise ValueError(f"nbytes must be >= {MIN_ENTROPY_BYTES}")

    def new_id(self) -> str:
        return secrets.token_hex(self.nbytes)
