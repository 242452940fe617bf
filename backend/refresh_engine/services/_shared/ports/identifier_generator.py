from __future__ import annotations

import threading
from typing import Protocol


class IdentifierGenerator(Protocol):
    """Port producing globally-unique identifiers for jti and token families."""

    def new_id(self) -> str:
        """Return a fresh, never-before-seen identifier."""


class SequentialIdentifierGenerator(IdentifierGenerator):
    """Predictable identifiers (``<prefix>-1``, ``<prefix>-2``...) for unit tests."""

    def __init__(self, prefix: str = "id") -> None:
        self._prefix = prefix
        self._seq = 0
        self._lock = threading.Lock()

    def new_id(self) -> str:
        with self._lock:
            self._seq += 1
            return f"{self._prefix}-{self._seq}"
