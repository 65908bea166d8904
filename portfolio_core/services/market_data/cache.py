# portfolio_core/services/market_data/cache.py
"""
In-memory TTL cache implementing the ``Cache`` protocol.

Providers receive their cache through the constructor, so persistence is
the caller's choice: this implementation for tests and short-lived
processes, anything with the same get/put shape elsewhere.
"""

import logging
import time
from typing import Any

from portfolio_core.config import settings
from portfolio_core.services.protocols import Clock

logger = logging.getLogger(__name__)


class InMemoryCache:
    """
    Dict-backed cache whose entries expire after ``ttl_seconds``.

    A TTL of 0 disables expiry.
    """

    def __init__(
            self,
            ttl_seconds: int | None = None,
            clock: Clock = time.time,
    ) -> None:
        self.ttl_seconds = (
            settings.price_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        )
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        stored_at, value = entry
        if self.ttl_seconds and self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            logger.debug(f"Cache entry expired: {key}")
            return None

        return value

    def put(self, key: str, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
