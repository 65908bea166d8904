# portfolio_core/services/market_data/rate_limiter.py
"""
Request pacing for market data providers.

Each provider owns one RateLimiter. Before every outbound request the
provider awaits ``acquire()``, which sleeps just long enough to keep
``min_interval + jitter`` seconds between consecutive requests.

Clock, sleep and random source are injected so tests run instantly and
deterministically.
"""

import asyncio
import logging
import random
import time
from typing import Awaitable, Callable

from portfolio_core.config import settings
from portfolio_core.services.protocols import Clock

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Minimum spacing between requests, with random jitter.

    Attributes:
        min_interval: Seconds that must separate two requests
        max_jitter: Upper bound of the random delay added to min_interval
    """

    def __init__(
            self,
            min_interval: float | None = None,
            max_jitter: float | None = None,
            clock: Clock = time.monotonic,
            sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
            rng: Callable[[], float] = random.random,
    ) -> None:
        self.min_interval = (
            settings.market_data_min_request_interval
            if min_interval is None else min_interval
        )
        self.max_jitter = (
            settings.market_data_max_jitter
            if max_jitter is None else max_jitter
        )
        self._clock = clock
        self._sleep = sleep
        self._rng = rng
        self._last_request: float | None = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> float:
        """
        Wait until the next request may be sent.

        Returns:
            Seconds actually waited (0.0 when no wait was needed)
        """
        async with self._lock:
            waited = 0.0
            if self._last_request is not None:
                required = self.min_interval + self._rng() * self.max_jitter
                elapsed = self._clock() - self._last_request
                if elapsed < required:
                    waited = required - elapsed
                    logger.debug(f"Rate limiting: waiting {waited * 1000:.0f}ms")
                    await self._sleep(waited)
            self._last_request = self._clock()
            return waited

    def reset(self) -> None:
        """Forget the last request time."""
        self._last_request = None
