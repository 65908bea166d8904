# portfolio_core/services/market_data/base.py
"""
Abstract base for market data providers.

Concrete providers implement the ``_fetch_*`` coroutines and raise
MarketDataError subclasses on failure. The public coroutines defined here
add the behaviour every provider shares:

- pacing through the provider's own RateLimiter
- retry with exponential backoff (tenacity) on transient errors
- read-through caching via an injected Cache
- conversion of the final failure into None

The valuation layer only sees the public coroutines, which satisfy
MarketDataProviderProtocol and never raise for missing data.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from portfolio_core.config import settings
from portfolio_core.services.exceptions import (
    MarketDataError,
    ProviderUnavailableError,
    RateLimitError,
)
from portfolio_core.services.market_data.cache import InMemoryCache
from portfolio_core.services.market_data.rate_limiter import RateLimiter
from portfolio_core.services.protocols import Cache

logger = logging.getLogger(__name__)

T = TypeVar('T')


class MarketDataProvider(ABC):
    """
    Abstract base class for market data providers.

    Retry Behavior:
        ``_execute_with_retry`` implements exponential backoff. Subclasses
        can override the wait configuration through class attributes:

        - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
        - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
        - RETRY_MULTIPLIER: Exponential multiplier (default: 1)

        The number of attempts comes from settings.market_data_retry_attempts
        unless passed to the constructor.

    Retryable Exceptions:
        - ProviderUnavailableError: Network issues, timeouts, server errors
        - RateLimitError: HTTP 429

    Non-Retryable Exceptions:
        - TickerNotFoundError: Permanent failure (symbol doesn't exist)
    """

    # =========================================================================
    # RETRY CONFIGURATION (can be overridden by subclasses)
    # =========================================================================

    RETRY_MIN_WAIT: float = 1
    RETRY_MAX_WAIT: float = 10
    RETRY_MULTIPLIER: float = 1

    def __init__(
            self,
            rate_limiter: RateLimiter | None = None,
            cache: Cache | None = None,
            max_retry_attempts: int | None = None,
    ) -> None:
        self.rate_limiter = rate_limiter or RateLimiter()
        self.cache: Cache = cache if cache is not None else InMemoryCache()
        self.max_retry_attempts = (
            max_retry_attempts or settings.market_data_retry_attempts
        )

    # =========================================================================
    # ABSTRACT PROPERTIES AND METHODS
    # =========================================================================

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name used in logs and error messages (e.g., "yahoo")."""
        pass

    @abstractmethod
    async def _fetch_current_price(self, ticker: str) -> Decimal | None:
        """
        Fetch the latest price of a ticker in its native currency.

        Raises:
            TickerNotFoundError: Symbol unknown
            ProviderUnavailableError: Network or API error (retryable)
            RateLimitError: Rate limit exceeded (retryable)
        """
        pass

    @abstractmethod
    async def _fetch_historical_prices(
            self,
            ticker: str,
            since: date,
    ) -> dict[date, Decimal] | None:
        """Fetch the price series of a ticker from ``since`` onwards."""
        pass

    @abstractmethod
    async def _fetch_current_fx_rate(self, pair: str) -> Decimal | None:
        """Fetch the latest rate for a six-letter pair such as "USDJPY"."""
        pass

    @abstractmethod
    async def _fetch_historical_fx_rate(self, pair: str, on: date) -> Decimal | None:
        """Fetch the rate for ``pair`` on (or just before) ``on``."""
        pass

    # =========================================================================
    # PUBLIC API (MarketDataProviderProtocol)
    # =========================================================================

    async def get_current_price(
            self,
            ticker: str,
            force_refresh: bool = False,
    ) -> Decimal | None:
        return await self._cached(
            f"price:{ticker.upper()}",
            self._fetch_current_price,
            ticker,
            refresh=force_refresh,
        )

    async def get_current_prices(
            self,
            tickers: list[str],
            force_refresh: bool = False,
    ) -> dict[str, Decimal | None]:
        """
        Fetch current prices for several tickers.

        Default implementation calls get_current_price() for each ticker in
        order (the rate limiter serializes requests anyway). Subclasses can
        override for a real batch endpoint.
        """
        results: dict[str, Decimal | None] = {}
        for ticker in tickers:
            if ticker not in results:
                results[ticker] = await self.get_current_price(ticker, force_refresh)
        return results

    async def get_historical_prices(
            self,
            ticker: str,
            since: date,
    ) -> dict[date, Decimal] | None:
        return await self._cached(
            f"history:{ticker.upper()}:{since.isoformat()}",
            self._fetch_historical_prices,
            ticker,
            since,
        )

    async def get_current_fx_rate(self, pair: str, force_refresh: bool = False) -> Decimal | None:
        return await self._cached(
            f"fx:{pair.upper()}",
            self._fetch_current_fx_rate,
            pair,
            refresh=force_refresh,
        )

    async def get_historical_fx_rate(self, pair: str, on: date) -> Decimal | None:
        return await self._cached(
            f"fx:{pair.upper()}:{on.isoformat()}",
            self._fetch_historical_fx_rate,
            pair,
            on,
        )

    # =========================================================================
    # CACHING + FAILURE HANDLING
    # =========================================================================

    async def _cached(
            self,
            key: str,
            func: Callable[..., Awaitable[T]],
            *args: Any,
            refresh: bool = False,
    ) -> T | None:
        """
        Read-through cache around a retried fetch.

        Only non-None results are cached, so a transient outage is retried
        on the next request instead of being remembered. ``refresh`` skips
        the read but still stores what the fetch returns.
        """
        if refresh:
            logger.debug(f"Cache bypass: {key}")
        else:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Cache hit: {key}")
                return cached

        try:
            value = await self._execute_with_retry(func, *args)
        except MarketDataError as e:
            logger.error(f"{self.name}: giving up on {key}: {e}", extra={"provider": self.name})
            return None

        if value is not None:
            self.cache.put(key, value)
        return value

    # =========================================================================
    # RETRY HELPER METHOD
    # =========================================================================

    async def _execute_with_retry(
            self,
            func: Callable[..., Awaitable[T]],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a coroutine function with pacing and retry.

        Uses exponential backoff for retryable exceptions:
        - ProviderUnavailableError
        - RateLimitError

        Every attempt (including retries) first waits on the rate limiter.

        Returns:
            Return value of func

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.max_retry_attempts),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type((ProviderUnavailableError, RateLimitError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async def _inner() -> T:
            await self.rate_limiter.acquire()
            return await func(*args, **kwargs)

        return await _inner()
