# portfolio_core/services/market_data/memo.py
"""
Per-call memoization of market data lookups.

A MemoizedMarketData instance lives for exactly one aggregation or
reconstruction pass. The first request for a key starts the provider call
as an asyncio Task; every later request for the same key, including one
issued while the first is still in flight, awaits that same Task. A pass
over N positions spanning K tickers therefore makes at most K price calls.

MemoizedMarketData satisfies MarketDataProviderProtocol itself, so the
valuator never needs to know whether it talks to a memo or a provider.

A memo built with ``force_refresh=True`` asks the provider to bypass its
own cache for current prices and current FX rates, so a forced pass sees
fresh quotes while still fetching each key only once.
"""

import asyncio
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Awaitable, Callable

from portfolio_core.services.protocols import MarketDataProviderProtocol

logger = logging.getLogger(__name__)


class MemoizedMarketData:
    """
    Single-flight wrapper around a MarketDataProviderProtocol.

    Attributes:
        provider: The wrapped provider
        fetch_count: Number of provider calls actually issued
        force_refresh: Bypass provider caches for current quotes
    """

    def __init__(
            self,
            provider: MarketDataProviderProtocol,
            force_refresh: bool = False,
    ) -> None:
        self.provider = provider
        self.force_refresh = force_refresh
        self.fetch_count = 0
        self._futures: dict[tuple, asyncio.Future] = {}

    def _single_flight(
            self,
            key: tuple,
            factory: Callable[[], Awaitable[Any]],
    ) -> asyncio.Future:
        future = self._futures.get(key)
        if future is None:
            self.fetch_count += 1
            future = asyncio.ensure_future(factory())
            self._futures[key] = future
        else:
            logger.debug(f"Memo hit: {key}")
        return future

    def _prime(self, key: tuple, value: Any) -> None:
        future = asyncio.get_running_loop().create_future()
        future.set_result(value)
        self._futures[key] = future

    # =========================================================================
    # MarketDataProviderProtocol
    # =========================================================================

    async def get_current_price(
            self,
            ticker: str,
            force_refresh: bool = False,
    ) -> Decimal | None:
        refresh = self.force_refresh or force_refresh
        return await self._single_flight(
            ("price", ticker),
            lambda: self.provider.get_current_price(ticker, force_refresh=refresh),
        )

    async def get_current_prices(
            self,
            tickers: list[str],
            force_refresh: bool = False,
    ) -> dict[str, Decimal | None]:
        """
        Fetch every ticker in one batch call and seed the memo with the result.

        Tickers already memoized are not requested again.
        """
        missing = [t for t in dict.fromkeys(tickers) if ("price", t) not in self._futures]
        if missing:
            self.fetch_count += 1
            fetched = await self.provider.get_current_prices(
                missing, force_refresh=self.force_refresh or force_refresh
            )
            for ticker in missing:
                if ("price", ticker) not in self._futures:
                    self._prime(("price", ticker), fetched.get(ticker))
        return {t: await self._futures[("price", t)] for t in tickers}

    async def get_historical_prices(self, ticker: str, since: date) -> dict[date, Decimal] | None:
        # Keyed by ticker only: one series per ticker per pass.
        return await self._single_flight(
            ("history", ticker),
            lambda: self.provider.get_historical_prices(ticker, since),
        )

    async def get_current_fx_rate(self, pair: str, force_refresh: bool = False) -> Decimal | None:
        refresh = self.force_refresh or force_refresh
        return await self._single_flight(
            ("fx", pair),
            lambda: self.provider.get_current_fx_rate(pair, force_refresh=refresh),
        )

    async def get_historical_fx_rate(self, pair: str, on: date) -> Decimal | None:
        return await self._single_flight(
            ("fx", pair, on),
            lambda: self.provider.get_historical_fx_rate(pair, on),
        )
