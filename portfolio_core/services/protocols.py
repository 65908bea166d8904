# portfolio_core/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- Existing classes satisfy protocols without modification
- Test mocks work without explicit inheritance
- Clear documentation of required interfaces
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Protocol


class MarketDataProviderProtocol(Protocol):
    """
    Interface required by the valuator, aggregator and reconstructor.

    Every method may return None when data is unavailable. Callers treat
    None as "unknown", never as an error.

    ``force_refresh`` on the current-quote methods skips any provider-side
    cache read; the fresh value still replaces the cached one.
    """

    async def get_current_price(
        self,
        ticker: str,
        force_refresh: bool = False,
    ) -> Decimal | None:
        ...

    async def get_current_prices(
        self,
        tickers: list[str],
        force_refresh: bool = False,
    ) -> dict[str, Decimal | None]:
        ...

    async def get_historical_prices(
        self,
        ticker: str,
        since: date,
    ) -> dict[date, Decimal] | None:
        ...

    async def get_current_fx_rate(self, pair: str, force_refresh: bool = False) -> Decimal | None:
        ...

    async def get_historical_fx_rate(self, pair: str, on: date) -> Decimal | None:
        ...


class Cache(Protocol):
    """Key/value store injected into providers (in-memory, file, redis...)."""

    def get(self, key: str) -> Any | None:
        ...

    def put(self, key: str, value: Any) -> None:
        ...


class Clock(Protocol):
    """Seconds source (``time.monotonic`` or ``time.time`` in production)."""

    def __call__(self) -> float:
        ...
