# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Mock market data provider (configurable prices, FX, call counters)
- Sample data factories
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from portfolio_core.services.valuation.types import Position, RawPosition


# =============================================================================
# MOCK MARKET DATA PROVIDER
# =============================================================================

class MockMarketDataProvider:
    """
    In-memory implementation of MarketDataProviderProtocol for testing.

    Every lookup yields to the event loop once before answering, so
    concurrent callers genuinely overlap. Unconfigured lookups return None.
    """

    def __init__(self):
        self._prices: dict[str, Decimal] = {}
        self._history: dict[str, dict[date, Decimal]] = {}
        self._current_fx: dict[str, Decimal] = {}
        self._historical_fx: dict[tuple[str, date], Decimal] = {}
        self.price_calls: dict[str, int] = {}
        self.batch_calls: list[list[str]] = []
        self.history_calls: list[tuple[str, date]] = []
        self.current_fx_calls: list[str] = []
        self.historical_fx_calls: list[tuple[str, date]] = []
        self.forced_refreshes: list[str] = []

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def set_price(self, ticker: str, price: Decimal | str) -> None:
        self._prices[ticker] = Decimal(str(price))

    def set_history(self, ticker: str, prices: dict[date, Decimal | str]) -> None:
        self._history[ticker] = {d: Decimal(str(p)) for d, p in prices.items()}

    def set_current_fx(self, pair: str, rate: Decimal | str) -> None:
        self._current_fx[pair] = Decimal(str(rate))

    def set_historical_fx(self, pair: str, on: date, rate: Decimal | str) -> None:
        self._historical_fx[(pair, on)] = Decimal(str(rate))

    # -------------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------------

    @property
    def total_price_calls(self) -> int:
        return sum(self.price_calls.values())

    @property
    def fx_call_count(self) -> int:
        return len(self.current_fx_calls) + len(self.historical_fx_calls)

    # -------------------------------------------------------------------------
    # MarketDataProviderProtocol
    # -------------------------------------------------------------------------

    async def get_current_price(self, ticker: str, force_refresh: bool = False) -> Decimal | None:
        self.price_calls[ticker] = self.price_calls.get(ticker, 0) + 1
        if force_refresh:
            self.forced_refreshes.append(ticker)
        await asyncio.sleep(0)
        return self._prices.get(ticker)

    async def get_current_prices(
            self,
            tickers: list[str],
            force_refresh: bool = False,
    ) -> dict[str, Decimal | None]:
        self.batch_calls.append(list(tickers))
        if force_refresh:
            self.forced_refreshes.extend(tickers)
        await asyncio.sleep(0)
        return {t: self._prices.get(t) for t in tickers}

    async def get_historical_prices(self, ticker: str, since: date) -> dict[date, Decimal] | None:
        self.history_calls.append((ticker, since))
        await asyncio.sleep(0)
        return self._history.get(ticker)

    async def get_current_fx_rate(self, pair: str, force_refresh: bool = False) -> Decimal | None:
        self.current_fx_calls.append(pair)
        if force_refresh:
            self.forced_refreshes.append(pair)
        await asyncio.sleep(0)
        return self._current_fx.get(pair)

    async def get_historical_fx_rate(self, pair: str, on: date) -> Decimal | None:
        self.historical_fx_calls.append((pair, on))
        await asyncio.sleep(0)
        return self._historical_fx.get((pair, on))


@pytest.fixture
def mock_provider() -> MockMarketDataProvider:
    """Create a fresh mock provider for each test."""
    return MockMarketDataProvider()


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def create_raw_position(
        ticker: str = "AAPL",
        transaction_date: str = "2023-01-01",
        quantity: Decimal | str = "100",
        cost_per_unit: Decimal | str = "150",
        transaction_ccy: str = "USD",
        stock_ccy: str | None = None,
        full_name: str = "Apple Inc.",
        broker: str = "Rakuten",
        account: str = "NISA",
) -> RawPosition:
    """Factory function for creating RawPosition test data."""
    return RawPosition(
        transaction_date=transaction_date,
        ticker=ticker,
        full_name=full_name,
        broker=broker,
        account=account,
        quantity=Decimal(str(quantity)),
        cost_per_unit=Decimal(str(cost_per_unit)),
        transaction_ccy=transaction_ccy,
        stock_ccy=stock_ccy or transaction_ccy,
    )


def create_position(
        ticker: str = "AAPL",
        transaction_date: date = date(2023, 1, 1),
        quantity: Decimal | str = "10",
        cost_per_unit: Decimal | str = "100",
        transaction_fx_rate: Decimal | str = "1",
        current_price: Decimal | str | None = "120",
        current_fx_rate: Decimal | str = "1",
        ccy: str = "JPY",
        full_name: str | None = None,
) -> Position:
    """
    Factory function for creating already-valued Position test data.

    Cost and value are derived from the arguments the same way the
    valuator derives them.
    """
    quantity = Decimal(str(quantity))
    cost_per_unit = Decimal(str(cost_per_unit))
    transaction_fx_rate = Decimal(str(transaction_fx_rate))
    current_fx_rate = Decimal(str(current_fx_rate))
    price = Decimal(str(current_price)) if current_price is not None else None

    cost = quantity * cost_per_unit * transaction_fx_rate
    value = quantity * price * current_fx_rate if price is not None else Decimal("0")
    pnl = value - cost

    return Position(
        transaction_date=transaction_date,
        ticker=ticker,
        full_name=full_name or ticker,
        broker="Rakuten",
        account="NISA",
        quantity=quantity,
        cost_per_unit=cost_per_unit,
        transaction_ccy=ccy,
        stock_ccy=ccy,
        current_price=price,
        cost_in_jpy=cost,
        current_value_jpy=value,
        pnl_jpy=pnl,
        pnl_percentage=(pnl / cost * 100) if price is not None and cost > 0 else None,
        transaction_fx_rate=transaction_fx_rate,
        current_fx_rate=current_fx_rate,
    )
