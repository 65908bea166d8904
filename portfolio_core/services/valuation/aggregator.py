# portfolio_core/services/valuation/aggregator.py
"""
Portfolio aggregator.

Values a list of RawPositions concurrently and sums them into a
PortfolioSummary.

Price fetching:
- Default: each position asks a per-call MemoizedMarketData for its
  ticker's price. Concurrent requests for the same ticker share one
  in-flight provider call, so K distinct tickers cost K calls.
- force_refresh=True: all distinct tickers are fetched in one batch call
  up front, then valuation proceeds from the primed memo. Current prices
  and current FX rates bypass the provider's cache.

Malformed lots raise InvalidPositionError before any market data is
requested.

Output positions keep input order, duplicates included.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Iterable

from portfolio_core.services.constants import (
    DISPLAY_PERCENTAGE_PRECISION,
    ONE_HUNDRED,
    ZERO,
)
from portfolio_core.services.market_data.memo import MemoizedMarketData
from portfolio_core.services.protocols import MarketDataProviderProtocol
from portfolio_core.services.valuation.types import (
    PortfolioSummary,
    Position,
    RawPosition,
)
from portfolio_core.services.valuation.valuator import PositionValuator

logger = logging.getLogger(__name__)


class PortfolioAggregator:
    """
    Builds the current PortfolioSummary for a set of transaction lots.

    Example:
        aggregator = PortfolioAggregator(YahooFinanceProvider())
        summary = await aggregator.aggregate(raw_positions)
        print(summary.total_pnl_percentage)
    """

    def __init__(
            self,
            provider: MarketDataProviderProtocol,
            reporting_currency: str | None = None,
    ) -> None:
        self._provider = provider
        self._reporting_currency = reporting_currency

    async def aggregate(
            self,
            raw_positions: Iterable[RawPosition],
            force_refresh: bool = False,
    ) -> PortfolioSummary:
        """
        Value every lot and compute portfolio totals.

        Args:
            raw_positions: Transaction lots, in display order
            force_refresh: Fetch all prices in one batch call first and
                bypass cached current quotes

        Returns:
            PortfolioSummary with positions in input order

        Raises:
            InvalidPositionError: If any lot is malformed
        """
        raw_positions = list(raw_positions)
        if not raw_positions:
            return self.empty_summary()

        memo = MemoizedMarketData(self._provider, force_refresh=force_refresh)
        valuator = PositionValuator(memo, self._reporting_currency)

        # Every lot is checked before the first provider call
        for raw in raw_positions:
            valuator.validate(raw)

        tickers = list(dict.fromkeys(raw.ticker for raw in raw_positions))

        if force_refresh:
            logger.info(f"Force refresh: batch fetching {len(tickers)} tickers")
            await memo.get_current_prices(tickers)

        async def _value(raw: RawPosition) -> Position:
            price = await memo.get_current_price(raw.ticker)
            return await valuator.valuate(raw, price)

        positions = await asyncio.gather(*(_value(raw) for raw in raw_positions))

        logger.info(
            f"Valued {len(positions)} positions over {len(tickers)} tickers "
            f"({memo.fetch_count} market data calls)"
        )
        return self.summarize(list(positions))

    @staticmethod
    def summarize(positions: list[Position]) -> PortfolioSummary:
        """
        Sum valued positions.

        The percentage is computed without a zero guard: a non-empty list
        with zero total cost yields Decimal("NaN").
        """
        if not positions:
            return PortfolioAggregator.empty_summary()

        total_cost = sum((p.cost_in_jpy for p in positions), ZERO)
        total_value = sum((p.current_value_jpy for p in positions), ZERO)
        total_pnl = total_value - total_cost

        if total_cost == ZERO:
            percentage = Decimal("NaN")
        else:
            percentage = (total_pnl / total_cost * ONE_HUNDRED).quantize(
                DISPLAY_PERCENTAGE_PRECISION
            )

        return PortfolioSummary(
            total_cost_jpy=total_cost,
            total_value_jpy=total_value,
            total_pnl_jpy=total_pnl,
            total_pnl_percentage=percentage,
            positions=positions,
        )

    @staticmethod
    def empty_summary() -> PortfolioSummary:
        return PortfolioSummary(
            total_cost_jpy=ZERO,
            total_value_jpy=ZERO,
            total_pnl_jpy=ZERO,
            total_pnl_percentage=ZERO,
            positions=[],
        )
