# portfolio_core/services/valuation/history.py
"""
Historical portfolio reconstruction.

Rebuilds the portfolio's value and P&L at arbitrary past dates from the
valued positions and each ticker's historical price series.

Per target date:
1. Keep lots bought on or before the date
2. Merge lots by ticker (quantity-weighted cost, summed JPY cost)
3. Price each instrument from its series (exact, else forward fill,
   else the first later point)
4. With no series at all, pro-rate the instrument's current value by
   historical quantity / current quantity

Historical values use the FX rate recorded on the earliest lot; FX is not
re-resolved per snapshot date.

Price series are fetched once per ticker per call, starting at that
ticker's earliest lot.
"""

import asyncio
import bisect
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from portfolio_core.services.constants import (
    CURRENCY_PRECISION,
    DISPLAY_PERCENTAGE_PRECISION,
    ONE_HUNDRED,
    PRICE_PRECISION,
    ZERO,
)
from portfolio_core.services.market_data.memo import MemoizedMarketData
from portfolio_core.services.protocols import MarketDataProviderProtocol
from portfolio_core.services.valuation.types import (
    HistoricalSnapshot,
    Position,
    PositionDetail,
    PriceSource,
)

logger = logging.getLogger(__name__)


# =============================================================================
# LOT MERGING
# =============================================================================

@dataclass(frozen=True)
class MergedLot:
    """All lots of one ticker held on a given date."""

    ticker: str
    full_name: str
    quantity: Decimal
    cost_per_unit: Decimal
    cost_in_jpy: Decimal
    transaction_fx_rate: Decimal


def merge_lots_at(positions: Iterable[Position], target_date: date) -> list[MergedLot]:
    """
    Merge the lots held on ``target_date`` by ticker.

    Lots are visited in transaction-date order, so the merged lot keeps
    the earliest lot's name and FX rate. Tickers appear in order of first
    purchase.

    Example:
        10 @ 100 and 5 @ 200  ->  15 @ 133.33333333
    """
    held = sorted(
        (p for p in positions if p.transaction_date <= target_date),
        key=lambda p: p.transaction_date,
    )

    groups: dict[str, list[Position]] = {}
    for lot in held:
        groups.setdefault(lot.ticker, []).append(lot)

    merged = []
    for ticker, lots in groups.items():
        quantity = sum((lot.quantity for lot in lots), ZERO)
        weighted_cost = sum((lot.quantity * lot.cost_per_unit for lot in lots), ZERO)
        merged.append(MergedLot(
            ticker=ticker,
            full_name=lots[0].full_name,
            quantity=quantity,
            cost_per_unit=(weighted_cost / quantity).quantize(PRICE_PRECISION),
            cost_in_jpy=sum((lot.cost_in_jpy for lot in lots), ZERO),
            transaction_fx_rate=lots[0].transaction_fx_rate,
        ))
    return merged


# =============================================================================
# PRICE LOOKUP
# =============================================================================

class PriceSeries:
    """
    Sorted view over a {date: price} mapping with gap-filling lookup.
    """

    def __init__(self, prices: dict[date, Decimal] | None) -> None:
        items = sorted((prices or {}).items())
        self._dates = [d for d, _ in items]
        self._prices = [p for _, p in items]

    def __bool__(self) -> bool:
        return bool(self._dates)

    def __len__(self) -> int:
        return len(self._dates)

    def price_at(self, target: date) -> Decimal | None:
        """
        Price for ``target``.

        Exact match first, then the latest point before ``target``
        (forward fill), then the earliest point after it. None only for
        an empty series.
        """
        if not self._dates:
            return None

        index = bisect.bisect_right(self._dates, target)
        if index > 0:
            return self._prices[index - 1]
        return self._prices[0]


# =============================================================================
# RECONSTRUCTOR
# =============================================================================

class HistoryReconstructor:
    """
    Computes HistoricalSnapshots for a set of valued positions.

    Example:
        reconstructor = HistoryReconstructor(provider)
        dates = generate_snapshot_dates(start, date.today(), "monthly")
        snapshots = await reconstructor.reconstruct(summary.positions, dates)
    """

    def __init__(self, provider: MarketDataProviderProtocol) -> None:
        self._provider = provider

    async def reconstruct(
            self,
            positions: Iterable[Position],
            target_dates: Iterable[date],
            include_details: bool = False,
    ) -> list[HistoricalSnapshot]:
        """
        Reconstruct the portfolio at each target date.

        Args:
            positions: Valued lots (current valuation, used for pro-rating)
            target_dates: Dates to reconstruct, in any order
            include_details: Attach per-instrument PositionDetails

        Returns:
            One snapshot per target date, in the order of ``target_dates``
        """
        positions = list(positions)
        target_dates = list(target_dates)
        if not target_dates:
            return []

        series = await self._load_series(positions)
        current_totals = self._current_totals(positions)

        # Compute chronologically, hand back in caller order
        order = sorted(range(len(target_dates)), key=lambda i: target_dates[i])
        snapshots: list[HistoricalSnapshot | None] = [None] * len(target_dates)
        for i in order:
            snapshots[i] = self._snapshot_at(
                target_dates[i], positions, series, current_totals, include_details
            )

        logger.info(
            f"Reconstructed {len(snapshots)} snapshots over {len(series)} tickers"
        )
        return snapshots

    async def _load_series(self, positions: list[Position]) -> dict[str, PriceSeries]:
        """Fetch one price series per ticker, starting at its first lot."""
        earliest: dict[str, date] = {}
        for p in positions:
            if p.ticker not in earliest or p.transaction_date < earliest[p.ticker]:
                earliest[p.ticker] = p.transaction_date

        memo = MemoizedMarketData(self._provider)
        tickers = list(earliest)
        fetched = await asyncio.gather(
            *(memo.get_historical_prices(t, earliest[t]) for t in tickers)
        )
        return {ticker: PriceSeries(prices) for ticker, prices in zip(tickers, fetched)}

    @staticmethod
    def _current_totals(positions: list[Position]) -> dict[str, tuple[Decimal, Decimal, bool]]:
        """ticker -> (total quantity, total current value, any lot priced)."""
        totals: dict[str, tuple[Decimal, Decimal, bool]] = {}
        for p in positions:
            qty, value, priced = totals.get(p.ticker, (ZERO, ZERO, False))
            totals[p.ticker] = (qty + p.quantity, value + p.current_value_jpy, priced or p.has_price)
        return totals

    def _snapshot_at(
            self,
            target_date: date,
            positions: list[Position],
            series: dict[str, PriceSeries],
            current_totals: dict[str, tuple[Decimal, Decimal, bool]],
            include_details: bool,
    ) -> HistoricalSnapshot:
        merged = merge_lots_at(positions, target_date)

        total_value = ZERO
        total_cost = ZERO
        details = []

        for lot in merged:
            price = series[lot.ticker].price_at(target_date) if lot.ticker in series else None

            if price is not None:
                value = (lot.quantity * price * lot.transaction_fx_rate).quantize(CURRENCY_PRECISION)
                source = PriceSource.HISTORICAL
            else:
                value, source = self._prorated_value(lot, target_date, current_totals)

            total_value += value
            total_cost += lot.cost_in_jpy

            if include_details:
                pnl = value - lot.cost_in_jpy
                details.append(PositionDetail(
                    ticker=lot.ticker,
                    full_name=lot.full_name,
                    quantity=lot.quantity,
                    cost_per_unit=lot.cost_per_unit,
                    cost_in_jpy=lot.cost_in_jpy,
                    historical_price=price,
                    value_jpy=value,
                    pnl_jpy=pnl,
                    pnl_percentage=_guarded_percentage(pnl, lot.cost_in_jpy),
                    transaction_fx_rate=lot.transaction_fx_rate,
                    price_source=source,
                ))

        pnl_total = total_value - total_cost
        return HistoricalSnapshot(
            date=target_date,
            total_value_jpy=total_value,
            total_cost_jpy=total_cost,
            pnl_jpy=pnl_total,
            pnl_percentage=_guarded_percentage(pnl_total, total_cost),
            positions_count=len(merged),
            position_details=tuple(details) if include_details else None,
        )

    @staticmethod
    def _prorated_value(
            lot: MergedLot,
            target_date: date,
            current_totals: dict[str, tuple[Decimal, Decimal, bool]],
    ) -> tuple[Decimal, PriceSource]:
        current_qty, current_value, priced = current_totals.get(lot.ticker, (ZERO, ZERO, False))
        if not priced or current_qty <= ZERO:
            logger.warning(f"No price data at all for {lot.ticker} on {target_date}, valuing at 0")
            return ZERO, PriceSource.UNAVAILABLE

        logger.warning(
            f"No historical price for {lot.ticker} on {target_date}, pro-rating current value"
        )
        value = (lot.quantity / current_qty * current_value).quantize(CURRENCY_PRECISION)
        return value, PriceSource.PRORATED


def _guarded_percentage(pnl: Decimal, cost: Decimal) -> Decimal:
    if cost <= ZERO:
        return ZERO
    return (pnl / cost * ONE_HUNDRED).quantize(DISPLAY_PERCENTAGE_PRECISION)
