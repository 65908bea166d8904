# portfolio_core/services/valuation/types.py
"""
Internal data types for the valuation engine.

These dataclasses are used by the valuator, aggregator and reconstructor.
They are NOT Pydantic schemas; those live in portfolio_core/schemas/ for
import and serialization.

Design Principles:
- Immutable where possible (frozen=True for value objects)
- Use Decimal for ALL financial values (never float)
- Use date (not datetime) for valuation dates
- Optional fields use None, not sentinel values

Type Hierarchy:
    RawPosition         - One buy transaction as entered by the user
    Position            - RawPosition enriched with prices, FX and P&L
    PortfolioSummary    - Totals over a list of Positions
    PositionDetail      - One merged instrument inside a snapshot
    HistoricalSnapshot  - Portfolio state at one past date
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


# =============================================================================
# INPUT
# =============================================================================

@dataclass(frozen=True)
class RawPosition:
    """
    One transaction lot as entered by the user.

    Several RawPositions may share a ticker (multiple buys). Nothing here
    is validated; the valuator rejects malformed lots.

    Attributes:
        transaction_date: "YYYY-MM-DD" or "YYYY/MM/DD"
        ticker: Provider symbol (e.g., "AAPL", "7203.T")
        full_name: Display name
        broker: Broker the lot is held at
        account: Account type at the broker (e.g., "NISA")
        quantity: Units bought (positive)
        cost_per_unit: Unit price paid, in transaction_ccy (positive)
        transaction_ccy: Currency the lot was paid in
        stock_ccy: Currency the instrument is quoted in
    """

    transaction_date: str
    ticker: str
    full_name: str
    broker: str
    account: str
    quantity: Decimal
    cost_per_unit: Decimal
    transaction_ccy: str
    stock_ccy: str


# =============================================================================
# VALUATION
# =============================================================================

@dataclass(frozen=True)
class Position:
    """
    A RawPosition valued in the reporting currency.

    Derived on every request, never stored.

    Attributes:
        current_price: Latest price in stock_ccy, None while unavailable
        cost_in_jpy: quantity × cost_per_unit × transaction_fx_rate
        current_value_jpy: quantity × current_price × current_fx_rate (0 if no price)
        pnl_jpy: current_value_jpy - cost_in_jpy
        pnl_percentage: pnl_jpy / cost_in_jpy × 100, None if no price
        transaction_fx_rate: transaction_ccy → JPY on the transaction date
        current_fx_rate: stock_ccy → JPY today
    """

    transaction_date: date
    ticker: str
    full_name: str
    broker: str
    account: str
    quantity: Decimal
    cost_per_unit: Decimal
    transaction_ccy: str
    stock_ccy: str
    current_price: Decimal | None
    cost_in_jpy: Decimal
    current_value_jpy: Decimal
    pnl_jpy: Decimal
    pnl_percentage: Decimal | None
    transaction_fx_rate: Decimal
    current_fx_rate: Decimal

    @property
    def has_price(self) -> bool:
        return self.current_price is not None


@dataclass
class PortfolioSummary:
    """
    Portfolio totals in the reporting currency.

    total_pnl_percentage is Decimal("NaN") when positions exist but their
    total cost is zero; it is 0 for an empty portfolio.
    """

    total_cost_jpy: Decimal
    total_value_jpy: Decimal
    total_pnl_jpy: Decimal
    total_pnl_percentage: Decimal
    positions: list[Position] = field(default_factory=list)

    @property
    def position_count(self) -> int:
        return len(self.positions)

    @property
    def earliest_transaction_date(self) -> date | None:
        if not self.positions:
            return None
        return min(p.transaction_date for p in self.positions)


# =============================================================================
# HISTORY
# =============================================================================

class PriceSource(str, Enum):
    """Where a snapshot took an instrument's price from."""

    HISTORICAL = "historical"
    PRORATED = "prorated"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class PositionDetail:
    """
    One instrument (all lots merged) inside a historical snapshot.

    Attributes:
        quantity: Units held on the snapshot date
        cost_per_unit: Quantity-weighted average unit cost
        cost_in_jpy: Sum of the lots' JPY costs
        historical_price: Price used, None if pro-rated or unavailable
        value_jpy: Instrument value on the snapshot date
        pnl_percentage: pnl_jpy / cost_in_jpy × 100 (0 when cost is 0)
        transaction_fx_rate: FX rate recorded on the earliest lot
        price_source: How value_jpy was obtained
    """

    ticker: str
    full_name: str
    quantity: Decimal
    cost_per_unit: Decimal
    cost_in_jpy: Decimal
    historical_price: Decimal | None
    value_jpy: Decimal
    pnl_jpy: Decimal
    pnl_percentage: Decimal
    transaction_fx_rate: Decimal
    price_source: PriceSource


@dataclass(frozen=True)
class HistoricalSnapshot:
    """
    Portfolio state at one past date.

    pnl_percentage is 0 (not NaN) when no cost has been incurred yet.
    position_details is only filled when requested.
    """

    date: date
    total_value_jpy: Decimal
    total_cost_jpy: Decimal
    pnl_jpy: Decimal
    pnl_percentage: Decimal
    positions_count: int
    position_details: tuple[PositionDetail, ...] | None = None
