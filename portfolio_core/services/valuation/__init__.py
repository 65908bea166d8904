# portfolio_core/services/valuation/__init__.py
"""
Valuation engine: current portfolio summary and historical snapshots.

Usage:
    from portfolio_core.services.valuation import (
        PortfolioAggregator,
        HistoryReconstructor,
    )
"""

from portfolio_core.services.valuation.aggregator import PortfolioAggregator
from portfolio_core.services.valuation.history import HistoryReconstructor, merge_lots_at
from portfolio_core.services.valuation.types import (
    HistoricalSnapshot,
    PortfolioSummary,
    Position,
    PositionDetail,
    PriceSource,
    RawPosition,
)
from portfolio_core.services.valuation.valuator import PositionValuator

__all__ = [
    "PortfolioAggregator",
    "HistoryReconstructor",
    "PositionValuator",
    "merge_lots_at",
    "HistoricalSnapshot",
    "PortfolioSummary",
    "Position",
    "PositionDetail",
    "PriceSource",
    "RawPosition",
]
