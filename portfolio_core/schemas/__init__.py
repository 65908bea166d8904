# portfolio_core/schemas/__init__.py
"""
Pydantic schemas for importing positions and serializing results.

Usage:
    from portfolio_core.schemas import parse_raw_positions, PortfolioSummaryOut

    raws = parse_raw_positions(json.load(fh))
    payload = PortfolioSummaryOut.model_validate(summary).model_dump(by_alias=True)
"""

from portfolio_core.schemas.positions import (
    HistoricalSnapshotOut,
    PortfolioSummaryOut,
    PositionDetailOut,
    PositionOut,
    RawPositionIn,
    parse_raw_positions,
)

__all__ = [
    "HistoricalSnapshotOut",
    "PortfolioSummaryOut",
    "PositionDetailOut",
    "PositionOut",
    "RawPositionIn",
    "parse_raw_positions",
]
