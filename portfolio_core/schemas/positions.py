# portfolio_core/schemas/positions.py
"""
Pydantic schemas for positions, summaries and snapshots.

Import side:
    RawPositionIn parses camelCase records (as stored by position-set
    files and the web client) and converts them to RawPosition.

Export side:
    PositionOut, PortfolioSummaryOut, PositionDetailOut and
    HistoricalSnapshotOut serialize the engine's dataclasses back to
    camelCase. An undefined percentage (NaN) is serialized as null.
"""

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from portfolio_core.schemas.validators import (
    validate_currency,
    validate_ticker,
    validate_transaction_date,
)
from portfolio_core.services.valuation.types import RawPosition


# Reporting-currency suffixes keep their upper-case spelling (costInJPY)
_ALIAS_OVERRIDES = {
    "value_jpy": "valueInJPY",
}


def _camel_alias(name: str) -> str:
    if name in _ALIAS_OVERRIDES:
        return _ALIAS_OVERRIDES[name]
    alias = to_camel(name)
    if alias.endswith("Jpy"):
        alias = alias[:-3] + "JPY"
    return alias


def _nan_to_none(value: Any) -> Any:
    if isinstance(value, Decimal) and value.is_nan():
        return None
    if isinstance(value, float) and value != value:
        return None
    return value


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_camel_alias,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# INPUT SCHEMAS
# =============================================================================

class RawPositionIn(_CamelModel):
    """One transaction lot as imported from JSON."""

    transaction_date: str = Field(
        ...,
        description="Trade date, YYYY-MM-DD or YYYY/MM/DD (normalized to YYYY-MM-DD)"
    )
    ticker: str = Field(..., description="Provider symbol")
    full_name: str = Field(default="", description="Display name")
    broker: str = Field(default="", description="Broker the lot is held at")
    account: str = Field(default="", description="Account type at the broker")
    quantity: Decimal = Field(..., gt=0, allow_inf_nan=False, description="Units bought")
    cost_per_unit: Decimal = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Unit price paid, in transaction_ccy"
    )
    transaction_ccy: str = Field(..., description="Currency the lot was paid in")
    stock_ccy: str = Field(..., description="Currency the instrument is quoted in")

    @field_validator('transaction_date')
    @classmethod
    def normalize_date(cls, v: str) -> str:
        return validate_transaction_date(v)

    @field_validator('ticker')
    @classmethod
    def validate_and_normalize_ticker(cls, v: str) -> str:
        return validate_ticker(v)

    @field_validator('transaction_ccy', 'stock_ccy')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return validate_currency(v)

    def to_raw_position(self) -> RawPosition:
        return RawPosition(
            transaction_date=self.transaction_date,
            ticker=self.ticker,
            full_name=self.full_name,
            broker=self.broker,
            account=self.account,
            quantity=self.quantity,
            cost_per_unit=self.cost_per_unit,
            transaction_ccy=self.transaction_ccy,
            stock_ccy=self.stock_ccy,
        )


def parse_raw_positions(records: list[dict[str, Any]]) -> list[RawPosition]:
    """
    Validate a list of camelCase records into RawPositions.

    Raises:
        pydantic.ValidationError: On the first invalid record
    """
    return [RawPositionIn.model_validate(record).to_raw_position() for record in records]


# =============================================================================
# OUTPUT SCHEMAS
# =============================================================================

class PositionOut(_CamelModel):
    """A valued position."""

    transaction_date: dt.date
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


class PortfolioSummaryOut(_CamelModel):
    """Portfolio totals plus the valued positions."""

    total_cost_jpy: Decimal
    total_value_jpy: Decimal
    total_pnl_jpy: Decimal
    total_pnl_percentage: Decimal | None = Field(
        ...,
        description="None when positions exist but total cost is zero"
    )
    positions: list[PositionOut]

    @field_validator('total_pnl_percentage', mode='before')
    @classmethod
    def undefined_percentage(cls, v: Any) -> Any:
        return _nan_to_none(v)


class PositionDetailOut(_CamelModel):
    """One merged instrument inside a snapshot."""

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
    price_source: str

    @field_validator('price_source', mode='before')
    @classmethod
    def enum_value(cls, v: Any) -> Any:
        return getattr(v, "value", v)


class HistoricalSnapshotOut(_CamelModel):
    """Portfolio state at one past date."""

    date: dt.date
    total_value_jpy: Decimal
    total_cost_jpy: Decimal
    pnl_jpy: Decimal
    pnl_percentage: Decimal
    positions_count: int
    position_details: list[PositionDetailOut] | None = None
