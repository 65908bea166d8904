# portfolio_core/services/valuation/valuator.py
"""
Position valuator.

Turns one RawPosition plus its current price into a Position expressed in
the reporting currency.

Currency conversion order:
    cost  = quantity × cost_per_unit × FX(transaction_ccy → JPY, transaction date)
    value = quantity × current_price × FX(stock_ccy → JPY, today)

The two conversions may use different currencies: a US stock
bought through a JPY account has transaction_ccy=JPY, stock_ccy=USD.

FX fallback chain (missing data never raises):
    historical rate → current rate for the same pair → 1
    current rate → 1
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from portfolio_core.config import settings
from portfolio_core.services.constants import (
    CURRENCY_PRECISION,
    DISPLAY_PERCENTAGE_PRECISION,
    FALLBACK_FX_RATE,
    ONE_HUNDRED,
    ZERO,
)
from portfolio_core.services.currency import currency_pair
from portfolio_core.services.exceptions import InvalidDateError, InvalidPositionError
from portfolio_core.services.protocols import MarketDataProviderProtocol
from portfolio_core.services.valuation.types import Position, RawPosition
from portfolio_core.utils.date_utils import parse_transaction_date

logger = logging.getLogger(__name__)

ONE = Decimal("1")


class PositionValuator:
    """
    Values single positions against a market data provider.

    Stateless apart from the injected provider, so valuating the same
    RawPosition twice against the same data yields equal Positions.

    Example:
        valuator = PositionValuator(provider)
        position = await valuator.valuate(raw, Decimal("160"))
    """

    def __init__(
            self,
            provider: MarketDataProviderProtocol,
            reporting_currency: str | None = None,
    ) -> None:
        self._provider = provider
        self._reporting_ccy = (reporting_currency or settings.reporting_currency).upper()

    @property
    def reporting_currency(self) -> str:
        return self._reporting_ccy

    async def valuate(
            self,
            raw: RawPosition,
            current_price: Decimal | None,
    ) -> Position:
        """
        Value one position.

        Args:
            raw: The transaction lot
            current_price: Latest price in stock_ccy, or None if unknown

        Returns:
            Position with cost, value and P&L in the reporting currency

        Raises:
            InvalidPositionError: Malformed date, quantity, cost or currency
        """
        transaction_date, quantity, cost_per_unit, transaction_ccy, stock_ccy = self.validate(raw)

        transaction_fx_rate = await self.historical_fx_rate(transaction_ccy, transaction_date)
        cost_in_jpy = (quantity * cost_per_unit * transaction_fx_rate).quantize(CURRENCY_PRECISION)

        # Resolved even without a price so the rate can still be displayed
        current_fx_rate = await self.current_fx_rate(stock_ccy)

        if current_price is None:
            logger.debug(f"No current price for {raw.ticker}, valuation pending")
            price = None
            current_value_jpy = ZERO
            pnl_jpy = -cost_in_jpy
            pnl_percentage = None
        else:
            price = current_price if isinstance(current_price, Decimal) else Decimal(str(current_price))
            current_value_jpy = (quantity * price * current_fx_rate).quantize(CURRENCY_PRECISION)
            pnl_jpy = current_value_jpy - cost_in_jpy
            pnl_percentage = self._percentage(pnl_jpy, cost_in_jpy)

        return Position(
            transaction_date=transaction_date,
            ticker=raw.ticker,
            full_name=raw.full_name,
            broker=raw.broker,
            account=raw.account,
            quantity=quantity,
            cost_per_unit=cost_per_unit,
            transaction_ccy=transaction_ccy,
            stock_ccy=stock_ccy,
            current_price=price,
            cost_in_jpy=cost_in_jpy,
            current_value_jpy=current_value_jpy,
            pnl_jpy=pnl_jpy,
            pnl_percentage=pnl_percentage,
            transaction_fx_rate=transaction_fx_rate,
            current_fx_rate=current_fx_rate,
        )

    def validate(self, raw: RawPosition) -> tuple[date, Decimal, Decimal, str, str]:
        """
        Check a lot without touching market data.

        Returns:
            (transaction_date, quantity, cost_per_unit, transaction_ccy, stock_ccy)

        Raises:
            InvalidPositionError: Malformed date, quantity, cost or currency
        """
        return (
            self._parse_date(raw),
            self._positive_decimal(raw.quantity, raw.ticker, "quantity"),
            self._positive_decimal(raw.cost_per_unit, raw.ticker, "cost_per_unit"),
            self._currency_code(raw.transaction_ccy, raw.ticker, "transaction_ccy"),
            self._currency_code(raw.stock_ccy, raw.ticker, "stock_ccy"),
        )

    # =========================================================================
    # FX RESOLUTION
    # =========================================================================

    async def historical_fx_rate(self, currency: str, on: date) -> Decimal:
        """
        Rate converting ``currency`` into the reporting currency on ``on``.

        Same currency returns exactly 1 without touching the provider.
        """
        if currency == self._reporting_ccy:
            return ONE

        pair = currency_pair(currency, self._reporting_ccy)
        rate = await self._provider.get_historical_fx_rate(pair, on)
        if rate is not None:
            return rate

        logger.warning(f"No historical {pair} rate for {on}, using current rate", extra={"pair": pair})
        rate = await self._provider.get_current_fx_rate(pair)
        if rate is not None:
            return rate

        logger.warning(f"No {pair} rate available, falling back to {FALLBACK_FX_RATE}", extra={"pair": pair})
        return FALLBACK_FX_RATE

    async def current_fx_rate(self, currency: str) -> Decimal:
        if currency == self._reporting_ccy:
            return ONE

        pair = currency_pair(currency, self._reporting_ccy)
        rate = await self._provider.get_current_fx_rate(pair)
        if rate is not None:
            return rate

        logger.warning(f"No current {pair} rate, falling back to {FALLBACK_FX_RATE}", extra={"pair": pair})
        return FALLBACK_FX_RATE

    # =========================================================================
    # VALIDATION HELPERS
    # =========================================================================

    @staticmethod
    def _parse_date(raw: RawPosition) -> date:
        try:
            return parse_transaction_date(raw.transaction_date)
        except InvalidDateError as e:
            raise InvalidPositionError(raw.ticker, e.message, field="transaction_date") from e

    @staticmethod
    def _positive_decimal(value: Any, ticker: str, field: str) -> Decimal:
        try:
            number = value if isinstance(value, Decimal) else Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidPositionError(ticker, f"{field} is not a number: {value!r}", field=field) from None

        if not number.is_finite() or number <= ZERO:
            raise InvalidPositionError(ticker, f"{field} must be positive and finite, got {value!r}", field=field)
        return number

    @staticmethod
    def _currency_code(value: str, ticker: str, field: str) -> str:
        code = (value or "").strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise InvalidPositionError(ticker, f"{field} is not a currency code: {value!r}", field=field)
        return code

    @staticmethod
    def _percentage(pnl: Decimal, cost: Decimal) -> Decimal:
        if cost <= ZERO:
            return ZERO
        return (pnl / cost * ONE_HUNDRED).quantize(DISPLAY_PERCENTAGE_PRECISION)
