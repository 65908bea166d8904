# portfolio_core/services/market_data/yahoo.py
"""
Yahoo Finance market data provider implementation.

Implements MarketDataProvider on top of the yfinance library. yfinance is
blocking, so every download runs in a worker thread via asyncio.to_thread;
pacing, retry and caching come from the base class.

Symbol conventions:
- Equities use the ticker as-is ("AAPL", "7203.T")
- FX pairs use Yahoo's "=X" suffix ("USDJPY" -> "USDJPY=X")

Historical series are monthly closes (interval "1mo"), rounded to two
decimal places, restricted to dates on or after the requested start.

Limitations:
- Rate limits exist but are not documented
- Quotes may be delayed 15-20 minutes
"""

import asyncio
import logging
import math
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

import yfinance as yf

from portfolio_core.services.constants import PRICE_PRECISION
from portfolio_core.services.currency import split_pair
from portfolio_core.services.exceptions import (
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
)
from portfolio_core.services.market_data.base import MarketDataProvider

logger = logging.getLogger(__name__)

# Rounding applied to monthly history points
HISTORY_PRECISION = Decimal("0.01")

# Days searched backwards for a historical FX close (weekends, holidays)
FX_LOOKBACK_DAYS = 7


def months_since(start: date, today: date | None = None) -> int:
    """Whole calendar months between ``start`` and today (at least 1)."""
    today = today or date.today()
    months = (today.year - start.year) * 12 + (today.month - start.month)
    return max(1, months)


def history_range(months: int) -> str:
    """
    Pick the smallest Yahoo period covering ``months`` of history.

    Examples:
        history_range(6)   -> "1y"
        history_range(30)  -> "5y"
        history_range(200) -> "max"
    """
    if months <= 12:
        return "1y"
    if months <= 24:
        return "2y"
    if months <= 60:
        return "5y"
    if months <= 120:
        return "10y"
    return "max"


class YahooFinanceProvider(MarketDataProvider):
    """
    Yahoo Finance implementation of MarketDataProvider.

    Retry Behavior (inherited from MarketDataProvider):
        - Retries on ProviderUnavailableError and RateLimitError
        - Does NOT retry on TickerNotFoundError (permanent failure)
        - Uses exponential backoff: 1s -> 2s -> 4s

    Example:
        provider = YahooFinanceProvider()
        price = await provider.get_current_price("AAPL")
        rate = await provider.get_current_fx_rate("USDJPY")
    """

    @property
    def name(self) -> str:
        return "yahoo"

    # =========================================================================
    # PRICES
    # =========================================================================

    async def _fetch_current_price(self, ticker: str) -> Decimal | None:
        symbol = ticker.strip().upper()
        df = await self._download(symbol, period="5d", interval="1d")
        price = self._last_close(df)
        if price is None:
            logger.warning(f"No current price for {symbol}")
        return price

    async def _fetch_historical_prices(
            self,
            ticker: str,
            since: date,
    ) -> dict[date, Decimal] | None:
        symbol = ticker.strip().upper()
        period = history_range(months_since(since))

        logger.debug(f"Fetching monthly history for {symbol} since {since} (range={period})")

        df = await self._download(symbol, period=period, interval="1mo")
        series = self._dataframe_to_series(df, since)

        if not series:
            logger.warning(f"No historical data for {symbol} since {since}")
            return None

        logger.debug(f"Fetched {len(series)} monthly points for {symbol}")
        return series

    # =========================================================================
    # FX RATES
    # =========================================================================

    async def _fetch_current_fx_rate(self, pair: str) -> Decimal | None:
        symbol = self._fx_symbol(pair)
        df = await self._download(symbol, period="5d", interval="1d")
        return self._last_close(df)

    async def _fetch_historical_fx_rate(self, pair: str, on: date) -> Decimal | None:
        symbol = self._fx_symbol(pair)
        df = await self._download(
            symbol,
            start=(on - timedelta(days=FX_LOOKBACK_DAYS)).isoformat(),
            # Yahoo Finance end date is exclusive
            end=(on + timedelta(days=1)).isoformat(),
            interval="1d",
        )
        return self._last_close(df, on_or_before=on)

    # =========================================================================
    # YFINANCE ACCESS
    # =========================================================================

    async def _download(self, symbol: str, **history_kwargs: Any):
        """
        Run ``yf.Ticker(symbol).history(...)`` in a worker thread.

        Raises:
            TickerNotFoundError: Symbol unknown to Yahoo
            RateLimitError: HTTP 429 / "too many requests"
            ProviderUnavailableError: Anything else
        """
        try:
            return await asyncio.to_thread(
                self._history_blocking, symbol, history_kwargs
            )
        except Exception as e:
            error_str = str(e).lower()

            if "not found" in error_str or "delisted" in error_str:
                raise TickerNotFoundError(ticker=symbol, provider=self.name)

            if "rate limit" in error_str or "too many requests" in error_str or "429" in error_str:
                raise RateLimitError(provider=self.name)

            logger.error(f"Yahoo Finance error for {symbol}: {e}")
            raise ProviderUnavailableError(provider=self.name, reason=str(e))

    @staticmethod
    def _history_blocking(symbol: str, history_kwargs: dict[str, Any]):
        return yf.Ticker(symbol).history(auto_adjust=False, **history_kwargs)

    # =========================================================================
    # DATAFRAME PARSING
    # =========================================================================

    def _dataframe_to_series(self, df, since: date) -> dict[date, Decimal]:
        """
        Convert a yfinance DataFrame to {date: close}.

        Rows before ``since`` and rows with a missing close are skipped.
        """
        series: dict[date, Decimal] = {}
        if df is None or df.empty:
            return series

        for idx, row in df.iterrows():
            price_date = idx.date() if hasattr(idx, 'date') else idx
            if price_date < since:
                continue

            close = self._to_decimal(row.get('Close'))
            if close is None:
                continue

            series[price_date] = close.quantize(HISTORY_PRECISION, rounding=ROUND_HALF_UP)

        return series

    def _last_close(self, df, on_or_before: date | None = None) -> Decimal | None:
        """Most recent non-missing close, optionally capped at a date."""
        if df is None or df.empty:
            return None

        latest: Decimal | None = None
        for idx, row in df.iterrows():
            price_date = idx.date() if hasattr(idx, 'date') else idx
            if on_or_before is not None and price_date > on_or_before:
                continue
            close = self._to_decimal(row.get('Close'))
            if close is not None:
                latest = close
        return latest

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """Convert a value to Decimal, returning None for NaN/None/non-positive."""
        if value is None:
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(number) or number <= 0:
            return None
        return Decimal(str(value)).quantize(PRICE_PRECISION)

    @staticmethod
    def _fx_symbol(pair: str) -> str:
        base, quote = split_pair(pair)
        return f"{base}{quote}=X"
