# portfolio_core/services/__init__.py
"""
Service layer: valuation, history reconstruction and return metrics.

Services never raise for missing market data; they raise domain
exceptions (see exceptions.py) only for malformed input.

Architecture:
    services/
    ├── __init__.py          # This file - exception exports
    ├── exceptions.py        # Domain exceptions
    ├── constants.py         # Calendar, solver and precision constants
    ├── currency.py          # Supported currencies, formatting, FX pairs
    ├── protocols.py         # Provider / cache / clock interfaces
    ├── market_data/         # Provider base, Yahoo adapter, rate limiter, cache, memo
    ├── valuation/           # Valuator, aggregator, history reconstructor
    └── analytics/           # Annualized return, CAGR, XIRR

Usage:
    from portfolio_core.services.valuation import PortfolioAggregator
    from portfolio_core.services import InvalidPositionError
"""

from portfolio_core.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidPositionError,
    InvalidDateError,
    InvalidIntervalError,
    MarketDataError,
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
    FXRateError,
    FXConversionError,
)

__all__ = [
    "ServiceError",
    "ValidationError",
    "InvalidPositionError",
    "InvalidDateError",
    "InvalidIntervalError",
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
    "FXRateError",
    "FXConversionError",
]
