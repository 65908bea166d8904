# portfolio_core/services/market_data/__init__.py
"""
Market data providers.

Usage:
    from portfolio_core.services.market_data import YahooFinanceProvider

    provider = YahooFinanceProvider()
    price = await provider.get_current_price("AAPL")
"""

from portfolio_core.services.market_data.base import MarketDataProvider
from portfolio_core.services.market_data.cache import InMemoryCache
from portfolio_core.services.market_data.memo import MemoizedMarketData
from portfolio_core.services.market_data.rate_limiter import RateLimiter
from portfolio_core.services.market_data.yahoo import YahooFinanceProvider

__all__ = [
    "MarketDataProvider",
    "InMemoryCache",
    "MemoizedMarketData",
    "RateLimiter",
    "YahooFinanceProvider",
]
