# portfolio_core/services/analytics/__init__.py
"""
Return calculator.

Usage:
    from portfolio_core.services.analytics import (
        annualized_return,
        portfolio_cagr_since_inception,
        portfolio_money_weighted_return,
    )
"""

from portfolio_core.services.analytics.returns import (
    annualized_return,
    portfolio_cagr_since_inception,
    portfolio_money_weighted_return,
    portfolio_weighted_annualized_return,
    solve_xirr_bisection,
    solve_xirr_newton,
)
from portfolio_core.services.analytics.types import (
    CashFlow,
    ReturnMethod,
    ReturnSinceInception,
)

__all__ = [
    "annualized_return",
    "portfolio_cagr_since_inception",
    "portfolio_money_weighted_return",
    "portfolio_weighted_annualized_return",
    "solve_xirr_bisection",
    "solve_xirr_newton",
    "CashFlow",
    "ReturnMethod",
    "ReturnSinceInception",
]
