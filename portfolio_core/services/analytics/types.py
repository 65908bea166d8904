# portfolio_core/services/analytics/types.py
"""
Data types for the return calculator.

    - CashFlow: One dated money movement for XIRR
    - ReturnMethod: Which algorithm produced a portfolio-level rate
    - ReturnSinceInception: Portfolio-level annualized rate plus its start date
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum


class ReturnMethod(str, Enum):
    """
    How a portfolio-level return was obtained.

    Attributes:
        CAGR: Compound growth of total value over total cost
        NEWTON: XIRR solved by Newton-Raphson
        BISECTION: XIRR solved by bisection after Newton failed
        WEIGHTED_ANNUALIZED: Cost-weighted mean of per-position annualized
            returns, used when no XIRR root could be found
    """
    CAGR = "cagr"
    NEWTON = "newton"
    BISECTION = "bisection"
    WEIGHTED_ANNUALIZED = "weighted_annualized"


@dataclass(frozen=True)
class CashFlow:
    """
    A cash flow event for XIRR.

    Attributes:
        date: When the cash flow occurred
        amount: Negative = money invested, Positive = value returned

    Note:
        The current portfolio value is the terminal positive flow.
    """
    date: date
    amount: Decimal


@dataclass(frozen=True)
class ReturnSinceInception:
    """
    Annualized portfolio return.

    Attributes:
        return_pct: Annual rate in percent (10.5 = 10.5% per year)
        earliest_date: First transaction date the rate is measured from
        method: Algorithm that produced return_pct
    """
    return_pct: Decimal
    earliest_date: date
    method: ReturnMethod
