# portfolio_core/services/analytics/returns.py
"""
Return calculation functions.

Pure functions over valued positions and portfolio summaries:
- Annualized return of a single position (given its total return %)
- Cost-weighted annualized return of a portfolio
- CAGR since inception (total value vs. total cost)
- Money-weighted return (XIRR) with a three-stage fallback chain

All functions accept ``as_of`` (defaults to today) so results are
reproducible in tests. Rates are returned in PERCENT as Decimal.

Formulas:
    years = days / 365.25

    Annualized = ((1 + r/100)^(1/years) - 1) × 100     (None if years < 1)

    CAGR = ((value / cost)^(1/years) - 1) × 100

    XIRR solves: Σ CF_i / (1 + r)^t_i = 0,  t_i in years from the first flow

XIRR fallback chain:
    1. Newton-Raphson from r = 0.10 (analytic derivative, step < 1e-8,
       at most 50 iterations). Rejected if it diverges or lands on
       r <= -0.9999 or a non-finite value.
    2. Bisection over [-0.99, 10.0], 80 halvings. Requires a sign change.
    3. Cost-weighted annualized return of positions held >= 1 year.

Precision Note (Decimal vs Float):
    Non-integer exponents and the root-finding loops run in float.
    Results are converted back to Decimal with 8 decimal places, which is
    far below any meaningful difference in an annual rate.
"""

import logging
import math
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from portfolio_core.services.analytics.types import (
    CashFlow,
    ReturnMethod,
    ReturnSinceInception,
)
from portfolio_core.services.constants import (
    BISECTION_HIGH,
    BISECTION_ITERATIONS,
    BISECTION_LOW,
    DAYS_PER_YEAR,
    MIN_ANNUALIZATION_YEARS,
    ONE_HUNDRED,
    RATE_PRECISION,
    XIRR_DEGENERATE_RATE,
    XIRR_INITIAL_GUESS,
    XIRR_MAX_ITERATIONS,
    XIRR_TOLERANCE,
    ZERO,
)
from portfolio_core.services.valuation.types import PortfolioSummary
from portfolio_core.utils.date_utils import parse_transaction_date, years_between

logger = logging.getLogger(__name__)

TOTAL_LOSS_PCT = Decimal("-100")


def _to_decimal(value: float) -> Decimal:
    return Decimal(str(value)).quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)


# =============================================================================
# POSITION-LEVEL ANNUALIZATION
# =============================================================================

def annualized_return(
        total_return_pct: Decimal | float,
        start_date: date | str,
        as_of: date | None = None,
) -> Decimal | None:
    """
    Annualize a position's total return.

    Args:
        total_return_pct: Total return in percent (20 = +20%)
        start_date: Purchase date (date or "YYYY-MM-DD"/"YYYY/MM/DD")
        as_of: Valuation date (defaults to today)

    Returns:
        Annual rate in percent, None if held less than one year.
        A total loss of 100% or more annualizes to -100.
    """
    start = parse_transaction_date(start_date)
    years = years_between(start, as_of or date.today())
    if years < MIN_ANNUALIZATION_YEARS:
        return None

    base = 1 + float(total_return_pct) / 100
    if base <= 0:
        return TOTAL_LOSS_PCT

    return _to_decimal((base ** (1 / years) - 1) * 100)


def portfolio_weighted_annualized_return(
        summary: PortfolioSummary,
        as_of: date | None = None,
) -> Decimal | None:
    """
    Cost-weighted mean of per-position annualized returns.

    Each position's total return is taken from its unrounded P&L over
    cost. Positions without a current price or cost, or held less than
    one year, are left out (their weight too).

    Returns:
        Annual rate in percent, None if no position qualifies
    """
    weighted_sum = ZERO
    total_weight = ZERO

    for position in summary.positions:
        if position.current_price is None or position.cost_in_jpy <= ZERO:
            continue
        total_return_pct = position.pnl_jpy / position.cost_in_jpy * ONE_HUNDRED
        annualized = annualized_return(total_return_pct, position.transaction_date, as_of)
        if annualized is None:
            continue
        weighted_sum += annualized * position.cost_in_jpy
        total_weight += position.cost_in_jpy

    if total_weight <= ZERO:
        return None
    return (weighted_sum / total_weight).quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)


# =============================================================================
# CAGR SINCE INCEPTION
# =============================================================================

def portfolio_cagr_since_inception(
        summary: PortfolioSummary,
        as_of: date | None = None,
) -> ReturnSinceInception | None:
    """
    Compound annual growth of total value over total cost.

    Treats the whole cost as if invested on the earliest transaction
    date, so it understates returns of portfolios built up over time.
    Prefer portfolio_money_weighted_return for those.

    Returns:
        ReturnSinceInception, or None when there are no positions, no
        elapsed time, or a non-positive total cost or value
    """
    earliest = summary.earliest_transaction_date
    if earliest is None:
        return None

    years = years_between(earliest, as_of or date.today())
    if years <= 0:
        return None
    if summary.total_cost_jpy <= ZERO or summary.total_value_jpy <= ZERO:
        return None

    ratio = float(summary.total_value_jpy / summary.total_cost_jpy)
    try:
        cagr = (ratio ** (1 / years) - 1) * 100
    except OverflowError:
        logger.warning(f"CAGR overflow over {years:.4f} years (ratio={ratio})")
        return None

    return ReturnSinceInception(
        return_pct=_to_decimal(cagr),
        earliest_date=earliest,
        method=ReturnMethod.CAGR,
    )


# =============================================================================
# MONEY-WEIGHTED RETURN (XIRR)
# =============================================================================

def portfolio_cash_flows(summary: PortfolioSummary, as_of: date | None = None) -> list[CashFlow]:
    """
    Cash-flow schedule of a portfolio.

    One negative flow of -cost_in_jpy per position on its transaction
    date, plus the total current value as a positive flow on ``as_of``.
    """
    flows = [CashFlow(p.transaction_date, -p.cost_in_jpy) for p in summary.positions]
    flows.append(CashFlow(as_of or date.today(), summary.total_value_jpy))
    return flows


def portfolio_money_weighted_return(
        summary: PortfolioSummary,
        as_of: date | None = None,
) -> ReturnSinceInception | None:
    """
    Money-weighted annual return (XIRR) of the portfolio.

    Never raises: each solver failure falls through to the next stage
    (Newton-Raphson, bisection, weighted annualized return).

    Returns:
        ReturnSinceInception tagged with the method that produced it, or
        None when every stage fails
    """
    earliest = summary.earliest_transaction_date
    if earliest is None:
        return None

    flows = portfolio_cash_flows(summary, as_of)

    rate = solve_xirr_newton(flows)
    if rate is not None:
        return ReturnSinceInception(_to_decimal(rate * 100), earliest, ReturnMethod.NEWTON)

    logger.warning("XIRR Newton-Raphson failed, trying bisection")
    rate = solve_xirr_bisection(flows)
    if rate is not None:
        return ReturnSinceInception(_to_decimal(rate * 100), earliest, ReturnMethod.BISECTION)

    logger.warning("XIRR root not bracketed, using weighted annualized return")
    weighted = portfolio_weighted_annualized_return(summary, as_of)
    if weighted is not None:
        return ReturnSinceInception(weighted, earliest, ReturnMethod.WEIGHTED_ANNUALIZED)

    logger.warning("No money-weighted return available")
    return None


def _year_fractions(cash_flows: list[CashFlow]) -> list[tuple[float, float]] | None:
    """
    Convert flows to (years since first flow, amount) pairs.

    Returns None unless there is at least one negative and one positive flow.
    """
    if len(cash_flows) < 2:
        return None

    base_date = min(cf.date for cf in cash_flows)
    flows = [
        (years_between(base_date, cf.date), float(cf.amount))
        for cf in cash_flows
    ]

    has_positive = any(amount > 0 for _, amount in flows)
    has_negative = any(amount < 0 for _, amount in flows)
    if not (has_positive and has_negative):
        logger.debug("XIRR requires both positive and negative cash flows")
        return None
    return flows


def _npv(rate: float, flows: list[tuple[float, float]]) -> float:
    return sum(amount / (1 + rate) ** years for years, amount in flows)


def _npv_derivative(rate: float, flows: list[tuple[float, float]]) -> float:
    # d/dr [CF / (1+r)^t] = -t * CF / (1+r)^(t+1)
    return sum(-years * amount / (1 + rate) ** (years + 1) for years, amount in flows)


def solve_xirr_newton(
        cash_flows: list[CashFlow],
        guess: float = XIRR_INITIAL_GUESS,
        tolerance: float = XIRR_TOLERANCE,
        max_iterations: int = XIRR_MAX_ITERATIONS,
) -> float | None:
    """
    Solve XIRR with Newton-Raphson.

    Args:
        cash_flows: Dated flows (negative = invested, positive = returned)
        guess: Starting rate (0.10 = 10%)
        tolerance: Stop once successive iterates differ by less than this
        max_iterations: Iteration cap

    Returns:
        Annual rate as a fraction (0.10 = 10%), or None if the solver did
        not converge or landed on a degenerate rate
    """
    flows = _year_fractions(cash_flows)
    if flows is None:
        return None

    rate = guess
    for iteration in range(max_iterations):
        if rate <= -1:
            return None
        try:
            npv = _npv(rate, flows)
            derivative = _npv_derivative(rate, flows)
        except (OverflowError, ZeroDivisionError):
            return None

        if derivative == 0 or not math.isfinite(derivative):
            return None

        next_rate = rate - npv / derivative
        if not math.isfinite(next_rate):
            return None

        if abs(next_rate - rate) < tolerance:
            rate = next_rate
            logger.debug(f"XIRR Newton converged after {iteration + 1} iterations")
            break
        rate = next_rate
    else:
        logger.debug(f"XIRR Newton did not converge after {max_iterations} iterations")
        return None

    if rate <= XIRR_DEGENERATE_RATE or not math.isfinite(rate):
        return None
    return rate


def solve_xirr_bisection(
        cash_flows: list[CashFlow],
        low: float = BISECTION_LOW,
        high: float = BISECTION_HIGH,
        iterations: int = BISECTION_ITERATIONS,
) -> float | None:
    """
    Solve XIRR by bisection over [low, high].

    Returns:
        Annual rate as a fraction, or None when NPV does not change sign
        over the interval
    """
    flows = _year_fractions(cash_flows)
    if flows is None:
        return None

    try:
        npv_low = _npv(low, flows)
        npv_high = _npv(high, flows)
    except (OverflowError, ZeroDivisionError):
        return None

    if npv_low == 0:
        return low
    if npv_high == 0:
        return high
    if (npv_low > 0) == (npv_high > 0):
        return None

    for _ in range(iterations):
        mid = (low + high) / 2
        try:
            npv_mid = _npv(mid, flows)
        except (OverflowError, ZeroDivisionError):
            return None

        if (npv_mid > 0) == (npv_low > 0):
            low, npv_low = mid, npv_mid
        else:
            high = mid

    return (low + high) / 2
