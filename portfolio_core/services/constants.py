# portfolio_core/services/constants.py
"""
Centralized constants for the portfolio valuation services.

Single source of truth for calendar conventions, solver tuning and the
precision used when quantizing monetary values.

Usage:
    from portfolio_core.services.constants import (
        DAYS_PER_YEAR,
        XIRR_INITIAL_GUESS,
        CURRENCY_PRECISION,
    )
"""

from decimal import Decimal


# =============================================================================
# FINANCIAL CALENDAR CONSTANTS
# =============================================================================

# Average calendar year length including leap years.
# Used for every year-fraction computation (annualized return, XIRR, CAGR).
DAYS_PER_YEAR: float = 365.25

# Minimum holding period (in years) before a return is annualized.
# Shorter holdings would extrapolate noise into absurd annual figures.
MIN_ANNUALIZATION_YEARS: float = 1.0


# =============================================================================
# XIRR SOLVER SETTINGS
# =============================================================================

# Newton-Raphson starting point (10% per year)
XIRR_INITIAL_GUESS: float = 0.10

# Convergence threshold on the Newton step size
XIRR_TOLERANCE: float = 1e-8

# Newton-Raphson iteration cap
XIRR_MAX_ITERATIONS: int = 50

# Any Newton result at or below this is treated as a failed solve
XIRR_DEGENERATE_RATE: float = -0.9999

# Bisection bracket and iteration count (2^-80 of an 11-wide interval)
BISECTION_LOW: float = -0.99
BISECTION_HIGH: float = 10.0
BISECTION_ITERATIONS: int = 80


# =============================================================================
# FX FALLBACK
# =============================================================================

# Rate used when neither a historical nor a current FX rate is available
FALLBACK_FX_RATE: Decimal = Decimal("1")


# =============================================================================
# PRECISION CONSTANTS
# =============================================================================

# Monetary amounts in the reporting currency
CURRENCY_PRECISION: Decimal = Decimal("0.01")

# Prices and FX rates as delivered by providers
PRICE_PRECISION: Decimal = Decimal("0.00000001")

# Percentages shown to users (e.g., 6.67%)
DISPLAY_PERCENTAGE_PRECISION: Decimal = Decimal("0.01")

# Rates returned by the return calculator
RATE_PRECISION: Decimal = Decimal("0.00000001")

ZERO: Decimal = Decimal("0")
ONE_HUNDRED: Decimal = Decimal("100")


# =============================================================================
# SNAPSHOT INTERVALS
# =============================================================================

VALID_INTERVALS: tuple[str, ...] = ("daily", "weekly", "monthly")
