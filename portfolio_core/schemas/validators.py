# portfolio_core/schemas/validators.py
"""
Reusable validation functions for Pydantic schemas.

- Ticker validation and normalization
- Currency code validation
- Transaction date normalization

All validators raise ValueError so Pydantic reports them as field errors.
"""

import re

from portfolio_core.services.exceptions import InvalidDateError
from portfolio_core.utils.date_utils import normalize_date_string

# =============================================================================
# CONSTANTS
# =============================================================================

# Ticker: 1-20 chars, alphanumeric + dots, dashes, "=" (FX) or leading caret (indices)
TICKER_PATTERN = re.compile(r'^[\^]?[A-Z0-9][A-Z0-9.\-=]{0,19}$')
TICKER_MAX_LENGTH = 20

# Currency: ISO 4217 format (3 uppercase letters)
CURRENCY_PATTERN = re.compile(r'^[A-Z]{3}$')


def validate_ticker(value: str) -> str:
    """
    Validate and normalize a ticker symbol.

    Valid formats:
    - Standard tickers: AAPL, VOO
    - Exchange suffixes: 7203.T, SAP.DE
    - Indices with caret: ^N225

    Raises:
        ValueError: If ticker format is invalid
    """
    if not value:
        raise ValueError("Ticker cannot be empty")

    normalized = value.strip().upper()

    if len(normalized) > TICKER_MAX_LENGTH:
        raise ValueError(f"Ticker cannot exceed {TICKER_MAX_LENGTH} characters")

    if not TICKER_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid ticker format: '{normalized}'. "
            "Ticker must be alphanumeric, may include dots (.) or start with caret (^)"
        )

    return normalized


def validate_currency(value: str) -> str:
    """
    Validate and normalize an ISO 4217 currency code.

    Unsupported-but-well-formed codes are accepted; they only lose their
    display symbol.

    Raises:
        ValueError: If not three letters
    """
    normalized = (value or "").strip().upper()
    if not CURRENCY_PATTERN.match(normalized):
        raise ValueError(f"Invalid currency code: '{value}'. Expected 3 letters (e.g., USD)")
    return normalized


def validate_transaction_date(value: str) -> str:
    """
    Normalize "YYYY/MM/DD" or "YYYY-MM-DD" to "YYYY-MM-DD".

    Raises:
        ValueError: If the string is not a valid date
    """
    try:
        return normalize_date_string(value)
    except InvalidDateError as e:
        raise ValueError(e.message) from None
