# portfolio_core/services/currency.py
"""
Currency reference data.

Static table of the currencies a position may be bought or quoted in,
plus the small helpers built on top of it (symbols, display formatting,
FX pair strings).

The table is a plain enumerated mapping keyed by ISO 4217 code. Unknown
codes are tolerated everywhere: lookups fall back to the code itself so
a new currency never breaks valuation, only its pretty-printing.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from portfolio_core.config import settings
from portfolio_core.services.exceptions import FXConversionError


@dataclass(frozen=True)
class Currency:
    """
    One supported currency.

    Attributes:
        code: ISO 4217 code (e.g., "USD")
        name: English display name
        symbol: Display symbol (e.g., "$", "HK$")
        decimal_places: Digits shown after the decimal point
    """

    code: str
    name: str
    symbol: str
    decimal_places: int = 2


SUPPORTED_CURRENCIES: dict[str, Currency] = {
    "JPY": Currency("JPY", "Japanese Yen", "¥", 0),
    "USD": Currency("USD", "US Dollar", "$"),
    "EUR": Currency("EUR", "Euro", "€"),
    "GBP": Currency("GBP", "British Pound", "£"),
    "CHF": Currency("CHF", "Swiss Franc", "CHF"),
    "CAD": Currency("CAD", "Canadian Dollar", "C$"),
    "AUD": Currency("AUD", "Australian Dollar", "A$"),
    "HKD": Currency("HKD", "Hong Kong Dollar", "HK$"),
    "SGD": Currency("SGD", "Singapore Dollar", "S$"),
    "KRW": Currency("KRW", "Korean Won", "₩", 0),
    "CNY": Currency("CNY", "Chinese Yuan", "¥"),
}


def get_currency(code: str) -> Currency | None:
    """Look up a currency by code (case-insensitive)."""
    return SUPPORTED_CURRENCIES.get(code.strip().upper())


def is_supported(code: str) -> bool:
    return get_currency(code) is not None


def currency_symbol(code: str) -> str:
    """
    Get the display symbol for a currency.

    Args:
        code: ISO 4217 code

    Returns:
        Symbol, or the code itself for unknown currencies
    """
    currency = get_currency(code)
    return currency.symbol if currency else code


def decimal_places(code: str) -> int:
    """Number of fraction digits displayed for a currency (2 if unknown)."""
    currency = get_currency(code)
    return currency.decimal_places if currency else 2


def format_amount(amount: Decimal | float | int, code: str) -> str:
    """
    Format an amount with symbol, thousands separators and the currency's
    conventional number of decimal places.

    Examples:
        format_amount(Decimal("1950000"), "JPY")  -> "¥1,950,000"
        format_amount(Decimal("1234.5"), "USD")   -> "$1,234.50"
    """
    places = decimal_places(code)
    exponent = Decimal(1).scaleb(-places)
    rounded = Decimal(str(amount)).quantize(exponent, rounding=ROUND_HALF_UP)
    return f"{currency_symbol(code)}{rounded:,.{places}f}"


# =============================================================================
# FX PAIRS
# =============================================================================

def currency_pair(from_currency: str, to_currency: str | None = None) -> str:
    """
    Build the FX pair string used by market data providers.

    Args:
        from_currency: Currency being converted
        to_currency: Target currency (defaults to the reporting currency)

    Returns:
        Six-letter pair such as "USDJPY", or "" when no conversion is needed
    """
    target = (to_currency or settings.reporting_currency).upper()
    source = from_currency.upper()
    if source == target:
        return ""
    return f"{source}{target}"


def split_pair(pair: str) -> tuple[str, str]:
    """
    Split a six-letter pair into (base, quote).

    Raises:
        FXConversionError: If the pair is not two three-letter codes
    """
    cleaned = pair.strip().upper()
    if len(cleaned) != 6 or not cleaned.isalpha():
        raise FXConversionError(pair, "expected two three-letter currency codes")
    return cleaned[:3], cleaned[3:]
