# tests/services/test_currency.py
"""
Tests for the currency reference table and helpers.
"""

from decimal import Decimal

import pytest

from portfolio_core.services.currency import (
    SUPPORTED_CURRENCIES,
    currency_pair,
    currency_symbol,
    decimal_places,
    format_amount,
    get_currency,
    is_supported,
    split_pair,
)
from portfolio_core.services.exceptions import FXConversionError


class TestCurrencyTable:
    """Tests for SUPPORTED_CURRENCIES lookups."""

    def test_contains_all_supported_codes(self):
        """Should list the eleven supported currencies."""
        assert set(SUPPORTED_CURRENCIES) == {
            "JPY", "USD", "EUR", "GBP", "CHF", "CAD",
            "AUD", "HKD", "SGD", "KRW", "CNY",
        }

    def test_lookup_is_case_insensitive(self):
        """Should find a currency regardless of case and whitespace."""
        currency = get_currency(" usd ")

        assert currency is not None
        assert currency.name == "US Dollar"
        assert currency.symbol == "$"

    def test_unknown_currency(self):
        """Should return None / fall back to the code for unknown currencies."""
        assert get_currency("XYZ") is None
        assert not is_supported("XYZ")
        assert currency_symbol("XYZ") == "XYZ"
        assert decimal_places("XYZ") == 2

    @pytest.mark.parametrize("code,symbol", [
        ("JPY", "¥"),
        ("CNY", "¥"),
        ("CHF", "CHF"),
        ("HKD", "HK$"),
        ("KRW", "₩"),
    ])
    def test_symbols(self, code, symbol):
        assert currency_symbol(code) == symbol

    def test_zero_decimal_currencies(self):
        """JPY and KRW are displayed without fraction digits."""
        assert decimal_places("JPY") == 0
        assert decimal_places("KRW") == 0
        assert decimal_places("USD") == 2


class TestFormatAmount:
    """Tests for format_amount()."""

    def test_jpy_has_no_decimals(self):
        assert format_amount(Decimal("1950000"), "JPY") == "¥1,950,000"

    def test_jpy_rounds_half_up(self):
        assert format_amount(Decimal("1234.5"), "JPY") == "¥1,235"

    def test_usd_has_two_decimals(self):
        assert format_amount(Decimal("1234.5"), "USD") == "$1,234.50"

    def test_accepts_float(self):
        assert format_amount(99.999, "EUR") == "€100.00"

    def test_negative_amount(self):
        assert format_amount(Decimal("-130000"), "JPY") == "¥-130,000"

    def test_unknown_currency_uses_code(self):
        assert format_amount(Decimal("10"), "XYZ") == "XYZ10.00"


class TestCurrencyPair:
    """Tests for currency_pair() and split_pair()."""

    def test_default_target_is_reporting_currency(self):
        assert currency_pair("USD") == "USDJPY"

    def test_same_currency_is_empty(self):
        assert currency_pair("JPY") == ""
        assert currency_pair("EUR", "EUR") == ""

    def test_explicit_target(self):
        assert currency_pair("eur", "usd") == "EURUSD"

    def test_split_pair(self):
        assert split_pair("usdjpy") == ("USD", "JPY")

    @pytest.mark.parametrize("pair", ["USDJP", "USD/JPY", "", "123456"])
    def test_split_invalid_pair(self, pair):
        with pytest.raises(FXConversionError):
            split_pair(pair)
