# tests/utils/test_date_utils.py
"""
Tests for date utilities: transaction date parsing and snapshot grids.
"""

from datetime import date

import pytest

from portfolio_core.services.exceptions import InvalidDateError, InvalidIntervalError
from portfolio_core.utils.date_utils import (
    generate_snapshot_dates,
    normalize_date_string,
    parse_transaction_date,
    years_between,
)


class TestParseTransactionDate:
    """Tests for parse_transaction_date() / normalize_date_string()."""

    def test_iso_format(self):
        assert parse_transaction_date("2023-04-01") == date(2023, 4, 1)

    def test_slash_format(self):
        assert parse_transaction_date("2023/04/01") == date(2023, 4, 1)

    def test_date_passthrough(self):
        assert parse_transaction_date(date(2023, 4, 1)) == date(2023, 4, 1)

    def test_normalize_to_iso(self):
        assert normalize_date_string("2023/04/01") == "2023-04-01"

    @pytest.mark.parametrize("value", ["", "2023.04.01", "01/04/2023", "2023-02-30", "yesterday"])
    def test_invalid_dates(self, value):
        with pytest.raises(InvalidDateError):
            parse_transaction_date(value)

    def test_non_string_rejected(self):
        with pytest.raises(InvalidDateError):
            parse_transaction_date(20230401)


class TestYearsBetween:
    """Tests for years_between()."""

    def test_uses_365_25_day_year(self):
        assert years_between(date(2020, 1, 1), date(2021, 1, 1)) == pytest.approx(366 / 365.25)

    def test_negative_when_reversed(self):
        assert years_between(date(2021, 1, 1), date(2020, 1, 1)) < 0


class TestGenerateSnapshotDates:
    """Tests for generate_snapshot_dates()."""

    def test_daily(self):
        dates = generate_snapshot_dates(date(2024, 1, 1), date(2024, 1, 5), "daily")

        assert dates == [date(2024, 1, d) for d in range(1, 6)]

    def test_weekly_fridays_plus_end(self):
        # 2024-01-01 is a Monday
        dates = generate_snapshot_dates(date(2024, 1, 1), date(2024, 1, 17), "weekly")

        assert dates == [date(2024, 1, 5), date(2024, 1, 12), date(2024, 1, 17)]

    def test_weekly_ending_on_friday(self):
        dates = generate_snapshot_dates(date(2024, 1, 1), date(2024, 1, 12), "weekly")

        assert dates == [date(2024, 1, 5), date(2024, 1, 12)]

    def test_monthly_first_of_month(self):
        dates = generate_snapshot_dates(date(2023, 11, 15), date(2024, 2, 10), "monthly")

        assert dates == [
            date(2023, 11, 1),
            date(2023, 12, 1),
            date(2024, 1, 1),
            date(2024, 2, 1),
        ]

    def test_start_after_end(self):
        assert generate_snapshot_dates(date(2024, 2, 1), date(2024, 1, 1), "daily") == []

    def test_invalid_interval(self):
        with pytest.raises(InvalidIntervalError) as exc_info:
            generate_snapshot_dates(date(2024, 1, 1), date(2024, 2, 1), "yearly")

        assert exc_info.value.field == "interval"
