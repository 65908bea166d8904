# tests/services/analytics/test_returns.py
"""
Tests for return calculations.

This module tests:
- Position annualization (one-year threshold, total loss)
- CAGR since inception
- Cost-weighted annualized return
- XIRR solvers and the money-weighted fallback chain
"""

import dataclasses
from datetime import date
from decimal import Decimal

import pytest

from portfolio_core.services.analytics import returns
from portfolio_core.services.analytics.returns import (
    annualized_return,
    portfolio_cagr_since_inception,
    portfolio_cash_flows,
    portfolio_money_weighted_return,
    portfolio_weighted_annualized_return,
    solve_xirr_bisection,
    solve_xirr_newton,
)
from portfolio_core.services.analytics.types import CashFlow, ReturnMethod
from portfolio_core.services.valuation.aggregator import PortfolioAggregator
from tests.conftest import create_position


def _summary(*positions):
    return PortfolioAggregator.summarize(list(positions))


# =============================================================================
# ANNUALIZED RETURN
# =============================================================================

class TestAnnualizedReturn:
    """Tests for annualized_return()."""

    def test_less_than_one_year_is_none(self):
        # 364 days
        assert annualized_return(Decimal("20"), date(2023, 1, 1), date(2023, 12, 31)) is None

    def test_just_over_one_year(self):
        # 366 days
        result = annualized_return(Decimal("20"), date(2023, 1, 1), date(2024, 1, 2))

        expected = (1.2 ** (365.25 / 366) - 1) * 100
        assert float(result) == pytest.approx(expected, rel=1e-6)

    def test_two_years(self):
        result = annualized_return(Decimal("21"), date(2021, 1, 1), date(2023, 1, 1))

        assert float(result) == pytest.approx(10.0, abs=0.02)

    def test_accepts_string_date(self):
        result = annualized_return(Decimal("21"), "2021/01/01", date(2023, 1, 1))

        assert result is not None

    def test_total_loss(self):
        assert annualized_return(Decimal("-100"), date(2020, 1, 1), date(2023, 1, 1)) == Decimal("-100")

    def test_returns_decimal_with_fixed_precision(self):
        result = annualized_return(Decimal("50"), date(2020, 1, 1), date(2023, 1, 1))

        assert isinstance(result, Decimal)
        assert result.as_tuple().exponent == -8


# =============================================================================
# CAGR
# =============================================================================

class TestCagrSinceInception:
    """Tests for portfolio_cagr_since_inception()."""

    def test_two_year_growth(self):
        summary = _summary(create_position(
            transaction_date=date(2021, 1, 1), quantity="10", cost_per_unit="100", current_price="121",
        ))

        result = portfolio_cagr_since_inception(summary, as_of=date(2023, 1, 1))

        assert result.method == ReturnMethod.CAGR
        assert result.earliest_date == date(2021, 1, 1)
        assert float(result.return_pct) == pytest.approx(10.0, abs=0.02)

    def test_empty_portfolio(self):
        assert portfolio_cagr_since_inception(_summary(), as_of=date(2023, 1, 1)) is None

    def test_zero_value(self):
        summary = _summary(create_position(transaction_date=date(2021, 1, 1), current_price=None))

        assert portfolio_cagr_since_inception(summary, as_of=date(2023, 1, 1)) is None

    def test_no_elapsed_time(self):
        summary = _summary(create_position(transaction_date=date(2023, 1, 1)))

        assert portfolio_cagr_since_inception(summary, as_of=date(2023, 1, 1)) is None


# =============================================================================
# WEIGHTED ANNUALIZED
# =============================================================================

class TestWeightedAnnualizedReturn:
    """Tests for portfolio_weighted_annualized_return()."""

    def test_cost_weighted_mean(self):
        as_of = date(2023, 1, 1)
        a = create_position(
            ticker="A", transaction_date=date(2021, 1, 1),
            quantity="10", cost_per_unit="100", current_price="121",
        )
        b = create_position(
            ticker="B", transaction_date=date(2020, 1, 1),
            quantity="30", cost_per_unit="100", current_price="150",
        )

        result = portfolio_weighted_annualized_return(_summary(a, b), as_of)

        rate_a = annualized_return(a.pnl_percentage, a.transaction_date, as_of)
        rate_b = annualized_return(b.pnl_percentage, b.transaction_date, as_of)
        expected = (rate_a * 1000 + rate_b * 3000) / 4000
        assert float(result) == pytest.approx(float(expected), abs=1e-6)

    def test_skips_recent_and_unpriced_positions(self):
        as_of = date(2023, 1, 1)
        held = create_position(
            ticker="A", transaction_date=date(2021, 1, 1), current_price="121",
        )
        recent = create_position(ticker="B", transaction_date=date(2022, 6, 1), current_price="500")
        unpriced = create_position(ticker="C", transaction_date=date(2019, 1, 1), current_price=None)

        result = portfolio_weighted_annualized_return(_summary(held, recent, unpriced), as_of)

        assert result == annualized_return(held.pnl_percentage, held.transaction_date, as_of)

    def test_uses_unrounded_position_return(self):
        """The displayed 2 dp percentage does not feed the rate."""
        as_of = date(2023, 1, 1)
        position = create_position(
            transaction_date=date(2020, 1, 1),
            quantity="1", cost_per_unit="1950000", current_price="2080000",
        )
        position = dataclasses.replace(position, pnl_percentage=Decimal("6.67"))

        result = portfolio_weighted_annualized_return(_summary(position), as_of)

        exact = Decimal("130000") / Decimal("1950000") * 100
        assert result == annualized_return(exact, position.transaction_date, as_of)
        assert result != annualized_return(Decimal("6.67"), position.transaction_date, as_of)

    def test_nothing_qualifies(self):
        summary = _summary(create_position(transaction_date=date(2022, 6, 1)))

        assert portfolio_weighted_annualized_return(summary, date(2023, 1, 1)) is None


# =============================================================================
# XIRR
# =============================================================================

class TestXirrSolvers:
    """Tests for solve_xirr_newton() and solve_xirr_bisection()."""

    @pytest.fixture
    def ten_percent_flows(self):
        return [
            CashFlow(date(2023, 1, 1), Decimal("-100")),
            CashFlow(date(2024, 1, 1), Decimal("110")),
        ]

    def test_newton_simple_year(self, ten_percent_flows):
        rate = solve_xirr_newton(ten_percent_flows)

        assert rate == pytest.approx(0.10, abs=1e-3)

    def test_bisection_simple_year(self, ten_percent_flows):
        rate = solve_xirr_bisection(ten_percent_flows)

        assert rate == pytest.approx(0.10, abs=1e-3)

    def test_solvers_agree(self):
        flows = [
            CashFlow(date(2020, 1, 1), Decimal("-1000")),
            CashFlow(date(2021, 7, 1), Decimal("-500")),
            CashFlow(date(2023, 1, 1), Decimal("1800")),
        ]

        assert solve_xirr_newton(flows) == pytest.approx(solve_xirr_bisection(flows), abs=1e-6)

    def test_requires_both_signs(self):
        flows = [
            CashFlow(date(2023, 1, 1), Decimal("-100")),
            CashFlow(date(2024, 1, 1), Decimal("-10")),
        ]

        assert solve_xirr_newton(flows) is None
        assert solve_xirr_bisection(flows) is None

    def test_single_flow(self):
        assert solve_xirr_newton([CashFlow(date(2023, 1, 1), Decimal("100"))]) is None

    def test_bisection_without_sign_change(self):
        """A thousandfold return in a day lies far above the bracket."""
        flows = [
            CashFlow(date(2023, 1, 1), Decimal("-100")),
            CashFlow(date(2023, 1, 2), Decimal("100000")),
        ]

        assert solve_xirr_bisection(flows) is None

    def test_newton_gives_up_after_max_iterations(self, ten_percent_flows):
        assert solve_xirr_newton(ten_percent_flows, max_iterations=1) is None


# =============================================================================
# MONEY-WEIGHTED RETURN
# =============================================================================

class TestMoneyWeightedReturn:
    """Tests for portfolio_money_weighted_return() and its fallback chain."""

    @pytest.fixture
    def summary(self):
        return _summary(create_position(
            transaction_date=date(2021, 1, 1), quantity="10", cost_per_unit="100", current_price="121",
        ))

    def test_cash_flows(self, summary):
        flows = portfolio_cash_flows(summary, date(2023, 1, 1))

        assert flows == [
            CashFlow(date(2021, 1, 1), Decimal("-1000")),
            CashFlow(date(2023, 1, 1), Decimal("1210")),
        ]

    def test_newton(self, summary):
        result = portfolio_money_weighted_return(summary, date(2023, 1, 1))

        assert result.method == ReturnMethod.NEWTON
        assert float(result.return_pct) == pytest.approx(10.0, abs=0.02)

    def test_falls_back_to_bisection(self, summary, monkeypatch):
        monkeypatch.setattr(returns, "solve_xirr_newton", lambda flows: None)

        result = portfolio_money_weighted_return(summary, date(2023, 1, 1))

        assert result.method == ReturnMethod.BISECTION
        assert float(result.return_pct) == pytest.approx(10.0, abs=0.02)

    def test_falls_back_to_weighted_annualized(self, summary, monkeypatch):
        monkeypatch.setattr(returns, "solve_xirr_newton", lambda flows: None)
        monkeypatch.setattr(returns, "solve_xirr_bisection", lambda flows: None)

        result = portfolio_money_weighted_return(summary, date(2023, 1, 1))

        assert result.method == ReturnMethod.WEIGHTED_ANNUALIZED
        assert result.return_pct == portfolio_weighted_annualized_return(summary, date(2023, 1, 1))

    def test_every_stage_fails(self, monkeypatch):
        monkeypatch.setattr(returns, "solve_xirr_newton", lambda flows: None)
        monkeypatch.setattr(returns, "solve_xirr_bisection", lambda flows: None)
        summary = _summary(create_position(transaction_date=date(2022, 6, 1)))

        assert portfolio_money_weighted_return(summary, date(2023, 1, 1)) is None

    def test_empty_portfolio(self):
        assert portfolio_money_weighted_return(_summary(), date(2023, 1, 1)) is None
