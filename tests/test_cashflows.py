"""Tests for tradebook.trade.cashflows — schedule parsing and cashflow generation."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from hypothesis import given
from hypothesis import strategies as st

from tradebook.core.result import Err, Ok, unwrap
from tradebook.core.types import EntityRef
from tradebook.trade.cashflows import (
    DEFAULT_SCHEDULE_MONTHS,
    generate_leg_cashflows,
    parse_schedule,
    payment_dates,
    period_amount,
)

if TYPE_CHECKING:
    from conftest import Desk

START = date(2025, 1, 17)
MATURITY = date(2026, 1, 17)


class TestParseSchedule:
    def test_named(self) -> None:
        assert parse_schedule("Monthly") == Ok(1)
        assert parse_schedule("quarterly") == Ok(3)
        assert parse_schedule("Semi-Annually") == Ok(6)
        assert parse_schedule(" Annually ") == Ok(12)

    def test_tenor(self) -> None:
        assert parse_schedule("6M") == Ok(6)
        assert parse_schedule("12m") == Ok(12)

    def test_missing_defaults_to_quarterly(self) -> None:
        assert parse_schedule(None) == Ok(DEFAULT_SCHEDULE_MONTHS)
        assert parse_schedule("  ") == Ok(3)

    def test_zero_tenor_rejected(self) -> None:
        assert isinstance(parse_schedule("0M"), Err)

    def test_unknown_rejected(self) -> None:
        match parse_schedule("fortnightly"):
            case Err(reason):
                assert "fortnightly" in reason
            case Ok(_):
                raise AssertionError("expected Err")


class TestPaymentDates:
    def test_monthly_year_has_twelve_dates(self) -> None:
        dates = payment_dates(START, MATURITY, 1)
        assert len(dates) == 12
        assert dates[0] == date(2025, 2, 17)
        assert dates[-1] == MATURITY

    def test_quarterly_year_has_four_dates(self) -> None:
        assert payment_dates(START, MATURITY, 3) == [
            date(2025, 4, 17), date(2025, 7, 17), date(2025, 10, 17), date(2026, 1, 17),
        ]

    def test_month_end_does_not_drift(self) -> None:
        assert payment_dates(date(2025, 1, 31), date(2025, 4, 30), 1) == [
            date(2025, 2, 28), date(2025, 3, 31), date(2025, 4, 30),
        ]

    def test_no_date_past_maturity(self) -> None:
        assert payment_dates(START, date(2025, 3, 1), 1) == [date(2025, 2, 17)]

    def test_maturity_inside_first_period(self) -> None:
        assert payment_dates(START, date(2025, 2, 1), 1) == []

    @given(
        st.dates(min_value=date(2000, 1, 1), max_value=date(2040, 1, 1)),
        st.integers(min_value=0, max_value=60),
        st.sampled_from([1, 3, 6, 12]),
    )
    def test_dates_strictly_increase_within_term(
        self, start: date, term_months: int, months: int,
    ) -> None:
        maturity = date(start.year + term_months // 12 + 1, 1, 1)
        dates = payment_dates(start, maturity, months)
        assert all(start < d <= maturity for d in dates)
        assert dates == sorted(set(dates))


class TestPeriodAmount:
    def test_fixed_leg_pays_rate_fraction(self, desk: Desk) -> None:
        amount = period_amount(desk.fixed_leg(), 1)
        assert round(amount, 2) == Decimal("4166.67")

    def test_fixed_quarterly(self, desk: Desk) -> None:
        assert period_amount(desk.fixed_leg(), 3) == Decimal("12500.00")

    def test_floating_leg_is_zero(self, desk: Desk) -> None:
        assert period_amount(desk.floating_leg(), 1) == Decimal(0)

    def test_fixed_without_rate_is_zero(self, desk: Desk) -> None:
        assert period_amount(desk.fixed_leg(rate=None), 1) == Decimal(0)

    def test_rate_type_matched_case_insensitively(self, desk: Desk) -> None:
        leg = desk.fixed_leg(leg_rate_type=EntityRef(1, " FIXED "))
        assert period_amount(leg, 12) == Decimal("50000.00")


class TestGenerateLegCashflows:
    def test_monthly_fixed_leg(self, desk: Desk) -> None:
        flows = unwrap(generate_leg_cashflows(desk.fixed_leg(), START, MATURITY))
        assert len(flows) == 12
        assert flows[0].period_start == START
        assert flows[0].period_end == flows[0].value_date == date(2025, 2, 17)
        assert flows[1].period_start == flows[0].period_end
        assert all(cf.rate == 0.05 for cf in flows)
        assert all(cf.pay_receive == desk.pay for cf in flows)
        assert all(cf.cashflow_id is None for cf in flows)

    def test_floating_leg_zero_amounts(self, desk: Desk) -> None:
        flows = unwrap(generate_leg_cashflows(desk.floating_leg(), START, MATURITY))
        assert len(flows) == 12
        assert {cf.payment_value for cf in flows} == {Decimal(0)}

    def test_missing_dates_yield_no_cashflows(self, desk: Desk) -> None:
        assert generate_leg_cashflows(desk.fixed_leg(), None, MATURITY) == Ok(())

    def test_invalid_schedule(self, desk: Desk) -> None:
        leg = desk.fixed_leg(schedule=EntityRef(9, "Biweekly"))
        assert isinstance(generate_leg_cashflows(leg, START, MATURITY), Err)

    def test_no_schedule_defaults_to_quarterly(self, desk: Desk) -> None:
        flows = unwrap(generate_leg_cashflows(desk.fixed_leg(schedule=None), START, MATURITY))
        assert len(flows) == 4
