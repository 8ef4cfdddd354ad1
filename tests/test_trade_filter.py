"""Tests for tradebook.search.filters — structured criteria to predicate."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from tradebook.search.filters import (
    SearchCriteria,
    TradeFilter,
    build_search_criteria,
    build_trade_filter,
)
from tradebook.search.predicate import (
    MATCH_ALL,
    And,
    AnyLeg,
    Comparison,
    ComparisonOp,
    Or,
)


def _c(selector: str, op: ComparisonOp, value: object) -> Comparison:
    return Comparison(selector, op, (value,))


class TestBuildTradeFilter:
    def test_empty_filter_matches_all(self) -> None:
        assert build_trade_filter(TradeFilter()) is MATCH_ALL

    def test_blank_strings_ignored(self) -> None:
        assert build_trade_filter(TradeFilter(book_name="  ", currency="")) is MATCH_ALL

    def test_single_criterion_is_not_wrapped(self) -> None:
        assert build_trade_filter(TradeFilter(trade_id=7)) == _c(
            "trade_id", ComparisonOp.EQ, 7,
        )

    def test_text_operators(self) -> None:
        predicate = build_trade_filter(TradeFilter(
            book_name=" FX ",
            counterparty_name="Bank",
            trade_type_name="Swap",
            trade_sub_type_name="IR Swap",
            trade_status_name="NEW",
        ))
        assert predicate == And((
            _c("book", ComparisonOp.ICONTAINS, "FX"),
            _c("counterparty", ComparisonOp.ICONTAINS, "Bank"),
            _c("trade_type", ComparisonOp.IEQ, "Swap"),
            _c("trade_sub_type", ComparisonOp.IEQ, "IR Swap"),
            _c("status", ComparisonOp.IEQ, "NEW"),
        ))

    def test_date_bounds(self) -> None:
        predicate = build_trade_filter(TradeFilter(
            trade_date_from=date(2025, 1, 1),
            trade_date=date(2025, 1, 31),
            maturity_date=date(2026, 1, 1),
            execution_date=date(2025, 2, 1),
        ))
        assert predicate == And((
            _c("trade_date", ComparisonOp.GE, date(2025, 1, 1)),
            _c("trade_date", ComparisonOp.LE, date(2025, 1, 31)),
            _c("maturity_date", ComparisonOp.GE, date(2026, 1, 1)),
            _c("execution_date", ComparisonOp.LE, date(2025, 2, 1)),
        ))

    def test_active_false_is_a_criterion(self) -> None:
        assert build_trade_filter(TradeFilter(active=False)) == _c(
            "active", ComparisonOp.EQ, False,
        )

    def test_leg_criteria_share_one_any_leg(self) -> None:
        predicate = build_trade_filter(TradeFilter(
            book_name="FX",
            min_notional=Decimal("1000000"),
            rate_to=0.06,
            currency="USD",
            pay_receive_flag="Pay",
        ))
        assert predicate == And((
            _c("book", ComparisonOp.ICONTAINS, "FX"),
            AnyLeg(And((
                _c("legs.notional", ComparisonOp.GE, Decimal("1000000")),
                _c("legs.rate", ComparisonOp.LE, 0.06),
                _c("legs.currency", ComparisonOp.IEQ, "USD"),
                _c("legs.pay_receive", ComparisonOp.IEQ, "Pay"),
            ))),
        ))

    def test_single_leg_criterion(self) -> None:
        assert build_trade_filter(TradeFilter(index_name="SOFR")) == AnyLeg(
            _c("legs.index", ComparisonOp.IEQ, "SOFR"),
        )

    def test_trader_login_is_added_first(self) -> None:
        predicate = build_trade_filter(TradeFilter(version=2), trader_login=" alice ")
        assert predicate == And((
            _c("trader", ComparisonOp.IEQ, "alice"),
            _c("version", ComparisonOp.EQ, 2),
        ))

    def test_no_leg_join_without_leg_criteria(self) -> None:
        predicate = build_trade_filter(TradeFilter(book_name="FX", active=True))
        assert isinstance(predicate, And)
        assert not any(isinstance(child, AnyLeg) for child in predicate.children)

    @given(
        st.one_of(st.none(), st.text(max_size=8)),
        st.one_of(st.none(), st.text(max_size=8)),
        st.one_of(st.none(), st.integers(min_value=1, max_value=10)),
    )
    def test_one_conjunct_per_supplied_criterion(
        self, book: str | None, currency: str | None, version: int | None,
    ) -> None:
        predicate = build_trade_filter(TradeFilter(
            book_name=book, currency=currency, version=version,
        ))
        supplied = sum([
            bool(book and book.strip()),
            bool(currency and currency.strip()),
            version is not None,
        ])
        if supplied == 0:
            assert predicate is MATCH_ALL
        elif supplied == 1:
            assert not isinstance(predicate, And)
        else:
            assert isinstance(predicate, And)
            assert len(predicate.children) == supplied


class TestBuildSearchCriteria:
    def test_empty(self) -> None:
        assert build_search_criteria(SearchCriteria()) is MATCH_ALL

    def test_all_criteria(self) -> None:
        predicate = build_search_criteria(SearchCriteria(
            counterparty_name="bank",
            book_name="fx",
            trader="ali",
            status="NEW",
            from_date=date(2025, 1, 1),
            to_date=date(2025, 12, 31),
        ))
        assert predicate == And((
            _c("counterparty", ComparisonOp.ICONTAINS, "bank"),
            _c("book", ComparisonOp.ICONTAINS, "fx"),
            Or((
                _c("trader", ComparisonOp.ICONTAINS, "ali"),
                _c("trader.full_name", ComparisonOp.ICONTAINS, "ali"),
            )),
            _c("status", ComparisonOp.IEQ, "NEW"),
            _c("trade_date", ComparisonOp.GE, date(2025, 1, 1)),
            _c("trade_date", ComparisonOp.LE, date(2025, 12, 31)),
        ))
