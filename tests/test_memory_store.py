"""Tests for tradebook.infra.memory_adapter — the in-memory TradeStore."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from tradebook.core.errors import PersistenceError, StateConflictError
from tradebook.core.result import Err, unwrap
from tradebook.core.types import EntityRef, UtcDatetime
from tradebook.infra.memory_adapter import FIRST_TRADE_ID, InMemoryTradeStore
from tradebook.infra.protocols import TradeStore
from tradebook.search.paging import DEFAULT_SORT, Sort
from tradebook.search.predicate import MATCH_ALL, Comparison, ComparisonOp
from tradebook.trade.types import Cashflow, Trade, TradeLeg

_NOW = UtcDatetime.now()


def _trade(trade_id: int = 1, version: int = 1, **overrides: object) -> Trade:
    cashflow = Cashflow(
        value_date=date(2025, 2, 17),
        payment_value=Decimal("4166.67"),
        rate=0.05,
        pay_receive=EntityRef(1, "Pay"),
        period_start=date(2025, 1, 17),
        period_end=date(2025, 2, 17),
    )
    leg = TradeLeg(
        notional=Decimal("1000000"), rate=0.05, currency=EntityRef(1, "USD"),
        leg_rate_type=EntityRef(1, "Fixed"), pay_receive=EntityRef(1, "Pay"),
        index=None, schedule=EntityRef(1, "Monthly"), cashflows=(cashflow, cashflow),
    )
    trade = Trade(
        trade_id=trade_id, version=version, active=True, status=EntityRef(1, "NEW"),
        trade_date=date(2025, 1, 17), start_date=None, maturity_date=date(2026, 1, 17),
        execution_date=None, trade_type=None, trade_sub_type=None,
        book=EntityRef(1, "FX-Options-London"), counterparty=EntityRef(1, "BigBank"),
        trader=EntityRef(1, "alice"), inputter=None,
        created_at=_NOW, last_touch_at=_NOW, legs=(leg, leg),
    )
    return replace(trade, **overrides)


class TestProtocol:
    def test_satisfies_trade_store(self) -> None:
        assert isinstance(InMemoryTradeStore(), TradeStore)


class TestIds:
    def test_trade_ids_start_at_first_id(self) -> None:
        store = InMemoryTradeStore()
        assert unwrap(store.next_trade_id()) == FIRST_TRADE_ID
        assert unwrap(store.next_trade_id()) == FIRST_TRADE_ID + 1

    def test_skips_ids_taken_by_caller(self) -> None:
        store = InMemoryTradeStore(first_trade_id=5)
        unwrap(store.save(_trade(5), supersedes=None))
        assert unwrap(store.next_trade_id()) == 6

    def test_save_assigns_row_leg_and_cashflow_ids(self) -> None:
        saved = unwrap(InMemoryTradeStore().save(_trade(), supersedes=None))
        assert saved.row_id is not None
        leg_ids = [leg.leg_id for leg in saved.legs]
        cashflow_ids = [cf.cashflow_id for leg in saved.legs for cf in leg.cashflows]
        assert None not in leg_ids
        assert len(set(leg_ids)) == 2
        assert len(set(cashflow_ids)) == 4


class TestSave:
    def test_new_trade(self) -> None:
        store = InMemoryTradeStore()
        saved = unwrap(store.save(_trade(), supersedes=None))
        assert unwrap(store.find_active(1)) == saved
        assert unwrap(store.find_versions(1)) == (saved,)

    def test_new_trade_conflicts_with_existing_id(self) -> None:
        store = InMemoryTradeStore()
        unwrap(store.save(_trade(), supersedes=None))
        result = store.save(_trade(), supersedes=None)
        assert isinstance(result, Err)
        assert isinstance(result.error, StateConflictError)
        assert store.count() == 1

    def test_supersede_deactivates_previous(self) -> None:
        store = InMemoryTradeStore()
        v1 = unwrap(store.save(_trade(), supersedes=None))
        v2 = unwrap(store.save(_trade(version=2), supersedes=v1))
        versions = unwrap(store.find_versions(1))
        assert [(t.version, t.active) for t in versions] == [(1, False), (2, True)]
        assert unwrap(store.find_active(1)) == v2

    def test_closing_version_leaves_no_active(self) -> None:
        store = InMemoryTradeStore()
        v1 = unwrap(store.save(_trade(), supersedes=None))
        unwrap(store.save(_trade(version=2, active=False), supersedes=v1))
        assert unwrap(store.find_active(1)) is None
        assert store.active_count(1) == 0

    def test_stale_supersedes_conflicts(self) -> None:
        store = InMemoryTradeStore()
        v1 = unwrap(store.save(_trade(), supersedes=None))
        unwrap(store.save(_trade(version=2), supersedes=v1))
        result = store.save(_trade(version=2), supersedes=v1)
        assert isinstance(result, Err)
        assert isinstance(result.error, StateConflictError)
        assert result.error.expected_version == 1
        assert store.count() == 2

    def test_supersedes_unknown_trade_conflicts(self) -> None:
        result = InMemoryTradeStore().save(_trade(version=2), supersedes=_trade())
        assert isinstance(result, Err)
        assert isinstance(result.error, StateConflictError)

    def test_version_gap_rejected(self) -> None:
        store = InMemoryTradeStore()
        v1 = unwrap(store.save(_trade(), supersedes=None))
        result = store.save(_trade(version=5), supersedes=v1)
        assert isinstance(result, Err)
        assert isinstance(result.error, PersistenceError)
        assert store.active_count(1) == 1


class TestFailures:
    @pytest.mark.parametrize("operation", [
        "find_active", "find_versions", "next_trade_id", "save", "search",
    ])
    def test_simulated_failure(self, operation: str) -> None:
        store = InMemoryTradeStore()
        store.simulate_failure(operation)
        calls = {
            "find_active": lambda: store.find_active(1),
            "find_versions": lambda: store.find_versions(1),
            "next_trade_id": store.next_trade_id,
            "save": lambda: store.save(_trade(), supersedes=None),
            "search": lambda: store.search(
                MATCH_ALL, page=0, page_size=10, sort=DEFAULT_SORT,
            ),
        }
        result = calls[operation]()
        assert isinstance(result, Err)
        assert isinstance(result.error, PersistenceError)
        assert result.error.operation == operation
        store.restore()
        assert not isinstance(calls[operation](), Err)


class TestSearch:
    def _store(self) -> InMemoryTradeStore:
        store = InMemoryTradeStore()
        v1 = unwrap(store.save(_trade(1), supersedes=None))
        unwrap(store.save(_trade(1, version=2), supersedes=v1))
        unwrap(store.save(
            _trade(2, book=EntityRef(2, "Rates-NY"), trade_date=date(2025, 1, 10)),
            supersedes=None,
        ))
        unwrap(store.save(_trade(3, trade_date=None), supersedes=None))
        return store

    def test_filter_and_dedup(self) -> None:
        store = self._store()
        active = Comparison("active", ComparisonOp.EQ, (True,))
        page = unwrap(store.search(active, page=0, page_size=10, sort=DEFAULT_SORT))
        assert [t.key for t in page.items] == [(1, 2), (2, 1), (3, 1)]

    def test_default_order_is_key(self) -> None:
        store = self._store()
        page = unwrap(store.search(MATCH_ALL, page=0, page_size=10, sort=DEFAULT_SORT))
        assert [t.key for t in page.items] == [(1, 1), (1, 2), (2, 1), (3, 1)]

    def test_sort_by_field_nulls_last(self) -> None:
        store = self._store()
        page = unwrap(store.search(
            MATCH_ALL, page=0, page_size=10, sort=Sort("trade_date"),
        ))
        assert [t.trade_id for t in page.items] == [2, 1, 1, 3]

    def test_sort_descending(self) -> None:
        store = self._store()
        page = unwrap(store.search(
            MATCH_ALL, page=0, page_size=10, sort=Sort("trade_id", descending=True),
        ))
        assert [t.trade_id for t in page.items][0] == 3

    def test_pagination(self) -> None:
        store = self._store()
        page = unwrap(store.search(MATCH_ALL, page=1, page_size=3, sort=DEFAULT_SORT))
        assert [t.key for t in page.items] == [(3, 1)]
        assert page.total_items == 4
        assert page.total_pages == 2
        assert not page.has_next

    def test_page_past_end_is_empty(self) -> None:
        store = self._store()
        page = unwrap(store.search(MATCH_ALL, page=9, page_size=3, sort=DEFAULT_SORT))
        assert page.items == ()
        assert page.total_items == 4

    def test_unknown_sort_field_keeps_key_order(self) -> None:
        store = self._store()
        page = unwrap(store.search(MATCH_ALL, page=0, page_size=10, sort=Sort("legs.notional")))
        assert [t.key for t in page.items] == sorted(t.key for t in page.items)


class TestSortSpec:
    @pytest.mark.parametrize(("field", "valid"), [
        ("trade_date", True),
        ("book", True),
        ("nope", False),
        ("legs.notional", False),
    ])
    def test_is_valid(self, field: str, valid: bool) -> None:
        assert Sort(field).is_valid is valid
