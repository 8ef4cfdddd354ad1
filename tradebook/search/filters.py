"""Structured trade search criteria -> predicate.

Every supplied criterion contributes exactly one conjunct and all
conjuncts are AND-ed. Absent (None) or blank criteria add nothing, so an
empty TradeFilter matches every trade.

Leg criteria are gathered under a single AnyLeg: they must hold on the
same leg, and a trade matches at most once however many legs qualify.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, final

from tradebook.search.predicate import (
    AnyLeg,
    Comparison,
    ComparisonOp,
    Or,
    Predicate,
    conjunction,
)


@final
@dataclass(frozen=True, slots=True)
class TradeFilter:
    """Optional trade-level and leg-level search criteria."""

    trade_id: int | None = None
    book_name: str | None = None
    counterparty_name: str | None = None
    trade_type_name: str | None = None
    trade_sub_type_name: str | None = None
    trade_status_name: str | None = None
    version: int | None = None
    active: bool | None = None
    trade_date_from: date | None = None
    trade_date: date | None = None  # upper bound
    maturity_date: date | None = None  # lower bound
    execution_date: date | None = None  # upper bound
    min_notional: Decimal | None = None
    max_notional: Decimal | None = None
    rate_from: float | None = None
    rate_to: float | None = None
    currency: str | None = None
    leg_rate_type_name: str | None = None
    pay_receive_flag: str | None = None
    index_name: str | None = None


@final
@dataclass(frozen=True, slots=True)
class SearchCriteria:
    """The short-form trade blotter search."""

    counterparty_name: str | None = None
    book_name: str | None = None
    trader: str | None = None
    status: str | None = None
    from_date: date | None = None
    to_date: date | None = None


def _text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _cmp(selector: str, op: ComparisonOp, value: Any) -> Comparison:
    return Comparison(selector=selector, op=op, values=(value,))


def _text_criteria(
    parts: list[Predicate], pairs: tuple[tuple[str, ComparisonOp, str | None], ...],
) -> None:
    for selector, op, raw in pairs:
        value = _text(raw)
        if value is not None:
            parts.append(_cmp(selector, op, value))


def _value_criteria(
    parts: list[Predicate], pairs: tuple[tuple[str, ComparisonOp, Any], ...],
) -> None:
    for selector, op, value in pairs:
        if value is not None:
            parts.append(_cmp(selector, op, value))


def build_trade_filter(filter: TradeFilter, trader_login: str | None = None) -> Predicate:
    """Predicate matching every trade that satisfies all supplied criteria.

    ``trader_login`` restricts results to one trader's trades (case-insensitive,
    trimmed); it is applied on top of the filter, never instead of it.
    """
    parts: list[Predicate] = []

    _text_criteria(parts, (
        ("trader", ComparisonOp.IEQ, trader_login),
        ("book", ComparisonOp.ICONTAINS, filter.book_name),
        ("counterparty", ComparisonOp.ICONTAINS, filter.counterparty_name),
        ("trade_type", ComparisonOp.IEQ, filter.trade_type_name),
        ("trade_sub_type", ComparisonOp.IEQ, filter.trade_sub_type_name),
        ("status", ComparisonOp.IEQ, filter.trade_status_name),
    ))
    _value_criteria(parts, (
        ("trade_id", ComparisonOp.EQ, filter.trade_id),
        ("version", ComparisonOp.EQ, filter.version),
        ("active", ComparisonOp.EQ, filter.active),
        ("trade_date", ComparisonOp.GE, filter.trade_date_from),
        ("trade_date", ComparisonOp.LE, filter.trade_date),
        ("maturity_date", ComparisonOp.GE, filter.maturity_date),
        ("execution_date", ComparisonOp.LE, filter.execution_date),
    ))

    leg_parts: list[Predicate] = []
    _value_criteria(leg_parts, (
        ("legs.notional", ComparisonOp.GE, filter.min_notional),
        ("legs.notional", ComparisonOp.LE, filter.max_notional),
        ("legs.rate", ComparisonOp.GE, filter.rate_from),
        ("legs.rate", ComparisonOp.LE, filter.rate_to),
    ))
    _text_criteria(leg_parts, (
        ("legs.currency", ComparisonOp.IEQ, filter.currency),
        ("legs.leg_rate_type", ComparisonOp.IEQ, filter.leg_rate_type_name),
        ("legs.pay_receive", ComparisonOp.IEQ, filter.pay_receive_flag),
        ("legs.index", ComparisonOp.IEQ, filter.index_name),
    ))
    if leg_parts:
        parts.append(AnyLeg(predicate=conjunction(leg_parts)))

    return conjunction(parts)


def build_search_criteria(criteria: SearchCriteria) -> Predicate:
    """Predicate for the short-form search: substring names, exact status, date range.

    The trader criterion matches a substring of either the login or the
    trader's full name.
    """
    parts: list[Predicate] = []
    _text_criteria(parts, (
        ("counterparty", ComparisonOp.ICONTAINS, criteria.counterparty_name),
        ("book", ComparisonOp.ICONTAINS, criteria.book_name),
    ))
    if (trader := _text(criteria.trader)) is not None:
        parts.append(Or(children=(
            _cmp("trader", ComparisonOp.ICONTAINS, trader),
            _cmp("trader.full_name", ComparisonOp.ICONTAINS, trader),
        )))
    _text_criteria(parts, (
        ("status", ComparisonOp.IEQ, criteria.status),
    ))
    _value_criteria(parts, (
        ("trade_date", ComparisonOp.GE, criteria.from_date),
        ("trade_date", ComparisonOp.LE, criteria.to_date),
    ))
    return conjunction(parts)
