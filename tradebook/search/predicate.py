"""Composable trade predicates and their in-memory evaluator.

A predicate is plain data: a tagged variant of

    Comparison(selector, op, values)   leaf test on one field
    And(children) / Or(children)       boolean folds (empty And matches all)
    AnyLeg(predicate)                  existential test over a trade's legs

Because it is data, a store can evaluate it in memory (``evaluate``) or
translate it into its own query language. Selectors name fields from
TRADE_FIELDS or LEG_FIELDS; leg selectors are prefixed with ``legs.``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, final

from tradebook.core.types import EntityRef
from tradebook.trade.types import Trade, TradeLeg


class ComparisonOp(Enum):
    EQ = "=="
    NE = "!="
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="
    IN = "in"
    OUT = "out"
    # Case-insensitive, trimmed text variants.
    IEQ = "ieq"
    INE = "ine"
    IIN = "iin"
    IOUT = "iout"
    ICONTAINS = "icontains"
    INOTCONTAINS = "inotcontains"


_LIST_OPS = frozenset({ComparisonOp.IN, ComparisonOp.OUT, ComparisonOp.IIN, ComparisonOp.IOUT})


@final
@dataclass(frozen=True, slots=True)
class Comparison:
    selector: str
    op: ComparisonOp
    values: tuple[Any, ...]

    def __post_init__(self) -> None:
        if not self.values:
            raise TypeError(f"Comparison on {self.selector!r} needs at least one value")
        if self.op not in _LIST_OPS and len(self.values) != 1:
            raise TypeError(f"{self.op.name} takes exactly one value, got {len(self.values)}")


@final
@dataclass(frozen=True, slots=True)
class And:
    children: tuple[Predicate, ...]


@final
@dataclass(frozen=True, slots=True)
class Or:
    children: tuple[Predicate, ...]


@final
@dataclass(frozen=True, slots=True)
class AnyLeg:
    """True when at least one leg satisfies ``predicate`` (a join, deduplicated)."""

    predicate: Predicate


type Predicate = Comparison | And | Or | AnyLeg

MATCH_ALL: Predicate = And(children=())


def conjunction(parts: list[Predicate]) -> Predicate:
    """AND the parts together, collapsing the trivial cases."""
    if not parts:
        return MATCH_ALL
    if len(parts) == 1:
        return parts[0]
    return And(children=tuple(parts))


# ---------------------------------------------------------------------------
# Field registry
# ---------------------------------------------------------------------------


class ValueKind(Enum):
    INT = "int"
    BOOL = "bool"
    DATE = "date"
    DECIMAL = "decimal"
    FLOAT = "float"
    TEXT = "text"


@final
@dataclass(frozen=True, slots=True)
class FieldSpec:
    getter: Callable[[Any], Any]
    kind: ValueKind
    on_leg: bool = False


def _ref_name(attr: str) -> Callable[[Any], str | None]:
    def get(obj: Any) -> str | None:
        ref: EntityRef | None = getattr(obj, attr)
        return None if ref is None else ref.name
    return get


def _ref_id(attr: str) -> Callable[[Any], int | None]:
    def get(obj: Any) -> int | None:
        ref: EntityRef | None = getattr(obj, attr)
        return None if ref is None else ref.id
    return get


def _ref_full_name(attr: str) -> Callable[[Any], str | None]:
    def get(obj: Any) -> str | None:
        ref: EntityRef | None = getattr(obj, attr)
        return None if ref is None else ref.full_name
    return get


def _plain(attr: str) -> Callable[[Any], Any]:
    return lambda obj: getattr(obj, attr)


def _ref_fields(attrs: tuple[str, ...], prefix: str, on_leg: bool) -> dict[str, FieldSpec]:
    fields: dict[str, FieldSpec] = {}
    for attr in attrs:
        name_spec = FieldSpec(_ref_name(attr), ValueKind.TEXT, on_leg)
        fields[f"{prefix}{attr}"] = name_spec
        fields[f"{prefix}{attr}.name"] = name_spec
        fields[f"{prefix}{attr}.id"] = FieldSpec(_ref_id(attr), ValueKind.INT, on_leg)
    return fields


TRADE_FIELDS: dict[str, FieldSpec] = {
    "trade_id": FieldSpec(_plain("trade_id"), ValueKind.INT),
    "version": FieldSpec(_plain("version"), ValueKind.INT),
    "active": FieldSpec(_plain("active"), ValueKind.BOOL),
    "trade_date": FieldSpec(_plain("trade_date"), ValueKind.DATE),
    "start_date": FieldSpec(_plain("start_date"), ValueKind.DATE),
    "maturity_date": FieldSpec(_plain("maturity_date"), ValueKind.DATE),
    "execution_date": FieldSpec(_plain("execution_date"), ValueKind.DATE),
    **_ref_fields(
        ("book", "counterparty", "trader", "inputter", "trade_type", "trade_sub_type", "status"),
        "", on_leg=False,
    ),
    "trader.full_name": FieldSpec(_ref_full_name("trader"), ValueKind.TEXT),
    "inputter.full_name": FieldSpec(_ref_full_name("inputter"), ValueKind.TEXT),
}

LEG_FIELDS: dict[str, FieldSpec] = {
    "legs.notional": FieldSpec(_plain("notional"), ValueKind.DECIMAL, on_leg=True),
    "legs.rate": FieldSpec(_plain("rate"), ValueKind.FLOAT, on_leg=True),
    **_ref_fields(
        ("currency", "leg_rate_type", "pay_receive", "index", "schedule"),
        "legs.", on_leg=True,
    ),
}

ALL_FIELDS: dict[str, FieldSpec] = {**TRADE_FIELDS, **LEG_FIELDS}


def field_spec(selector: str) -> FieldSpec | None:
    return ALL_FIELDS.get(selector)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def _norm(text: Any) -> str:
    return str(text).strip().lower()


def _compare(op: ComparisonOp, actual: Any, values: tuple[Any, ...]) -> bool:  # noqa: PLR0911
    # SQL semantics: a missing value satisfies no comparison.
    if actual is None:
        return False
    expected = values[0]
    match op:
        case ComparisonOp.EQ:
            return bool(actual == expected)
        case ComparisonOp.NE:
            return bool(actual != expected)
        case ComparisonOp.GT:
            return bool(actual > expected)
        case ComparisonOp.GE:
            return bool(actual >= expected)
        case ComparisonOp.LT:
            return bool(actual < expected)
        case ComparisonOp.LE:
            return bool(actual <= expected)
        case ComparisonOp.IN:
            return actual in values
        case ComparisonOp.OUT:
            return actual not in values
        case ComparisonOp.IEQ:
            return _norm(actual) == _norm(expected)
        case ComparisonOp.INE:
            return _norm(actual) != _norm(expected)
        case ComparisonOp.IIN:
            return _norm(actual) in {_norm(v) for v in values}
        case ComparisonOp.IOUT:
            return _norm(actual) not in {_norm(v) for v in values}
        case ComparisonOp.ICONTAINS:
            return _norm(expected) in _norm(actual)
        case ComparisonOp.INOTCONTAINS:
            return _norm(expected) not in _norm(actual)


def _leaf(node: Comparison, trade: Trade, leg: TradeLeg | None) -> bool:
    spec = field_spec(node.selector)
    if spec is None:
        raise KeyError(f"Unknown selector {node.selector!r}")
    if not spec.on_leg:
        return _compare(node.op, spec.getter(trade), node.values)
    if leg is not None:
        return _compare(node.op, spec.getter(leg), node.values)
    # Bare leg comparison outside AnyLeg: existential over the legs.
    return any(_compare(node.op, spec.getter(each), node.values) for each in trade.legs)


def _evaluate(root: Predicate, trade: Trade, leg: TradeLeg | None) -> bool:
    # Post-order walk on an explicit stack; nesting depth is unbounded.
    results: list[bool] = []
    stack: list[tuple[Predicate, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        match node:
            case Comparison():
                results.append(_leaf(node, trade, leg))
            case AnyLeg(inner):
                results.append(any(_evaluate(inner, trade, each) for each in trade.legs))
            case And(children) | Or(children):
                if not expanded:
                    stack.append((node, True))
                    stack.extend((child, False) for child in reversed(children))
                    continue
                split = len(results) - len(children)
                folded = results[split:]
                del results[split:]
                results.append(all(folded) if isinstance(node, And) else any(folded))
    return results[0]


def evaluate(predicate: Predicate, trade: Trade) -> bool:
    """Does ``trade`` satisfy ``predicate``?"""
    return _evaluate(predicate, trade, None)


def coerce_value(kind: ValueKind, raw: str) -> Any:
    """Convert query text to a field's value type. Raises ValueError if it cannot."""
    match kind:
        case ValueKind.INT:
            return int(raw)
        case ValueKind.BOOL:
            lowered = raw.strip().lower()
            if lowered not in ("true", "false"):
                raise ValueError(f"expected true or false, got {raw!r}")
            return lowered == "true"
        case ValueKind.DATE:
            return date.fromisoformat(raw)
        case ValueKind.DECIMAL:
            try:
                value = Decimal(raw)
            except InvalidOperation as e:
                raise ValueError(f"expected a number, got {raw!r}") from e
            if not value.is_finite():
                raise ValueError(f"expected a finite number, got {raw!r}")
            return value
        case ValueKind.FLOAT:
            return float(raw)
        case ValueKind.TEXT:
            return raw
