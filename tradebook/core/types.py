"""Shared value types: UtcDatetime, EntityRef and the decimal context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import ROUND_HALF_EVEN as _ROUND_HALF_EVEN
from decimal import Context, DivisionByZero, InvalidOperation, Overflow
from typing import final

from tradebook.core.result import Err, Ok

# All notional and cashflow arithmetic runs under this context.
TRADEBOOK_DECIMAL_CONTEXT = Context(
    prec=28,
    rounding=_ROUND_HALF_EVEN,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)


@final
@dataclass(frozen=True, slots=True)
class UtcDatetime:
    """Timezone-aware UTC datetime. Naive datetimes are rejected."""

    value: datetime

    def __post_init__(self) -> None:
        if self.value.tzinfo is None:
            raise TypeError("UtcDatetime requires timezone-aware datetime, got naive")

    @staticmethod
    def parse(raw: datetime) -> Ok[UtcDatetime] | Err[str]:
        if raw.tzinfo is None:
            return Err("UtcDatetime requires timezone-aware datetime, got naive")
        return Ok(UtcDatetime(value=raw.astimezone(UTC)))

    @staticmethod
    def now() -> UtcDatetime:
        return UtcDatetime(value=datetime.now(tz=UTC))


@final
@dataclass(frozen=True, slots=True)
class EntityRef:
    """Link to a reference-data row (book, counterparty, user, status, ...).

    ``id`` is None when the caller did not supply one; ``name`` is the
    display value searches match against (book name, login id, currency
    code, ...). User links also carry the person's ``full_name``.
    """

    id: int | None
    name: str = ""
    full_name: str | None = None

    @property
    def is_missing(self) -> bool:
        return self.id is None
