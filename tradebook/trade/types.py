"""Trade snapshots and change requests.

Trade, TradeLeg and Cashflow are immutable snapshots of one persisted
version. A lifecycle transition never edits a snapshot: it writes a new
version with freshly bound legs and cashflows.

TradeRequest and LegRequest are what callers submit. Every field is
optional so that the validator chain, not the constructor, reports what
is missing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import final

from tradebook.core.types import EntityRef, UtcDatetime

# ---------------------------------------------------------------------------
# Persisted snapshots
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class Cashflow:
    """One scheduled payment of a leg."""

    value_date: date
    payment_value: Decimal
    rate: float | None
    pay_receive: EntityRef | None
    period_start: date
    period_end: date
    cashflow_id: int | None = None


@final
@dataclass(frozen=True, slots=True)
class TradeLeg:
    """One side of a trade. Owned by exactly one trade version."""

    notional: Decimal | None
    rate: float | None
    currency: EntityRef | None
    leg_rate_type: EntityRef | None
    pay_receive: EntityRef | None
    index: EntityRef | None
    schedule: EntityRef | None
    cashflows: tuple[Cashflow, ...] = ()
    leg_id: int | None = None


@final
@dataclass(frozen=True, slots=True)
class Trade:
    """A single version of a trade.

    Invariants:
      - version >= 1
      - at most one version per trade_id has active=True (enforced by the store)
    """

    trade_id: int
    version: int
    active: bool
    status: EntityRef
    trade_date: date | None
    start_date: date | None
    maturity_date: date | None
    execution_date: date | None
    trade_type: EntityRef | None
    trade_sub_type: EntityRef | None
    book: EntityRef | None
    counterparty: EntityRef | None
    trader: EntityRef | None
    inputter: EntityRef | None
    created_at: UtcDatetime
    last_touch_at: UtcDatetime
    legs: tuple[TradeLeg, ...] = ()
    row_id: int | None = None

    def __post_init__(self) -> None:
        if self.version < 1:
            raise TypeError(f"Trade.version must be >= 1, got {self.version}")

    @property
    def key(self) -> tuple[int, int]:
        return (self.trade_id, self.version)

    @property
    def cashflow_count(self) -> int:
        return sum(len(leg.cashflows) for leg in self.legs)


# ---------------------------------------------------------------------------
# Change requests
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class LegRequest:
    notional: Decimal | None = None
    rate: float | None = None
    currency: EntityRef | None = None
    leg_rate_type: EntityRef | None = None
    pay_receive: EntityRef | None = None
    index: EntityRef | None = None
    schedule: EntityRef | None = None


@final
@dataclass(frozen=True, slots=True)
class TradeRequest:
    """Caller-supplied trade attributes for create or amend.

    ``trade_id`` is only honoured by create; ``status`` is set by the
    engine from the operation, whatever the caller sends.
    """

    trade_id: int | None = None
    trade_date: date | None = None
    start_date: date | None = None
    maturity_date: date | None = None
    execution_date: date | None = None
    book: EntityRef | None = None
    counterparty: EntityRef | None = None
    trader: EntityRef | None = None
    inputter: EntityRef | None = None
    trade_type: EntityRef | None = None
    trade_sub_type: EntityRef | None = None
    status: EntityRef | None = None
    legs: tuple[LegRequest, ...] | None = None


@final
@dataclass(frozen=True, slots=True)
class ActingUser:
    """The authenticated user performing an operation."""

    user_id: int | None
    login_id: str | None


def request_from_trade(trade: Trade) -> TradeRequest:
    """Rebuild the request view of a stored version (terminate/cancel validation)."""
    return TradeRequest(
        trade_id=trade.trade_id,
        trade_date=trade.trade_date,
        start_date=trade.start_date,
        maturity_date=trade.maturity_date,
        execution_date=trade.execution_date,
        book=trade.book,
        counterparty=trade.counterparty,
        trader=trade.trader,
        inputter=trade.inputter,
        trade_type=trade.trade_type,
        trade_sub_type=trade.trade_sub_type,
        status=trade.status,
        legs=tuple(
            LegRequest(
                notional=leg.notional,
                rate=leg.rate,
                currency=leg.currency,
                leg_rate_type=leg.leg_rate_type,
                pay_receive=leg.pay_receive,
                index=leg.index,
                schedule=leg.schedule,
            )
            for leg in trade.legs
        ),
    )
