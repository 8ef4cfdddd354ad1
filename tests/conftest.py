"""Hypothesis profiles and pytest fixtures for tradebook.

The ``desk`` fixture registers a small, fully active reference-data set
(book, counterparty, users, types, statuses) and builds valid trade
requests against it; tests override single fields to break one rule at
a time.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Any

import pytest
from hypothesis import HealthCheck, settings

from tradebook.core.types import EntityRef
from tradebook.infra.config import LifecycleConfig
from tradebook.infra.memory_adapter import InMemoryTradeStore
from tradebook.reference.gateway import ReferenceKind
from tradebook.reference.memory import InMemoryReferenceData
from tradebook.trade.engine import TradeLifecycleEngine
from tradebook.trade.types import ActingUser, LegRequest, TradeRequest

# ---------------------------------------------------------------------------
# Hypothesis global settings
# ---------------------------------------------------------------------------

settings.register_profile(
    "ci",
    max_examples=200,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    deadline=None,
)
settings.register_profile(
    "dev",
    max_examples=50,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    deadline=None,
)
settings.load_profile("dev")

TODAY = date(2025, 1, 20)


# ===================================================================
# REFERENCE DATA AND REQUEST BUILDERS
# ===================================================================


@dataclass
class Desk:
    """One registered reference-data set plus request builders over it."""

    refdata: InMemoryReferenceData
    book: EntityRef
    counterparty: EntityRef
    trader: EntityRef
    inputter: EntityRef
    trade_type: EntityRef
    trade_sub_type: EntityRef
    user: ActingUser
    usd: EntityRef = EntityRef(1, "USD")
    fixed: EntityRef = EntityRef(1, "Fixed")
    floating: EntityRef = EntityRef(2, "Floating")
    pay: EntityRef = EntityRef(1, "Pay")
    receive: EntityRef = EntityRef(2, "Receive")
    sofr: EntityRef = EntityRef(1, "SOFR")
    monthly: EntityRef = EntityRef(1, "Monthly")
    quarterly: EntityRef = EntityRef(2, "Quarterly")

    def fixed_leg(self, **overrides: Any) -> LegRequest:
        leg = LegRequest(
            notional=Decimal("1000000"),
            rate=0.05,
            currency=self.usd,
            leg_rate_type=self.fixed,
            pay_receive=self.pay,
            schedule=self.monthly,
        )
        return replace(leg, **overrides)

    def floating_leg(self, **overrides: Any) -> LegRequest:
        leg = LegRequest(
            notional=Decimal("1000000"),
            rate=None,
            currency=self.usd,
            leg_rate_type=self.floating,
            pay_receive=self.receive,
            index=self.sofr,
            schedule=self.monthly,
        )
        return replace(leg, **overrides)

    def request(self, **overrides: Any) -> TradeRequest:
        """A valid two-leg swap: traded 2025-01-17, maturing 2026-01-17."""
        request = TradeRequest(
            trade_date=date(2025, 1, 17),
            maturity_date=date(2026, 1, 17),
            execution_date=date(2025, 1, 17),
            book=self.book,
            counterparty=self.counterparty,
            trader=self.trader,
            inputter=self.inputter,
            trade_type=self.trade_type,
            trade_sub_type=self.trade_sub_type,
            legs=(self.fixed_leg(), self.floating_leg()),
        )
        return replace(request, **overrides)


def make_desk() -> Desk:
    refdata = InMemoryReferenceData()
    book = refdata.add(ReferenceKind.BOOK, 1, "FX-Options-London")
    refdata.add(ReferenceKind.BOOK, 2, "Rates-NY")
    counterparty = refdata.add(ReferenceKind.COUNTERPARTY, 1, "BigBank")
    refdata.add(ReferenceKind.COUNTERPARTY, 2, "Hedge Fund Partners")
    privileges = ("BOOK_TRADE", "AMEND_TRADE", "TERMINATE_TRADE", "CANCEL_TRADE")
    trader = refdata.add_user(1, "alice", full_name="Alice Martin", privileges=privileges)
    inputter = refdata.add_user(2, "bob", full_name="Bob Okafor", privileges=privileges)
    trade_type = refdata.add(ReferenceKind.TRADE_TYPE, 1, "Swap")
    trade_sub_type = refdata.add(ReferenceKind.TRADE_SUB_TYPE, 1, "IR Swap")
    for status_id, status in enumerate(("NEW", "AMENDED", "TERMINATED", "CANCELLED", "LIVE"), 1):
        refdata.add(ReferenceKind.TRADE_STATUS, status_id, status)
    return Desk(
        refdata=refdata,
        book=book,
        counterparty=counterparty,
        trader=trader,
        inputter=inputter,
        trade_type=trade_type,
        trade_sub_type=trade_sub_type,
        user=ActingUser(user_id=1, login_id="alice"),
    )


def make_engine(
    desk: Desk,
    store: InMemoryTradeStore | None = None,
    config: LifecycleConfig | None = None,
) -> TradeLifecycleEngine:
    return TradeLifecycleEngine(
        store if store is not None else InMemoryTradeStore(),
        desk.refdata,
        config,
        today=lambda: TODAY,
    )


@pytest.fixture
def desk() -> Desk:
    return make_desk()


@pytest.fixture
def store() -> InMemoryTradeStore:
    return InMemoryTradeStore()


@pytest.fixture
def engine(desk: Desk, store: InMemoryTradeStore) -> TradeLifecycleEngine:
    return make_engine(desk, store)
