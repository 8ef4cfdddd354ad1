"""In-memory implementation of the TradeStore protocol.

Lets the whole test suite, and single-process embeddings, run without a
database. A single re-entrant lock makes every save() atomic and its
compare-and-swap race-free across threads.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import replace
from typing import final

from tradebook.core.errors import PersistenceError, StateConflictError
from tradebook.core.result import Err, Ok
from tradebook.core.types import UtcDatetime
from tradebook.search.paging import Page, Sort, paginate
from tradebook.search.predicate import TRADE_FIELDS, Predicate, evaluate
from tradebook.trade.types import Trade, TradeLeg

logger = logging.getLogger(__name__)

FIRST_TRADE_ID = 10000


def _persistence_error(operation: str, detail: str) -> PersistenceError:
    return PersistenceError(
        message=detail,
        code="PERSISTENCE_ERROR",
        timestamp=UtcDatetime.now(),
        source=f"memory_adapter.{operation}",
        operation=operation,
    )


def _conflict(trade_id: int, expected_version: int | None, detail: str) -> StateConflictError:
    return StateConflictError(
        message=detail,
        code="STATE_CONFLICT",
        timestamp=UtcDatetime.now(),
        source="memory_adapter.save",
        trade_id=trade_id,
        expected_version=expected_version,
    )


@final
class InMemoryTradeStore:
    """Trade versions keyed by trade_id, each list ordered by version."""

    def __init__(self, first_trade_id: int = FIRST_TRADE_ID) -> None:
        self._lock = threading.RLock()
        self._versions: dict[int, list[Trade]] = {}
        self._next_trade_id = first_trade_id
        self._row_ids = itertools.count(1)
        self._leg_ids = itertools.count(1)
        self._cashflow_ids = itertools.count(1)
        self._failing: set[str] = set()

    def _check_failure(self, operation: str) -> Err[PersistenceError] | None:
        if operation in self._failing:
            return Err(_persistence_error(operation, f"Simulated failure in {operation}"))
        return None

    # -- reads --------------------------------------------------------------

    def find_active(
        self, trade_id: int,
    ) -> Ok[Trade | None] | Err[PersistenceError]:
        if (failure := self._check_failure("find_active")) is not None:
            return failure
        with self._lock:
            for trade in self._versions.get(trade_id, ()):
                if trade.active:
                    return Ok(trade)
        return Ok(None)

    def find_versions(
        self, trade_id: int,
    ) -> Ok[tuple[Trade, ...]] | Err[PersistenceError]:
        if (failure := self._check_failure("find_versions")) is not None:
            return failure
        with self._lock:
            return Ok(tuple(self._versions.get(trade_id, ())))

    def next_trade_id(self) -> Ok[int] | Err[PersistenceError]:
        if (failure := self._check_failure("next_trade_id")) is not None:
            return failure
        with self._lock:
            while self._next_trade_id in self._versions:
                self._next_trade_id += 1
            trade_id = self._next_trade_id
            self._next_trade_id += 1
            return Ok(trade_id)

    def search(
        self, predicate: Predicate, *, page: int, page_size: int, sort: Sort,
    ) -> Ok[Page[Trade]] | Err[PersistenceError]:
        if (failure := self._check_failure("search")) is not None:
            return failure
        with self._lock:
            rows = [t for versions in self._versions.values() for t in versions]
        # One entry per stored version however many legs matched.
        matches = [t for t in rows if evaluate(predicate, t)]
        matches.sort(key=lambda t: t.key)
        spec = TRADE_FIELDS.get(sort.field)
        if spec is not None:
            getter = spec.getter
            present = [t for t in matches if getter(t) is not None]
            present.sort(key=getter, reverse=sort.descending)
            # Nulls sort last in either direction.
            matches = present + [t for t in matches if getter(t) is None]
        return Ok(paginate(matches, page, page_size))

    # -- writes -------------------------------------------------------------

    def save(
        self, trade: Trade, *, supersedes: Trade | None,
    ) -> Ok[Trade] | Err[StateConflictError | PersistenceError]:
        if (failure := self._check_failure("save")) is not None:
            return failure
        with self._lock:
            versions = self._versions.get(trade.trade_id, [])
            if supersedes is None:
                if versions:
                    return Err(_conflict(
                        trade.trade_id, None,
                        f"Trade {trade.trade_id} already exists",
                    ))
            else:
                current = next((t for t in versions if t.active), None)
                if current is None or current.version != supersedes.version:
                    logger.warning(
                        "CAS failed for trade %s: expected active version %s, found %s",
                        trade.trade_id, supersedes.version,
                        None if current is None else current.version,
                    )
                    return Err(_conflict(
                        trade.trade_id, supersedes.version,
                        f"Trade {trade.trade_id} version {supersedes.version}"
                        " is no longer the active version",
                    ))
                if trade.version != current.version + 1:
                    return Err(_persistence_error(
                        "save",
                        f"Trade {trade.trade_id} version {trade.version} does not follow"
                        f" version {current.version}",
                    ))

            stored = self._assign_ids(trade)
            updated = [
                replace(t, active=False) if (supersedes is not None and t.active) else t
                for t in versions
            ]
            updated.append(stored)
            self._versions[trade.trade_id] = updated
        logger.debug("Saved trade %s version %s", stored.trade_id, stored.version)
        return Ok(stored)

    def _assign_ids(self, trade: Trade) -> Trade:
        legs: list[TradeLeg] = []
        for leg in trade.legs:
            cashflows = tuple(
                replace(cf, cashflow_id=next(self._cashflow_ids)) for cf in leg.cashflows
            )
            legs.append(replace(leg, leg_id=next(self._leg_ids), cashflows=cashflows))
        return replace(trade, row_id=next(self._row_ids), legs=tuple(legs))

    # -- test-only helpers --------------------------------------------------

    def simulate_failure(self, *operations: str) -> None:
        """Test-only helper: make the named operations return Err(PersistenceError)."""
        self._failing.update(operations)

    def restore(self) -> None:
        """Test-only helper."""
        self._failing.clear()

    def count(self) -> int:
        """Test-only helper: number of stored versions."""
        with self._lock:
            return sum(len(v) for v in self._versions.values())

    def active_count(self, trade_id: int) -> int:
        """Test-only helper."""
        with self._lock:
            return sum(1 for t in self._versions.get(trade_id, ()) if t.active)
