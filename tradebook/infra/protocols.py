"""Persistence protocol for trade versions.

Domain code depends on this abstraction; storage adapters implement it.
Every method returns Ok[T] | Err[...] so that storage failures are values
in the type system, never invisible exceptions.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tradebook.core.errors import PersistenceError, StateConflictError
from tradebook.core.result import Err, Ok
from tradebook.search.paging import Page, Sort
from tradebook.search.predicate import Predicate
from tradebook.trade.types import Trade


@runtime_checkable
class TradeStore(Protocol):
    """Versioned trade storage.

    Invariants:
      - at most one version per trade_id has active=True
      - save() is atomic: the new version and the deactivation of the
        version it supersedes become visible together or not at all
      - save() is a compare-and-swap on (trade_id, version, active) of the
        superseded version; a lost race is Err(StateConflictError)
      - row, leg and cashflow ids are assigned by the store on save()
    """

    def find_active(
        self, trade_id: int,
    ) -> Ok[Trade | None] | Err[PersistenceError]: ...

    def find_versions(
        self, trade_id: int,
    ) -> Ok[tuple[Trade, ...]] | Err[PersistenceError]:
        """All versions of a trade, oldest first."""
        ...

    def next_trade_id(self) -> Ok[int] | Err[PersistenceError]: ...

    def save(
        self, trade: Trade, *, supersedes: Trade | None,
    ) -> Ok[Trade] | Err[StateConflictError | PersistenceError]:
        """Persist ``trade``; when ``supersedes`` is given, deactivate it in the same commit.

        ``supersedes=None`` books a new trade_id and conflicts if any
        version of that trade already exists.
        """
        ...

    def search(
        self, predicate: Predicate, *, page: int, page_size: int, sort: Sort,
    ) -> Ok[Page[Trade]] | Err[PersistenceError]:
        """Distinct trade versions matching ``predicate``, ordered and paged."""
        ...
