"""Per-trade mutual exclusion for lifecycle transitions.

Amend, terminate and cancel on the same trade_id are serialized; distinct
trade ids never contend. The store's compare-and-swap remains the
authority across processes. This registry only keeps a single process
from racing itself.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import final


class LockTimeout(Exception):
    """The per-trade lock could not be acquired in time."""

    def __init__(self, trade_id: int, timeout_s: float) -> None:
        super().__init__(f"Timed out after {timeout_s}s waiting for trade {trade_id}")
        self.trade_id = trade_id
        self.timeout_s = timeout_s


@final
class TradeLockRegistry:
    """Lazily created lock per trade_id, released when no holder or waiter remains."""

    def __init__(self, timeout_s: float = 5.0) -> None:
        self._timeout_s = timeout_s
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}
        self._refcounts: dict[int, int] = {}

    @contextmanager
    def hold(self, trade_id: int) -> Iterator[None]:
        """Hold the lock for ``trade_id``. Raises LockTimeout."""
        with self._guard:
            lock = self._locks.setdefault(trade_id, threading.Lock())
            self._refcounts[trade_id] = self._refcounts.get(trade_id, 0) + 1
        try:
            if not lock.acquire(timeout=self._timeout_s):
                raise LockTimeout(trade_id, self._timeout_s)
            try:
                yield
            finally:
                lock.release()
        finally:
            with self._guard:
                self._refcounts[trade_id] -= 1
                if self._refcounts[trade_id] == 0:
                    del self._refcounts[trade_id]
                    del self._locks[trade_id]

    def __len__(self) -> int:
        """Number of trade ids with a holder or waiter."""
        with self._guard:
            return len(self._locks)
