"""Trade lifecycle status table.

A trade starts NEW, may be AMENDED any number of times, and ends
TERMINATED or CANCELLED. Terminal statuses admit no further transition.
"""

from __future__ import annotations

from enum import Enum

from tradebook.core.errors import IllegalTransitionError
from tradebook.core.result import Err, Ok
from tradebook.core.types import UtcDatetime


class LifecycleStatus(Enum):
    NEW = "NEW"
    AMENDED = "AMENDED"
    TERMINATED = "TERMINATED"
    CANCELLED = "CANCELLED"

    @staticmethod
    def from_name(name: str) -> LifecycleStatus | None:
        """Match a reference status name, case-insensitively. None if not a lifecycle status."""
        try:
            return LifecycleStatus(name.strip().upper())
        except ValueError:
            return None


type TransitionTable = frozenset[tuple[LifecycleStatus, LifecycleStatus]]

TRADE_TRANSITIONS: TransitionTable = frozenset({
    (LifecycleStatus.NEW, LifecycleStatus.AMENDED),
    (LifecycleStatus.NEW, LifecycleStatus.TERMINATED),
    (LifecycleStatus.NEW, LifecycleStatus.CANCELLED),
    (LifecycleStatus.AMENDED, LifecycleStatus.AMENDED),
    (LifecycleStatus.AMENDED, LifecycleStatus.TERMINATED),
    (LifecycleStatus.AMENDED, LifecycleStatus.CANCELLED),
})

TERMINAL_STATUSES: frozenset[LifecycleStatus] = frozenset({
    LifecycleStatus.TERMINATED,
    LifecycleStatus.CANCELLED,
})


def check_transition(
    from_status: str,
    to_status: LifecycleStatus,
    transitions: TransitionTable = TRADE_TRANSITIONS,
) -> Ok[None] | Err[IllegalTransitionError]:
    """Validate moving a trade from its current status name to ``to_status``.

    Statuses outside the lifecycle enum (desk-specific ones such as
    "LIVE") behave like AMENDED: open, but not yet terminal.
    """
    current = LifecycleStatus.from_name(from_status) or LifecycleStatus.AMENDED
    if (current, to_status) in transitions:
        return Ok(None)
    return Err(IllegalTransitionError(
        message=f"Trade in status {from_status} cannot move to {to_status.value}",
        code="ILLEGAL_TRANSITION",
        timestamp=UtcDatetime.now(),
        source="trade.lifecycle.check_transition",
        from_state=from_status,
        to_state=to_status.value,
    ))
