"""Workflow data types for the trade lifecycle workflow.

LifecycleCommand is the workflow input, LifecycleOutcome its result.
ErrorPayload is the wire form of a TradebookError: error values carry a
UtcDatetime and nested findings, so the outcome ships a flattened copy.

All types: @final @dataclass(frozen=True, slots=True).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import final

from tradebook.core.errors import TradebookError, ValidationError, http_status
from tradebook.trade.types import ActingUser, Trade, TradeRequest


class LifecycleAction(Enum):
    CREATE = "Create"
    AMEND = "Amend"
    TERMINATE = "Terminate"
    CANCEL = "Cancel"


# ---------------------------------------------------------------------------
# Workflow input
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class LifecycleCommand:
    """One lifecycle transition to apply.

    ``command_id`` is the caller's idempotency key. Commands against an
    existing trade run under workflow id ``trade-<trade_id>``, so Temporal
    admits one in-flight command per trade. Activity options travel with
    the command because workflow code cannot read configuration.
    """

    command_id: str
    action: LifecycleAction
    user: ActingUser
    trade_id: int | None = None
    request: TradeRequest | None = None
    activity_timeout_s: int = 30
    max_attempts: int = 3

    def __post_init__(self) -> None:
        if not self.command_id:
            raise TypeError("LifecycleCommand.command_id must be non-empty")
        if self.action in (LifecycleAction.CREATE, LifecycleAction.AMEND) and self.request is None:
            raise TypeError(f"{self.action.value} requires a trade request")
        if self.action is not LifecycleAction.CREATE and self.trade_id is None:
            raise TypeError(f"{self.action.value} requires trade_id")
        if self.activity_timeout_s <= 0 or self.max_attempts < 1:
            raise TypeError("activity_timeout_s must be > 0 and max_attempts >= 1")

    @property
    def workflow_id(self) -> str:
        if self.trade_id is None:
            return f"trade-create-{self.command_id}"
        return f"trade-{self.trade_id}"


# ---------------------------------------------------------------------------
# Workflow output
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class ErrorPayload:
    """Serializable summary of a TradebookError."""

    kind: str
    code: str
    message: str
    status: int
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @staticmethod
    def from_error(error: TradebookError) -> ErrorPayload:
        errors: tuple[str, ...] = ()
        warnings: tuple[str, ...] = ()
        if isinstance(error, ValidationError):
            errors = error.errors
            warnings = error.warnings
        return ErrorPayload(
            kind=type(error).__name__,
            code=error.code,
            message=error.message,
            status=http_status(error),
            errors=errors,
            warnings=warnings,
        )


@final
@dataclass(frozen=True, slots=True)
class LifecycleOutcome:
    """Either the persisted trade version or the error that stopped the command."""

    command_id: str
    action: LifecycleAction
    trade: Trade | None = None
    error: ErrorPayload | None = None

    def __post_init__(self) -> None:
        if (self.trade is None) == (self.error is None):
            raise TypeError("LifecycleOutcome must have exactly one of trade or error")

    @property
    def succeeded(self) -> bool:
        return self.trade is not None
