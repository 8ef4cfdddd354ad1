"""Validation context and result.

ValidationContext bundles everything a validator may read for one
lifecycle operation. ValidationResult is the accumulator validators write
to. Neither is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import final

from tradebook.core.errors import Severity, ValidationError, ValidationMessage
from tradebook.core.types import UtcDatetime
from tradebook.reference.gateway import ReferenceDataGateway
from tradebook.trade.types import ActingUser, TradeRequest


class OperationType(Enum):
    CREATE = "CREATE"
    AMEND = "AMEND"
    CANCEL = "CANCEL"
    TERMINATE = "TERMINATE"
    VIEW = "VIEW"


# Operations that submit new trade economics (and therefore new legs).
BOOKING_OPERATIONS: frozenset[OperationType] = frozenset({
    OperationType.CREATE,
    OperationType.AMEND,
})


@final
@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs shared by every validator of one operation."""

    trade: TradeRequest
    user: ActingUser | None
    gateway: ReferenceDataGateway
    current_date: date
    operation: OperationType


@final
class ValidationResult:
    """Ordered accumulator of validation findings.

    An operation may proceed only when no ERROR was recorded; warnings
    are informational.
    """

    def __init__(self) -> None:
        self._messages: list[ValidationMessage] = []

    def add_error(self, message: str, rule: str) -> None:
        self._messages.append(ValidationMessage(Severity.ERROR, message, rule))

    def add_warning(self, message: str, rule: str) -> None:
        self._messages.append(ValidationMessage(Severity.WARNING, message, rule))

    @property
    def messages(self) -> tuple[ValidationMessage, ...]:
        return tuple(self._messages)

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(m.message for m in self._messages if m.is_error)

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(m.message for m in self._messages if not m.is_error)

    @property
    def is_valid(self) -> bool:
        return not any(m.is_error for m in self._messages)

    def to_error(self, source: str) -> ValidationError:
        """Fold every finding into one ValidationError value."""
        errors = self.errors
        summary = errors[0] if errors else "no errors"
        if len(errors) > 1:
            summary = f"{summary} (+{len(errors) - 1} more)"
        return ValidationError(
            message=f"Trade validation failed: {summary}",
            code="VALIDATION_FAILED",
            timestamp=UtcDatetime.now(),
            source=source,
            messages=self.messages,
        )
