"""Error value hierarchy — lifecycle and search functions return these, never raise.

Every error is a frozen dataclass that can be pattern-matched, serialized
and mapped to an HTTP status class by the surrounding web layer.
Base class TradebookError, eight @final subclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import final

from tradebook.core.types import UtcDatetime


class Severity(Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"


@final
@dataclass(frozen=True, slots=True)
class ValidationMessage:
    """A single finding produced by a validator."""

    severity: Severity
    message: str
    rule: str  # validator that produced it, e.g. "DateRulesValidator"

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


@dataclass(frozen=True, slots=True)
class TradebookError:
    """Base error value. NOT @final — has subclasses."""

    message: str
    code: str
    timestamp: UtcDatetime
    source: str  # "module.function" that produced this error

    def with_context(self, context: str) -> TradebookError:
        return replace(self, message=f"{context}: {self.message}")

    def to_dict(self) -> dict[str, object]:
        return {
            "message": self.message,
            "code": self.code,
            "timestamp": self.timestamp.value.isoformat(),
            "source": self.source,
        }


@final
@dataclass(frozen=True, slots=True)
class ValidationError(TradebookError):
    """One or more business rules failed. Carries every finding, warnings included."""

    messages: tuple[ValidationMessage, ...] = ()

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(m.message for m in self.messages if m.is_error)

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(m.message for m in self.messages if not m.is_error)

    def to_dict(self) -> dict[str, object]:
        return {
            **TradebookError.to_dict(self),
            "messages": [
                {"severity": m.severity.value, "message": m.message, "rule": m.rule}
                for m in self.messages
            ],
        }


@final
@dataclass(frozen=True, slots=True)
class NotFoundError(TradebookError):
    """No active version exists for the trade id."""

    trade_id: int

    def to_dict(self) -> dict[str, object]:
        return {**TradebookError.to_dict(self), "trade_id": self.trade_id}


@final
@dataclass(frozen=True, slots=True)
class StateConflictError(TradebookError):
    """A concurrent transition won the race for this trade."""

    trade_id: int
    expected_version: int | None

    def to_dict(self) -> dict[str, object]:
        return {
            **TradebookError.to_dict(self),
            "trade_id": self.trade_id,
            "expected_version": self.expected_version,
        }


@final
@dataclass(frozen=True, slots=True)
class IllegalTransitionError(TradebookError):
    """The trade's current status does not allow the requested transition."""

    from_state: str
    to_state: str

    def to_dict(self) -> dict[str, object]:
        return {
            **TradebookError.to_dict(self),
            "from_state": self.from_state,
            "to_state": self.to_state,
        }


@final
@dataclass(frozen=True, slots=True)
class ReferenceDataError(TradebookError):
    """Reference data could not be read. Fatal, never a validation finding."""

    kind: str

    def to_dict(self) -> dict[str, object]:
        return {**TradebookError.to_dict(self), "kind": self.kind}


@final
@dataclass(frozen=True, slots=True)
class PrivilegeError(TradebookError):
    """The acting user lacks the privilege for the operation."""

    privilege: str
    login_id: str | None

    def to_dict(self) -> dict[str, object]:
        return {
            **TradebookError.to_dict(self),
            "privilege": self.privilege,
            "login_id": self.login_id,
        }


@final
@dataclass(frozen=True, slots=True)
class ParseError(TradebookError):
    """A search query could not be parsed or translated into a predicate."""

    query: str
    position: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            **TradebookError.to_dict(self),
            "query": self.query,
            "position": self.position,
        }


@final
@dataclass(frozen=True, slots=True)
class PersistenceError(TradebookError):
    """Storage operation failed."""

    operation: str

    def to_dict(self) -> dict[str, object]:
        return {**TradebookError.to_dict(self), "operation": self.operation}


type TradeError = (
    ValidationError
    | NotFoundError
    | StateConflictError
    | IllegalTransitionError
    | ReferenceDataError
    | PrivilegeError
    | PersistenceError
)


def http_status(error: TradebookError) -> int:
    """Status-code class the web layer should answer with for this error."""
    match error:
        case NotFoundError():
            return 404
        case ValidationError() | IllegalTransitionError() | ParseError():
            return 400
        case PrivilegeError():
            return 403
        case StateConflictError():
            return 409
        case ReferenceDataError() | PersistenceError():
            return 503
        case _:
            return 500


_REASONS: dict[int, str] = {
    400: "Bad Request",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def error_response(error: TradebookError, path: str) -> dict[str, object]:
    """JSON error envelope: message, status, error reason, path, timestamp."""
    status = http_status(error)
    return {
        "message": error.message,
        "status": status,
        "error": _REASONS[status],
        "path": path,
        "timestamp": error.timestamp.value.isoformat(),
        "detail": error.to_dict(),
    }
