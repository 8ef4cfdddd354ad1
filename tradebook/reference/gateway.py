"""Reference data gateway protocol.

Validators and the lifecycle engine depend on this abstraction only; the
concrete lookup (database, cache, in-memory fake) is injected.

Contract:
  - read-only, never mutates reference data
  - unknown ids answer False / None, never raise
  - a datastore outage raises ReferenceDataUnavailable, which the engine
    turns into Err(ReferenceDataError)
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable

from tradebook.core.types import EntityRef


class ReferenceKind(Enum):
    BOOK = "Book"
    COUNTERPARTY = "Counterparty"
    USER = "User"
    TRADE_TYPE = "TradeType"
    TRADE_SUB_TYPE = "TradeSubType"
    TRADE_STATUS = "TradeStatus"


# Kinds that carry an active flag. The rest are active whenever they exist.
ACTIVATABLE_KINDS: frozenset[ReferenceKind] = frozenset({
    ReferenceKind.BOOK,
    ReferenceKind.COUNTERPARTY,
    ReferenceKind.USER,
})


class ReferenceDataUnavailable(Exception):  # noqa: N818
    """The reference datastore could not answer (connection lost, timeout)."""

    def __init__(self, kind: ReferenceKind | None, detail: str) -> None:
        super().__init__(detail)
        self.kind = kind
        self.detail = detail


@runtime_checkable
class ReferenceDataGateway(Protocol):
    """Existence and active-status lookups for trade reference data."""

    def exists(self, kind: ReferenceKind, id: int) -> bool: ...

    def is_active(self, kind: ReferenceKind, id: int) -> bool: ...

    def user_exists_by_login(self, login_id: str) -> bool: ...

    def find_by_name(self, kind: ReferenceKind, name: str) -> EntityRef | None: ...

    def user_has_privilege(self, user_id: int, privilege: str) -> bool: ...
