"""In-memory ReferenceDataGateway.

Backs the test suite and embedded use. Rows are registered up front; an
outage can be simulated to exercise the ReferenceDataError path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import final

from tradebook.core.types import EntityRef
from tradebook.reference.gateway import (
    ACTIVATABLE_KINDS,
    ReferenceDataUnavailable,
    ReferenceKind,
)


@dataclass(slots=True)
class _Row:
    id: int
    name: str
    active: bool
    full_name: str | None = None


@final
class InMemoryReferenceData:
    """Reference rows keyed by (kind, id), plus user logins and privileges."""

    def __init__(self) -> None:
        self._rows: dict[ReferenceKind, dict[int, _Row]] = {k: {} for k in ReferenceKind}
        self._privileges: dict[int, set[str]] = {}
        self._outage: str | None = None

    # --- registration (not part of the gateway protocol) ---

    def add(
        self, kind: ReferenceKind, id: int, name: str, *, active: bool = True,
    ) -> EntityRef:
        self._rows[kind][id] = _Row(id=id, name=name, active=active)
        return EntityRef(id=id, name=name)

    def add_user(
        self,
        id: int,
        login_id: str,
        *,
        active: bool = True,
        full_name: str | None = None,
        privileges: tuple[str, ...] = (),
    ) -> EntityRef:
        self._rows[ReferenceKind.USER][id] = _Row(
            id=id, name=login_id, active=active, full_name=full_name,
        )
        self._privileges.setdefault(id, set()).update(privileges)
        return EntityRef(id=id, name=login_id, full_name=full_name)

    def grant(self, user_id: int, *privileges: str) -> None:
        self._privileges.setdefault(user_id, set()).update(privileges)

    def set_active(self, kind: ReferenceKind, id: int, active: bool) -> None:
        self._rows[kind][id].active = active

    def simulate_outage(self, detail: str = "reference datastore unavailable") -> None:
        self._outage = detail

    def restore(self) -> None:
        self._outage = None

    # --- ReferenceDataGateway ---

    def exists(self, kind: ReferenceKind, id: int) -> bool:
        self._check_available(kind)
        return id in self._rows[kind]

    def is_active(self, kind: ReferenceKind, id: int) -> bool:
        self._check_available(kind)
        row = self._rows[kind].get(id)
        if row is None:
            return False
        if kind not in ACTIVATABLE_KINDS:
            return True
        return row.active

    def user_exists_by_login(self, login_id: str) -> bool:
        self._check_available(ReferenceKind.USER)
        return any(r.name == login_id for r in self._rows[ReferenceKind.USER].values())

    def find_by_name(self, kind: ReferenceKind, name: str) -> EntityRef | None:
        self._check_available(kind)
        wanted = name.strip().lower()
        for row in self._rows[kind].values():
            if row.name.lower() == wanted:
                return EntityRef(id=row.id, name=row.name, full_name=row.full_name)
        return None

    def user_has_privilege(self, user_id: int, privilege: str) -> bool:
        self._check_available(ReferenceKind.USER)
        return privilege in self._privileges.get(user_id, set())

    def _check_available(self, kind: ReferenceKind) -> None:
        if self._outage is not None:
            raise ReferenceDataUnavailable(kind, self._outage)
