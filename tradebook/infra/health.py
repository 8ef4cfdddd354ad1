"""Health checks for the trade store and the reference-data gateway.

Kubernetes probes:
  livenessProbe  -> GET /health/live   -> liveness_check()
  readinessProbe -> GET /health/ready  -> readiness_check((StoreHealthCheck(store), ...))
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol, final

from tradebook.core.errors import PersistenceError
from tradebook.core.result import Err, Ok
from tradebook.infra.protocols import TradeStore
from tradebook.reference.gateway import ReferenceDataGateway, ReferenceDataUnavailable


@final
@dataclass(frozen=True, slots=True)
class HealthStatus:
    """Status of a single health check."""

    healthy: bool
    component: str
    message: str
    checked_at: datetime
    latency_ms: float


@final
@dataclass(frozen=True, slots=True)
class SystemHealth:
    """Aggregate health status of all dependencies."""

    overall_healthy: bool
    checks: tuple[HealthStatus, ...]
    checked_at: datetime


class HealthCheckable(Protocol):
    def health_check(self) -> Ok[HealthStatus] | Err[PersistenceError]: ...


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


@final
class StoreHealthCheck:
    """Probe the trade store with a read that touches no trade."""

    def __init__(self, store: TradeStore, probe_trade_id: int = -1) -> None:
        self._store = store
        self._probe_trade_id = probe_trade_id

    def health_check(self) -> Ok[HealthStatus] | Err[PersistenceError]:
        started = time.perf_counter()
        match self._store.find_active(self._probe_trade_id):
            case Ok():
                return Ok(HealthStatus(
                    healthy=True, component="trade_store", message="ok",
                    checked_at=datetime.now(tz=UTC), latency_ms=_elapsed_ms(started),
                ))
            case Err(error):
                return Err(error)


@final
class ReferenceDataHealthCheck:
    """Probe the reference-data gateway with a login lookup."""

    def __init__(self, gateway: ReferenceDataGateway, probe_login: str = "__health__") -> None:
        self._gateway = gateway
        self._probe_login = probe_login

    def health_check(self) -> Ok[HealthStatus] | Err[PersistenceError]:
        started = time.perf_counter()
        try:
            self._gateway.user_exists_by_login(self._probe_login)
        except ReferenceDataUnavailable as e:
            return Ok(HealthStatus(
                healthy=False, component="reference_data", message=str(e),
                checked_at=datetime.now(tz=UTC), latency_ms=_elapsed_ms(started),
            ))
        return Ok(HealthStatus(
            healthy=True, component="reference_data", message="ok",
            checked_at=datetime.now(tz=UTC), latency_ms=_elapsed_ms(started),
        ))


def liveness_check() -> HealthStatus:
    """Return healthy status — process is alive."""
    return HealthStatus(
        healthy=True, component="process", message="alive",
        checked_at=datetime.now(tz=UTC), latency_ms=0.0,
    )


def readiness_check(
    dependencies: tuple[HealthCheckable, ...],
) -> SystemHealth:
    """Check all dependencies and return aggregate health."""
    checks: list[HealthStatus] = []
    all_healthy = True
    for dep in dependencies:
        match dep.health_check():
            case Ok(status):
                checks.append(status)
                if not status.healthy:
                    all_healthy = False
            case Err(error):
                checks.append(HealthStatus(
                    healthy=False, component=error.source,
                    message=f"Health check failed: {error.message}",
                    checked_at=datetime.now(tz=UTC), latency_ms=0.0,
                ))
                all_healthy = False
    return SystemHealth(
        overall_healthy=all_healthy,
        checks=tuple(checks),
        checked_at=datetime.now(tz=UTC),
    )
