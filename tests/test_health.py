"""Tests for tradebook.infra.health — liveness and readiness probes."""

from __future__ import annotations

from tradebook.core.result import unwrap
from tradebook.infra.health import (
    ReferenceDataHealthCheck,
    StoreHealthCheck,
    liveness_check,
    readiness_check,
)
from tradebook.infra.memory_adapter import InMemoryTradeStore
from tradebook.reference.memory import InMemoryReferenceData


class TestLiveness:
    def test_always_healthy(self) -> None:
        status = liveness_check()
        assert status.healthy
        assert status.component == "process"


class TestStoreHealthCheck:
    def test_healthy(self) -> None:
        status = unwrap(StoreHealthCheck(InMemoryTradeStore()).health_check())
        assert status.healthy
        assert status.component == "trade_store"
        assert status.latency_ms >= 0.0

    def test_failure_is_err(self) -> None:
        store = InMemoryTradeStore()
        store.simulate_failure("find_active")
        assert not StoreHealthCheck(store).health_check().is_ok()


class TestReferenceDataHealthCheck:
    def test_healthy(self) -> None:
        status = unwrap(ReferenceDataHealthCheck(InMemoryReferenceData()).health_check())
        assert status.healthy
        assert status.component == "reference_data"

    def test_outage_is_unhealthy(self) -> None:
        refdata = InMemoryReferenceData()
        refdata.simulate_outage("db down")
        status = unwrap(ReferenceDataHealthCheck(refdata).health_check())
        assert not status.healthy
        assert status.message == "db down"


class TestReadiness:
    def test_all_healthy(self) -> None:
        health = readiness_check((
            StoreHealthCheck(InMemoryTradeStore()),
            ReferenceDataHealthCheck(InMemoryReferenceData()),
        ))
        assert health.overall_healthy
        assert len(health.checks) == 2

    def test_failed_store_makes_not_ready(self) -> None:
        store = InMemoryTradeStore()
        store.simulate_failure("find_active")
        health = readiness_check((
            StoreHealthCheck(store),
            ReferenceDataHealthCheck(InMemoryReferenceData()),
        ))
        assert not health.overall_healthy
        failed = health.checks[0]
        assert not failed.healthy
        assert failed.component == "memory_adapter.find_active"
        assert health.checks[1].healthy

    def test_unhealthy_status_makes_not_ready(self) -> None:
        refdata = InMemoryReferenceData()
        refdata.simulate_outage()
        health = readiness_check((ReferenceDataHealthCheck(refdata),))
        assert not health.overall_healthy

    def test_no_dependencies_is_ready(self) -> None:
        assert readiness_check(()).overall_healthy
