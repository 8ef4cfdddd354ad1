"""tradebook.infra — persistence protocol, in-memory store, locks, configuration, health."""

from tradebook.infra.config import LifecycleConfig as LifecycleConfig
from tradebook.infra.config import WorkflowConfig as WorkflowConfig
from tradebook.infra.health import HealthCheckable as HealthCheckable
from tradebook.infra.health import HealthStatus as HealthStatus
from tradebook.infra.health import ReferenceDataHealthCheck as ReferenceDataHealthCheck
from tradebook.infra.health import StoreHealthCheck as StoreHealthCheck
from tradebook.infra.health import SystemHealth as SystemHealth
from tradebook.infra.health import liveness_check as liveness_check
from tradebook.infra.health import readiness_check as readiness_check
from tradebook.infra.locks import LockTimeout as LockTimeout
from tradebook.infra.locks import TradeLockRegistry as TradeLockRegistry
from tradebook.infra.memory_adapter import InMemoryTradeStore as InMemoryTradeStore
from tradebook.infra.protocols import TradeStore as TradeStore
