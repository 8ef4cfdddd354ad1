"""Runtime configuration for the lifecycle engine and the Temporal worker.

Pure configuration data with defaults. ``from_env`` reads TRADEBOOK_*
variables from a mapping (os.environ in production) and raises
ValueError on a malformed value, so a bad deployment fails at startup.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, final

ENV_PREFIX = "TRADEBOOK_"


def _convert(name: str, raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"{name}: expected a boolean, got {raw!r}")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw.strip()


def _from_env[C](cls: type[C], environ: Mapping[str, str], prefix: str) -> C:
    overrides: dict[str, Any] = {}
    for f in fields(cls):  # type: ignore[arg-type]
        key = f"{prefix}{f.name.upper()}"
        if key in environ:
            try:
                overrides[f.name] = _convert(key, environ[key], f.default)
            except ValueError as e:
                raise ValueError(f"Invalid {key}: {e}") from e
    return cls(**overrides)


# ---------------------------------------------------------------------------
# Lifecycle engine
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class LifecycleConfig:
    """Business-rule and runtime settings for TradeLifecycleEngine."""

    stale_trade_days: int = 30
    required_leg_count: int = 2
    lock_timeout_s: float = 5.0
    enforce_privileges: bool = False
    default_page_size: int = 20
    max_page_size: int = 200
    # Names of the TradeStatus reference rows the engine resolves.
    status_new: str = "NEW"
    status_amended: str = "AMENDED"
    status_terminated: str = "TERMINATED"
    status_cancelled: str = "CANCELLED"

    def __post_init__(self) -> None:
        if self.stale_trade_days < 0:
            raise ValueError(f"stale_trade_days must be >= 0, got {self.stale_trade_days}")
        if self.required_leg_count < 1:
            raise ValueError(f"required_leg_count must be >= 1, got {self.required_leg_count}")
        if self.lock_timeout_s <= 0:
            raise ValueError(f"lock_timeout_s must be > 0, got {self.lock_timeout_s}")
        if not 1 <= self.default_page_size <= self.max_page_size:
            raise ValueError(
                f"default_page_size must be in [1, {self.max_page_size}],"
                f" got {self.default_page_size}",
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> LifecycleConfig:
        return _from_env(cls, environ, ENV_PREFIX)


# ---------------------------------------------------------------------------
# Temporal worker
# ---------------------------------------------------------------------------


@final
@dataclass(frozen=True, slots=True)
class WorkflowConfig:
    """Connection and retry settings for the lifecycle workflow worker."""

    temporal_host: str = "localhost:7233"
    namespace: str = "default"
    task_queue: str = "tradebook-lifecycle"
    activity_timeout_s: int = 30
    max_attempts: int = 3

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> WorkflowConfig:
        return _from_env(cls, environ, f"{ENV_PREFIX}WORKFLOW_")
