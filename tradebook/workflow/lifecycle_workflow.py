"""Durable workflow that applies one trade lifecycle command.

Steps: receive -> apply (activity, retried on state conflicts) -> outcome.

Determinism contract: this module contains NO I/O, NO randomness, NO
system clock access, NO mutable globals. All engine interaction is
delegated to the apply_lifecycle_command activity.
"""

from __future__ import annotations

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError

with workflow.unsafe.imports_passed_through():
    from tradebook.workflow.activities import (
        STATE_CONFLICT_ERROR_TYPE,
        LifecycleActivities,
    )
    from tradebook.workflow.types import (
        ErrorPayload,
        LifecycleCommand,
        LifecycleOutcome,
    )


def lifecycle_retry(max_attempts: int) -> RetryPolicy:
    """Only state conflicts reach Temporal as failures, so every failure is retryable."""
    return RetryPolicy(
        initial_interval=timedelta(seconds=1),
        backoff_coefficient=2.0,
        maximum_interval=timedelta(seconds=10),
        maximum_attempts=max_attempts,
    )


@workflow.defn(name="TradeLifecycle")
class TradeLifecycleWorkflow:
    """Durable wrapper around one create/amend/terminate/cancel.

    Invariants maintained:
    - Every command reaches exactly one LifecycleOutcome (totality)
    - At most one command per trade_id is in flight (workflow id)
    - Workflow is deterministic under Temporal replay
    """

    def __init__(self) -> None:
        self._status: str = "RECEIVED"

    @workflow.query
    def get_status(self) -> str:
        return self._status

    @workflow.run
    async def run(self, command: LifecycleCommand) -> LifecycleOutcome:
        self._status = "APPLYING"
        try:
            outcome = await workflow.execute_activity_method(
                LifecycleActivities.apply_lifecycle_command,
                command,
                start_to_close_timeout=timedelta(seconds=command.activity_timeout_s),
                retry_policy=lifecycle_retry(command.max_attempts),
            )
        except ActivityError as e:
            self._status = "FAILED"
            cause = e.cause
            message = str(cause) if cause is not None else str(e)
            conflict = getattr(cause, "type", None) == STATE_CONFLICT_ERROR_TYPE
            workflow.logger.warning("Command %s failed: %s", command.command_id, message)
            return LifecycleOutcome(
                command_id=command.command_id,
                action=command.action,
                error=ErrorPayload(
                    kind=STATE_CONFLICT_ERROR_TYPE if conflict else "ActivityError",
                    code="STATE_CONFLICT" if conflict else "ACTIVITY_FAILED",
                    message=message,
                    status=409 if conflict else 500,
                ),
            )
        self._status = "COMPLETED" if outcome.succeeded else "REJECTED"
        return outcome
