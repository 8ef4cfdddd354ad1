"""Activity implementation for the trade lifecycle workflow.

The activity is a thin IO wrapper: all domain logic lives in
TradeLifecycleEngine. The engine is injected through LifecycleActivities
so the worker, not the workflow, owns the store and reference data.

A lost concurrency race is raised as a retryable ApplicationError so that
Temporal re-applies the command on top of the winning version. Every other
engine error is final and comes back inside the LifecycleOutcome.
"""

from __future__ import annotations

import asyncio
from typing import final

from temporalio import activity
from temporalio.exceptions import ApplicationError

from tradebook.core.errors import StateConflictError, TradeError
from tradebook.core.result import Err, Ok
from tradebook.trade.engine import TradeLifecycleEngine
from tradebook.trade.types import Trade
from tradebook.workflow.types import (
    ErrorPayload,
    LifecycleAction,
    LifecycleCommand,
    LifecycleOutcome,
)

STATE_CONFLICT_ERROR_TYPE = "StateConflictError"


@final
class LifecycleActivities:
    def __init__(self, engine: TradeLifecycleEngine) -> None:
        self._engine = engine

    def _dispatch(self, command: LifecycleCommand) -> Ok[Trade] | Err[TradeError]:
        match command.action:
            case LifecycleAction.CREATE:
                assert command.request is not None  # guaranteed by LifecycleCommand
                return self._engine.create(command.request, command.user)
            case LifecycleAction.AMEND:
                assert command.trade_id is not None and command.request is not None
                return self._engine.amend(command.trade_id, command.request, command.user)
            case LifecycleAction.TERMINATE:
                assert command.trade_id is not None
                return self._engine.terminate(command.trade_id, command.user)
            case LifecycleAction.CANCEL:
                assert command.trade_id is not None
                return self._engine.cancel(command.trade_id, command.user)

    @activity.defn(name="apply_lifecycle_command")
    async def apply_lifecycle_command(self, command: LifecycleCommand) -> LifecycleOutcome:
        """Apply one command through the engine.

        Retries: on StateConflictError only
        Idempotent: no; create with a caller-chosen trade_id conflicts on replay
        """
        activity.logger.info(
            "Applying %s command %s (trade %s)",
            command.action.value, command.command_id, command.trade_id,
        )
        # The engine is synchronous and takes per-trade thread locks.
        result = await asyncio.to_thread(self._dispatch, command)
        match result:
            case Ok(trade):
                activity.logger.info(
                    "Command %s produced trade %s version %s",
                    command.command_id, trade.trade_id, trade.version,
                )
                return LifecycleOutcome(
                    command_id=command.command_id, action=command.action, trade=trade,
                )
            case Err(StateConflictError() as conflict):
                activity.logger.warning(
                    "Command %s lost a race on trade %s: %s",
                    command.command_id, conflict.trade_id, conflict.message,
                )
                raise ApplicationError(conflict.message, type=STATE_CONFLICT_ERROR_TYPE)
            case Err(error):
                activity.logger.warning(
                    "Command %s rejected: %s (%s)",
                    command.command_id, error.message, error.code,
                )
                return LifecycleOutcome(
                    command_id=command.command_id,
                    action=command.action,
                    error=ErrorPayload.from_error(error),
                )
