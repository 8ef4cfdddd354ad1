"""Worker and client helpers for the trade lifecycle workflow.

Usage::

    import asyncio
    from tradebook.workflow.worker import run_worker

    asyncio.run(run_worker(engine, WorkflowConfig.from_env(os.environ)))
"""

from __future__ import annotations

from dataclasses import replace

from temporalio.client import Client
from temporalio.worker import Worker

from tradebook.infra.config import WorkflowConfig
from tradebook.trade.engine import TradeLifecycleEngine
from tradebook.workflow.activities import LifecycleActivities
from tradebook.workflow.converter import TRADEBOOK_DATA_CONVERTER
from tradebook.workflow.lifecycle_workflow import TradeLifecycleWorkflow
from tradebook.workflow.types import LifecycleCommand, LifecycleOutcome


async def connect(config: WorkflowConfig) -> Client:
    return await Client.connect(
        config.temporal_host,
        namespace=config.namespace,
        data_converter=TRADEBOOK_DATA_CONVERTER,
    )


def build_worker(client: Client, engine: TradeLifecycleEngine, config: WorkflowConfig) -> Worker:
    activities = LifecycleActivities(engine)
    return Worker(
        client,
        task_queue=config.task_queue,
        workflows=[TradeLifecycleWorkflow],
        activities=[activities.apply_lifecycle_command],
    )


async def run_worker(engine: TradeLifecycleEngine, config: WorkflowConfig | None = None) -> None:
    """Connect to Temporal and run the worker until interrupted."""
    config = config or WorkflowConfig()
    client = await connect(config)
    await build_worker(client, engine, config).run()


async def submit_command(
    client: Client, command: LifecycleCommand, config: WorkflowConfig | None = None,
) -> LifecycleOutcome:
    """Run one command to completion.

    Raises temporalio's WorkflowAlreadyStartedError while another command
    for the same trade is still in flight.
    """
    config = config or WorkflowConfig()
    command = replace(
        command,
        activity_timeout_s=config.activity_timeout_s,
        max_attempts=config.max_attempts,
    )
    return await client.execute_workflow(
        TradeLifecycleWorkflow.run,
        command,
        id=command.workflow_id,
        task_queue=config.task_queue,
    )
