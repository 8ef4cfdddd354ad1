"""tradebook.workflow -- Temporal.io workflow around the trade lifecycle engine."""

from tradebook.workflow.types import (
    ErrorPayload as ErrorPayload,
)
from tradebook.workflow.types import (
    LifecycleAction as LifecycleAction,
)
from tradebook.workflow.types import (
    LifecycleCommand as LifecycleCommand,
)
from tradebook.workflow.types import (
    LifecycleOutcome as LifecycleOutcome,
)
