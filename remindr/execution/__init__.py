"""Per-reminder execution: identity, side-effect writers and the engine."""

from remindr.execution.advancer import INVALID_SCHEDULE, AdvanceResult, ScheduleAdvancer
from remindr.execution.best_effort import BestEffortResult, best_effort
from remindr.execution.drafts import Draft, DraftWriter
from remindr.execution.engine import ExecutionEngine, ExecutionOutcome
from remindr.execution.idempotency import IdempotencyGuard, execution_key
from remindr.execution.records import (
    ExecutionLogWriter,
    ExecutionRecord,
    ExecutionStatus,
    list_executions,
)

__all__ = [
    "AdvanceResult",
    "BestEffortResult",
    "Draft",
    "DraftWriter",
    "ExecutionEngine",
    "ExecutionLogWriter",
    "ExecutionOutcome",
    "ExecutionRecord",
    "ExecutionStatus",
    "INVALID_SCHEDULE",
    "IdempotencyGuard",
    "ScheduleAdvancer",
    "best_effort",
    "execution_key",
    "list_executions",
]
