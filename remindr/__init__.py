"""remindr: scheduled reminder execution with idempotent runs and AI cost caps."""

from remindr.app import Remindr
from remindr.execution.engine import ExecutionEngine, ExecutionOutcome
from remindr.execution.records import ExecutionStatus
from remindr.scheduler.sweep import SchedulerSweep, SweepResult

__all__ = [
    "ExecutionEngine",
    "ExecutionOutcome",
    "ExecutionStatus",
    "Remindr",
    "SchedulerSweep",
    "SweepResult",
]
