"""Periodic sweep over due reminders."""

from remindr.scheduler.sweep import DEFAULT_BATCH_SIZE, SchedulerSweep, SweepResult

__all__ = ["DEFAULT_BATCH_SIZE", "SchedulerSweep", "SweepResult"]
