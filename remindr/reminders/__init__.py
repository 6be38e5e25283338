"""Reminder model, schedule arithmetic, prompts and lifecycle."""

from remindr.reminders.lifecycle import (
    ReminderNotFoundError,
    create_reminder,
    initialize_reminder,
    soft_delete_reminder,
)
from remindr.reminders.models import (
    AIContent,
    Frequency,
    Intent,
    ReminderContent,
    ReminderType,
    Schedule,
    SimpleContent,
    parse_content,
)
from remindr.reminders.prompts import build_prompt
from remindr.reminders.schedule import ScheduleError, compute_initial_run_at, compute_next_run_at

__all__ = [
    "AIContent",
    "Frequency",
    "Intent",
    "ReminderContent",
    "ReminderNotFoundError",
    "ReminderType",
    "Schedule",
    "ScheduleError",
    "SimpleContent",
    "build_prompt",
    "compute_initial_run_at",
    "compute_next_run_at",
    "create_reminder",
    "initialize_reminder",
    "parse_content",
    "soft_delete_reminder",
]
