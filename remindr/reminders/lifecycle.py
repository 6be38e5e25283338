"""Reminder lifecycle operations performed by the system actor.

Covers creation-time initialization of ``nextRunAtUTC`` and soft deletion.
Neither touches the user-owned content or schedule fields of an existing
reminder.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from remindr.clock import Clock, SystemClock, format_utc
from remindr.reminders.models import Schedule
from remindr.reminders.schedule import ScheduleError, compute_initial_run_at
from remindr.store import paths
from remindr.store.protocols import DocumentStore

logger = logging.getLogger(__name__)


class ReminderNotFoundError(LookupError):
    """Raised when a lifecycle operation targets a missing reminder."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Reminder not found: {path}")


async def initialize_reminder(
    store: DocumentStore,
    path: str,
    *,
    clock: Clock | None = None,
) -> str | None:
    """Set the first ``nextRunAtUTC`` of a newly created reminder.

    Returns the stored run time, or None when the reminder was already
    initialized or its schedule is unusable (logged, reminder left untouched).

    Raises:
        ReminderNotFoundError: no reminder at path.
    """
    clock = clock or SystemClock()
    snapshot = await store.get(path)
    if snapshot is None:
        raise ReminderNotFoundError(path)
    if snapshot.get("nextRunAtUTC"):
        return None

    frequency = snapshot.get("frequency")
    raw_schedule = snapshot.get("schedule")
    if not frequency or not isinstance(raw_schedule, dict):
        logger.warning("reminder_missing_schedule path=%s", path)
        return None

    now = clock.now()
    try:
        first_run = compute_initial_run_at(frequency, Schedule.from_dict(raw_schedule), now)
    except ScheduleError as exc:
        logger.warning("reminder_invalid_schedule path=%s error=%s", path, exc)
        return None

    next_run_at = format_utc(first_run)
    stamp = format_utc(now)
    await store.set(
        path,
        {
            "nextRunAtUTC": next_run_at,
            "enabled": True,
            "updatedAt": stamp,
            "initializedAt": stamp,
        },
        merge=True,
    )
    logger.info("reminder_initialized path=%s next_run_at_utc=%s", path, next_run_at)
    return next_run_at


async def create_reminder(
    store: DocumentStore,
    owner_id: str,
    data: dict[str, Any],
    *,
    clock: Clock | None = None,
) -> str:
    """Store a new reminder for owner_id and initialize its first run.

    System-owned fields in ``data`` are ignored. Returns the reminder path.
    """
    clock = clock or SystemClock()
    body = {
        key: value
        for key, value in data.items()
        if key not in {"nextRunAtUTC", "enabled", "initializedAt", "deletedAt", "disabledReason"}
    }
    stamp = format_utc(clock.now())
    body.setdefault("createdAt", stamp)
    body["updatedAt"] = stamp
    body["enabled"] = False
    reminder_id = await store.add(paths.reminders_collection(owner_id), body)
    path = paths.reminder_path(owner_id, reminder_id)
    await initialize_reminder(store, path, clock=clock)
    return path


async def soft_delete_reminder(
    store: DocumentStore,
    owner_id: str,
    reminder_id: str,
    *,
    clock: Clock | None = None,
) -> Literal["deleted", "already_deleted"]:
    """Disable a reminder and stamp ``deletedAt``; the document is kept.

    Raises:
        ReminderNotFoundError: no such reminder for this owner.
    """
    clock = clock or SystemClock()
    path = paths.reminder_path(owner_id, reminder_id)
    snapshot = await store.get(path)
    if snapshot is None:
        raise ReminderNotFoundError(path)
    if snapshot.get("deletedAt"):
        return "already_deleted"
    stamp = format_utc(clock.now())
    await store.update(path, {"enabled": False, "deletedAt": stamp, "updatedAt": stamp})
    logger.info("reminder_soft_deleted path=%s", path)
    return "deleted"
