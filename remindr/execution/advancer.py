"""Schedule advancement after an execution attempt.

Writes system-owned fields only (``nextRunAtUTC``, ``enabled``,
``disabledReason``, ``updatedAt``). The next run is computed from the frozen
scheduled time, never from the time the run actually happened.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from remindr.clock import Clock, format_utc
from remindr.execution.best_effort import BestEffortResult, best_effort
from remindr.reminders.models import Frequency, Intent
from remindr.reminders.schedule import ScheduleError, compute_next_run_at
from remindr.store.protocols import DocumentStore

logger = logging.getLogger(__name__)

INVALID_SCHEDULE = "invalid_schedule"


@dataclass(frozen=True, slots=True)
class AdvanceResult:
    """What the advancer wrote."""

    disabled: bool
    next_run_at_utc: str | None = None
    reason: str | None = None


class ScheduleAdvancer:
    """Moves a reminder to its next scheduled run or retires it."""

    def __init__(self, store: DocumentStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    async def advance(self, intent: Intent, scheduled_for: datetime | str) -> BestEffortResult[AdvanceResult]:
        """Advance the reminder. Never raises; store failures come back as a failed result."""
        return await best_effort(
            "advance_schedule",
            self._advance(intent, scheduled_for),
            reminder_id=intent.id,
            owner_id=intent.owner_id,
        )

    async def _advance(self, intent: Intent, scheduled_for: datetime | str) -> AdvanceResult:
        stamp = format_utc(self._clock.now())

        if intent.frequency == Frequency.ONE_TIME.value:
            await self._store.update(intent.path, {"enabled": False, "updatedAt": stamp})
            logger.info("schedule_one_time_disabled reminder_id=%s", intent.id)
            return AdvanceResult(disabled=True)

        try:
            next_run = compute_next_run_at(intent.frequency, intent.schedule, scheduled_for)
        except ScheduleError as exc:
            # Left as-is it would stay due forever and occupy a batch slot on every sweep.
            logger.error(
                "schedule_invalid_disabling reminder_id=%s frequency=%s error=%s",
                intent.id,
                intent.frequency,
                exc,
            )
            await self._store.update(
                intent.path,
                {"enabled": False, "disabledReason": INVALID_SCHEDULE, "updatedAt": stamp},
            )
            return AdvanceResult(disabled=True, reason=INVALID_SCHEDULE)

        if next_run is None:
            raise ScheduleError(f"frequency {intent.frequency!r} produced no next run")
        next_run_at = format_utc(next_run)
        await self._store.update(intent.path, {"nextRunAtUTC": next_run_at, "updatedAt": stamp})
        logger.info(
            "schedule_advanced reminder_id=%s scheduled_for_utc=%s next_run_at_utc=%s",
            intent.id,
            format_utc(scheduled_for),
            next_run_at,
        )
        return AdvanceResult(disabled=False, next_run_at_utc=next_run_at)

    async def disable(self, intent: Intent, reason: str) -> BestEffortResult[AdvanceResult]:
        """Turn the reminder off, leaving ``nextRunAtUTC`` where it is."""
        return await best_effort(
            "disable_reminder",
            self._disable(intent, reason),
            reminder_id=intent.id,
            owner_id=intent.owner_id,
        )

    async def _disable(self, intent: Intent, reason: str) -> AdvanceResult:
        stamp = format_utc(self._clock.now())
        await self._store.update(intent.path, {"enabled": False, "disabledReason": reason, "updatedAt": stamp})
        logger.warning("schedule_disabled reminder_id=%s reason=%s", intent.id, reason)
        return AdvanceResult(disabled=True, reason=reason)

    async def resume(self, intent: Intent, scheduled_for: datetime | str) -> BestEffortResult[AdvanceResult | None]:
        """Finish an advancement that a recorded run failed to write.

        Only acts while the stored reminder is enabled and still points at
        ``scheduled_for``; returns ``None`` when there is nothing to do.
        """
        return await best_effort(
            "advance_schedule",
            self._resume(intent, scheduled_for),
            reminder_id=intent.id,
            owner_id=intent.owner_id,
        )

    async def _resume(self, intent: Intent, scheduled_for: datetime | str) -> AdvanceResult | None:
        snapshot = await self._store.get(intent.path)
        if snapshot is None or snapshot.get("enabled") is not True:
            return None
        stored = snapshot.get("nextRunAtUTC")
        try:
            if stored is None or format_utc(stored) != format_utc(scheduled_for):
                return None
        except ValueError:
            return None
        logger.warning(
            "schedule_resumed_after_recorded_run reminder_id=%s scheduled_for_utc=%s",
            intent.id,
            format_utc(scheduled_for),
        )
        return await self._advance(intent, scheduled_for)
