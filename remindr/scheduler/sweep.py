"""Scheduler sweep: find due reminders and run each one through the engine."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from remindr.clock import Clock, SystemClock, format_utc
from remindr.store import paths
from remindr.store.protocols import CollectionQuery, DocumentSnapshot, DocumentStore, FieldFilter

if TYPE_CHECKING:
    from remindr.execution.engine import ExecutionEngine, ExecutionOutcome

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 20


@dataclass(slots=True)
class SweepResult:
    """Counts for one sweep. ``failed`` covers raised and ``skipped_error`` runs."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    outcomes: list[ExecutionOutcome] = field(default_factory=list)
    started_at: str | None = None
    duration_seconds: float = 0.0

    def to_dict(self) -> dict[str, object]:
        return {
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "started_at": self.started_at,
            "duration_seconds": round(self.duration_seconds, 3),
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


class SchedulerSweep:
    """One bounded pass over due reminders, driven by an external timer.

    Stateless between invocations; overlapping sweeps are tolerated because
    duplicate runs are discarded per execution by the idempotency check.
    """

    def __init__(
        self,
        store: DocumentStore,
        engine: ExecutionEngine,
        clock: Clock | None = None,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._store = store
        self._engine = engine
        self._clock = clock or SystemClock()
        self.batch_size = batch_size

    async def due_intents(self) -> list[DocumentSnapshot]:
        """Enabled reminders whose next run is at or before now, oldest first."""
        now = format_utc(self._clock.now())
        return await self._store.query(
            CollectionQuery(
                collection=paths.REMINDERS,
                filters=(
                    FieldFilter("enabled", "==", True),
                    FieldFilter("nextRunAtUTC", "<=", now),
                ),
                order_by="nextRunAtUTC",
                limit=self.batch_size,
                group=True,
            )
        )

    async def run_sweep(self) -> SweepResult:
        """Process one batch sequentially. Only the due-intent query may raise."""
        result = SweepResult(started_at=format_utc(self._clock.now()))
        started = time.monotonic()
        due = await self.due_intents()
        logger.info("sweep_started due=%d batch_size=%d", len(due), self.batch_size)

        for snapshot in due:
            result.processed += 1
            try:
                outcome = await self._engine.run_one(snapshot)
            except Exception as exc:
                result.failed += 1
                logger.exception("sweep_item_failed intent_path=%s error=%s", snapshot.path, exc)
                continue
            result.outcomes.append(outcome)
            if outcome.failed:
                result.failed += 1
            else:
                result.succeeded += 1

        result.duration_seconds = time.monotonic() - started
        logger.info(
            "sweep_finished processed=%d succeeded=%d failed=%d duration_seconds=%.3f",
            result.processed,
            result.succeeded,
            result.failed,
            result.duration_seconds,
        )
        return result
