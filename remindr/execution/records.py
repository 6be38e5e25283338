"""Execution records: the audit trail of what each scheduled run did."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from remindr.clock import Clock, format_utc
from remindr.execution.best_effort import BestEffortResult, best_effort
from remindr.execution.idempotency import execution_key
from remindr.store import paths
from remindr.store.protocols import CollectionQuery, DocumentSnapshot, DocumentStore

logger = logging.getLogger(__name__)


class ExecutionStatus(str, Enum):
    """Terminal status of one execution attempt."""

    EXECUTED = "executed"
    SKIPPED_DISABLED = "skipped_disabled"
    SKIPPED_CAP = "skipped_cap"
    SKIPPED_ERROR = "skipped_error"
    # Outcome only; a duplicate run never writes a record.
    SKIPPED_IDEMPOTENT = "skipped_idempotent"


@dataclass(slots=True)
class ExecutionRecord:
    """One persisted execution record."""

    reminder_id: str
    reminder_type: str
    scheduled_for_utc: str
    status: ExecutionStatus
    ai_used: bool = False
    draft_id: str | None = None
    reason: str | None = None
    created_at: str | None = None

    @property
    def key(self) -> str:
        return execution_key(self.reminder_id, self.scheduled_for_utc)

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "reminderId": self.reminder_id,
            "reminderType": self.reminder_type,
            "scheduledForUTC": self.scheduled_for_utc,
            "status": self.status.value,
            "aiUsed": self.ai_used,
            "createdAt": self.created_at,
        }
        if self.draft_id:
            doc["draftId"] = self.draft_id
        if self.reason:
            doc["reason"] = self.reason
        return doc

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> ExecutionRecord:
        data = snapshot.data
        return cls(
            reminder_id=str(data.get("reminderId", "")),
            reminder_type=str(data.get("reminderType", "")),
            scheduled_for_utc=str(data.get("scheduledForUTC", "")),
            status=ExecutionStatus(data.get("status")),
            ai_used=data.get("aiUsed") is True,
            draft_id=data.get("draftId"),
            reason=data.get("reason"),
            created_at=data.get("createdAt"),
        )


class ExecutionLogWriter:
    """Writes execution records. Best-effort and not transactional with anything else."""

    def __init__(self, store: DocumentStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    async def record(
        self,
        owner_id: str,
        *,
        reminder_id: str,
        reminder_type: str,
        scheduled_for: datetime | str,
        status: ExecutionStatus,
        ai_used: bool = False,
        draft_id: str | None = None,
        reason: str | None = None,
    ) -> BestEffortResult[str]:
        """Write the record once; returns the execution key on success."""
        if status is ExecutionStatus.SKIPPED_IDEMPOTENT:
            raise ValueError("duplicate runs are not recorded")
        record = ExecutionRecord(
            reminder_id=reminder_id,
            reminder_type=reminder_type,
            scheduled_for_utc=format_utc(scheduled_for),
            status=status,
            ai_used=ai_used,
            draft_id=draft_id,
            reason=reason,
            created_at=format_utc(self._clock.now()),
        )
        return await best_effort(
            "record_execution",
            self._write(owner_id, record),
            owner_id=owner_id,
            reminder_id=reminder_id,
            status=status.value,
        )

    async def _write(self, owner_id: str, record: ExecutionRecord) -> str:
        key = record.key
        await self._store.create(paths.execution_path(owner_id, key), record.to_document())
        logger.info(
            "execution_recorded owner_id=%s execution_key=%s status=%s ai_used=%s",
            owner_id,
            key,
            record.status.value,
            record.ai_used,
        )
        return key


async def list_executions(
    store: DocumentStore,
    owner_id: str,
    *,
    limit: int = 20,
) -> list[ExecutionRecord]:
    """Return a user's execution history, newest first."""
    snapshots = await store.query(
        CollectionQuery(
            collection=paths.executions_collection(owner_id),
            order_by="createdAt",
            descending=True,
            limit=limit,
        )
    )
    return [ExecutionRecord.from_snapshot(snapshot) for snapshot in snapshots]
