"""Drafts: immutable execution output owned by the user."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from remindr.clock import Clock, format_utc
from remindr.execution.best_effort import BestEffortResult, best_effort
from remindr.store import paths
from remindr.store.protocols import DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Draft:
    """Write-once draft body."""

    reminder_id: str
    reminder_type: str
    content: str
    scheduled_for_utc: str
    created_at: str

    def to_document(self) -> dict[str, Any]:
        return {
            "reminderId": self.reminder_id,
            "reminderType": self.reminder_type,
            "content": self.content,
            "scheduledForUTC": self.scheduled_for_utc,
            "createdAt": self.created_at,
        }


class DraftWriter:
    """Appends drafts under a fresh id; never updates an existing draft."""

    def __init__(self, store: DocumentStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    async def create(
        self,
        owner_id: str,
        *,
        reminder_id: str,
        reminder_type: str,
        content: str,
        scheduled_for: datetime | str,
    ) -> BestEffortResult[str]:
        """Persist a draft; returns its id on success."""
        draft = Draft(
            reminder_id=reminder_id,
            reminder_type=reminder_type,
            content=content,
            scheduled_for_utc=format_utc(scheduled_for),
            created_at=format_utc(self._clock.now()),
        )
        return await best_effort(
            "create_draft",
            self._write(owner_id, draft),
            owner_id=owner_id,
            reminder_id=reminder_id,
        )

    async def _write(self, owner_id: str, draft: Draft) -> str:
        draft_id = await self._store.add(paths.drafts_collection(owner_id), draft.to_document())
        logger.info(
            "draft_created owner_id=%s reminder_id=%s draft_id=%s reminder_type=%s content_length=%d",
            owner_id,
            draft.reminder_id,
            draft_id,
            draft.reminder_type,
            len(draft.content),
        )
        return draft_id
