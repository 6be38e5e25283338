"""Execution identity and the "has this run already happened?" check.

A run's identity is ``(reminder id, scheduled time)``. The derived key is both
the idempotency key and the key of the execution record, so re-deriving it
for a redelivered trigger always lands on the same document.
"""

from __future__ import annotations

import logging
from datetime import datetime

from remindr.clock import format_utc
from remindr.store import paths
from remindr.store.protocols import DocumentStore

logger = logging.getLogger(__name__)


def execution_key(intent_id: str, scheduled_for: datetime | str) -> str:
    """Return ``{intent_id}_{scheduledForUTC}``.

    The timestamp suffix is fixed-width, so the split point is unambiguous
    and distinct pairs never collide even when ids contain underscores.
    """
    if not isinstance(intent_id, str) or not intent_id.strip():
        raise ValueError("intent_id must be a non-empty string")
    if "/" in intent_id:
        raise ValueError(f"intent_id must not contain '/': {intent_id!r}")
    return f"{intent_id}_{format_utc(scheduled_for)}"


class IdempotencyGuard:
    """Existence check for execution records. Read-only."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def exists(self, owner_id: str, intent_id: str, scheduled_for: datetime | str) -> bool:
        """Return whether this run was already recorded.

        Read failures fail open (False): a possible duplicate run is cheaper
        than a reminder that can never fire again.
        """
        key = execution_key(intent_id, scheduled_for)
        try:
            snapshot = await self._store.get(paths.execution_path(owner_id, key))
        except Exception as exc:
            logger.error(
                "idempotency_check_failed_open owner_id=%s execution_key=%s error=%s",
                owner_id,
                key,
                exc,
            )
            return False
        return snapshot is not None
