"""Daily AI usage counters, incremented after a successful AI call."""

from __future__ import annotations

import logging

from remindr.clock import Clock, utc_date_key
from remindr.execution.best_effort import BestEffortResult, best_effort
from remindr.store import paths
from remindr.store.protocols import DocumentStore

logger = logging.getLogger(__name__)


class UsageCounterWriter:
    """Bumps the per-user and global counters with atomic increments."""

    def __init__(self, store: DocumentStore, clock: Clock) -> None:
        self._store = store
        self._clock = clock

    async def increment(self, owner_id: str) -> BestEffortResult[str]:
        """Increment both counters for today; returns the date key on success."""
        date_key = utc_date_key(self._clock.now())
        return await best_effort(
            "increment_usage",
            self._increment(owner_id, date_key),
            owner_id=owner_id,
            date_key=date_key,
        )

    async def _increment(self, owner_id: str, date_key: str) -> str:
        await self._store.increment(paths.user_usage_path(owner_id, date_key), "count", 1)
        await self._store.increment(paths.global_usage_path(date_key), "count", 1)
        logger.info("usage_incremented owner_id=%s date_key=%s", owner_id, date_key)
        return date_key
