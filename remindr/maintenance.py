"""Periodic housekeeping for execution records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from remindr.clock import Clock, format_utc
from remindr.store import paths
from remindr.store.protocols import CollectionQuery, DocumentStore, FieldFilter

logger = logging.getLogger(__name__)

DEFAULT_TTL_DAYS = 30
CLEANUP_BATCH_SIZE = 500


@dataclass(slots=True)
class CleanupResult:
    deleted: int = 0
    cutoff: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def cleanup_expired_executions(
    store: DocumentStore,
    clock: Clock,
    *,
    ttl_days: int = DEFAULT_TTL_DAYS,
    batch_size: int = CLEANUP_BATCH_SIZE,
) -> CleanupResult:
    """Delete execution records created before ``now - ttl_days``.

    Best-effort: a failure stops the pass and is reported on the result, never
    raised. Deleting a record re-opens its execution key: a reminder still
    enabled and pointing at that scheduled time would run again.
    """
    if ttl_days < 1:
        raise ValueError("ttl_days must be >= 1")
    cutoff = format_utc(clock.now() - timedelta(days=ttl_days))
    result = CleanupResult(cutoff=cutoff)
    query = CollectionQuery(
        collection=paths.EXECUTIONS,
        filters=(FieldFilter("createdAt", "<", cutoff),),
        limit=batch_size,
        group=True,
    )
    try:
        while True:
            expired = await store.query(query)
            for snapshot in expired:
                await store.delete(snapshot.path)
                result.deleted += 1
            if len(expired) < batch_size:
                break
    except Exception as exc:
        logger.exception("execution_cleanup_failed deleted=%d cutoff=%s", result.deleted, cutoff)
        result.error = str(exc)
        return result
    logger.info("execution_cleanup_completed deleted=%d cutoff=%s", result.deleted, cutoff)
    return result
