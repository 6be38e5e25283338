"""Daily AI usage caps: read-only gate in front of every paid AI call."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from remindr.clock import Clock, utc_date_key
from remindr.store import paths
from remindr.store.protocols import DocumentSnapshot, DocumentStore

logger = logging.getLogger(__name__)

USER_LIMIT = "user_limit"
GLOBAL_LIMIT = "global_limit"
CHECK_FAILED = "cap_check_failed"


@dataclass(frozen=True, slots=True)
class CapDecision:
    """Whether an AI call may proceed, and why not when it may not."""

    allowed: bool
    reason: str | None = None


def read_count(snapshot: DocumentSnapshot | None) -> int:
    """Return the ``count`` field of a counter document, 0 when absent or malformed."""
    if snapshot is None:
        return 0
    count = snapshot.get("count")
    if isinstance(count, bool) or not isinstance(count, int):
        return 0
    return count


class UsageCapGuard:
    """Evaluates per-user and global daily AI call caps. Never writes."""

    def __init__(
        self,
        store: DocumentStore,
        clock: Clock,
        *,
        user_daily_cap: int = 1,
        global_daily_cap: int = 100,
    ) -> None:
        self._store = store
        self._clock = clock
        self.user_daily_cap = user_daily_cap
        self.global_daily_cap = global_daily_cap

    async def check(self, owner_id: str) -> CapDecision:
        """Allow unless either today's counter is at or over its cap.

        Read failures fail closed: uncontrolled spend is worse than a missed draft.
        """
        date_key = utc_date_key(self._clock.now())
        try:
            user_count = read_count(await self._store.get(paths.user_usage_path(owner_id, date_key)))
            if user_count >= self.user_daily_cap:
                logger.info(
                    "usage_cap_denied owner_id=%s reason=%s count=%d cap=%d",
                    owner_id,
                    USER_LIMIT,
                    user_count,
                    self.user_daily_cap,
                )
                return CapDecision(allowed=False, reason=USER_LIMIT)

            global_count = read_count(await self._store.get(paths.global_usage_path(date_key)))
            if global_count >= self.global_daily_cap:
                logger.warning(
                    "usage_cap_denied owner_id=%s reason=%s count=%d cap=%d",
                    owner_id,
                    GLOBAL_LIMIT,
                    global_count,
                    self.global_daily_cap,
                )
                return CapDecision(allowed=False, reason=GLOBAL_LIMIT)
        except Exception as exc:
            logger.error("usage_cap_check_failed_closed owner_id=%s error=%s", owner_id, exc)
            return CapDecision(allowed=False, reason=CHECK_FAILED)
        return CapDecision(allowed=True)
