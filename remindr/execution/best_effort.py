"""Best-effort side effects.

Audit records, drafts, usage counters and schedule advancement must never
abort an execution. Instead of swallowing their exceptions in place, callers
run them through :func:`best_effort` and receive a :class:`BestEffortResult`
that carries either the value or the captured error, so a discarded failure
is explicit where it happens.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class BestEffortResult(Generic[T]):
    """Outcome of one best-effort operation."""

    operation: str
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: T | None = None) -> T | None:
        return self.value if self.error is None else default


async def best_effort(operation: str, awaitable: Awaitable[T], **context: Any) -> BestEffortResult[T]:
    """Await a side effect; log and capture any exception instead of raising."""
    try:
        value = await awaitable
    except Exception as exc:
        details = " ".join(f"{key}={value}" for key, value in context.items())
        logger.warning(
            "best_effort_failed operation=%s error_type=%s error=%s %s",
            operation,
            type(exc).__name__,
            exc,
            details,
        )
        return BestEffortResult(operation=operation, error=exc)
    return BestEffortResult(operation=operation, value=value)
