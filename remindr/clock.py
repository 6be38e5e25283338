"""UTC clock abstraction and canonical timestamp encoding.

Every wall-clock read in the engine goes through a :class:`Clock` so tests can
pin "now". Timestamps are persisted as fixed-width UTC strings
(``2024-01-01T09:00:00.000Z``) which sort lexically in chronological order.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Source of the current UTC time."""

    def now(self) -> datetime:
        """Return the current timezone-aware UTC datetime."""


class SystemClock:
    """Wall-clock implementation."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Manually driven clock for tests and replays."""

    def __init__(self, current: datetime | str) -> None:
        self._current = parse_utc(current)

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime | str) -> None:
        self._current = parse_utc(current)

    def advance(self, delta: timedelta) -> datetime:
        self._current = self._current + delta
        return self._current


def parse_utc(value: datetime | str) -> datetime:
    """Parse an ISO-8601 string or datetime into an aware UTC datetime.

    Naive values are interpreted as UTC.

    Raises:
        ValueError: value is empty or not ISO-8601.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("timestamp must be a non-empty string")
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"Invalid ISO-8601 timestamp: {value!r}") from exc
    else:
        raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_utc(value: datetime | str) -> str:
    """Encode a timestamp in the canonical millisecond ``Z`` form."""
    dt = parse_utc(value)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def utc_date_key(value: datetime) -> str:
    """Return the ``YYYY-MM-DD`` key of the UTC calendar day."""
    return parse_utc(value).strftime("%Y-%m-%d")
