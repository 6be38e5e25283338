"""Reminder (intent) data model and content variants."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from remindr.clock import parse_utc
from remindr.store.paths import owner_of_reminder
from remindr.store.protocols import DocumentSnapshot


class Frequency(str, Enum):
    """How often a reminder fires."""

    ONE_TIME = "one_time"
    DAILY = "daily"
    WEEKLY = "weekly"
    CRON = "cron"


class ReminderType(str, Enum):
    """What a reminder produces when it fires."""

    SIMPLE = "simple"
    AI = "ai"


@dataclass(slots=True)
class Schedule:
    """User-owned schedule parameters; interpretation depends on frequency."""

    time_of_day: str | None = None
    timezone: str = "UTC"
    week_days: list[int] = field(default_factory=list)
    date: str | None = None
    cron: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Schedule:
        if not isinstance(data, dict):
            return cls()
        week_days = data.get("weekDays")
        return cls(
            time_of_day=data.get("timeOfDay") or None,
            timezone=data.get("timezone") or "UTC",
            week_days=list(week_days) if isinstance(week_days, list) else [],
            date=data.get("date") or None,
            cron=data.get("cron") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"timezone": self.timezone}
        if self.time_of_day is not None:
            out["timeOfDay"] = self.time_of_day
        if self.week_days:
            out["weekDays"] = list(self.week_days)
        if self.date is not None:
            out["date"] = self.date
        if self.cron is not None:
            out["cron"] = self.cron
        return out


@dataclass(frozen=True, slots=True)
class SimpleContent:
    """Static message delivered verbatim."""

    message: str


@dataclass(frozen=True, slots=True)
class AIContent:
    """Parameters for an AI-generated draft."""

    prompt: str
    role: str | None = None
    tone: str | None = None
    platform: str | None = None


ReminderContent = SimpleContent | AIContent


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _optional_text(value: Any) -> str | None:
    text = _text(value)
    return text or None


def parse_content(reminder_type: str, raw: Any) -> ReminderContent | None:
    """Build the content variant for a known reminder type; None for unknown tags."""
    data = raw if isinstance(raw, dict) else {}
    if reminder_type == ReminderType.SIMPLE.value:
        return SimpleContent(message=_text(data.get("message")))
    if reminder_type == ReminderType.AI.value:
        return AIContent(
            prompt=_text(data.get("prompt") or data.get("aiPrompt")),
            role=_optional_text(data.get("role")),
            tone=_optional_text(data.get("tone")),
            platform=_optional_text(data.get("platform")),
        )
    return None


@dataclass(slots=True)
class Intent:
    """A reminder as read from the store at the start of one execution attempt."""

    id: str
    owner_id: str
    path: str
    enabled: bool
    frequency: str
    schedule: Schedule
    reminder_type: str
    content: ReminderContent | None
    next_run_at_utc: datetime | None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_snapshot(cls, snapshot: DocumentSnapshot) -> Intent:
        """Parse a stored reminder; the owner always comes from the path.

        An absent ``nextRunAtUTC`` yields None; a present but unparseable one
        raises ValueError.
        """
        data = snapshot.data
        reminder_type = _text(data.get("reminderType"))
        raw_next = data.get("nextRunAtUTC")
        return cls(
            id=snapshot.id,
            owner_id=owner_of_reminder(snapshot.path),
            path=snapshot.path,
            enabled=data.get("enabled") is True,
            frequency=_text(data.get("frequency")),
            schedule=Schedule.from_dict(data.get("schedule")),
            reminder_type=reminder_type,
            content=parse_content(reminder_type, data.get("content")),
            next_run_at_utc=parse_utc(raw_next) if raw_next not in (None, "") else None,
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )
