"""Schedule arithmetic: pure functions, no store access, no wall-clock reads.

Next run times are always derived from the run's *scheduled* time, never from
when it actually executed, so a late run does not shift the cadence.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter  # type: ignore[import-untyped]

from remindr.clock import parse_utc
from remindr.reminders.models import Frequency, Schedule


class ScheduleError(ValueError):
    """Raised when a schedule cannot produce a run time."""


def _frequency(value: Frequency | str) -> Frequency:
    try:
        return Frequency(value)
    except ValueError as exc:
        raise ScheduleError(f"Unsupported frequency: {value!r}") from exc


def _zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ScheduleError(f"Unknown timezone: {name!r}") from exc


def parse_time_of_day(value: str | None) -> time:
    """Parse ``HH:MM`` into a time."""
    if not value:
        raise ScheduleError("timeOfDay is required")
    hour_str, sep, minute_str = value.strip().partition(":")
    if not sep or not hour_str.isdigit() or not minute_str[:2].isdigit():
        raise ScheduleError(f"Invalid timeOfDay: {value!r}")
    hour, minute = int(hour_str), int(minute_str[:2])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ScheduleError(f"Invalid timeOfDay: {value!r}")
    return time(hour, minute)


def _week_days(schedule: Schedule) -> list[int]:
    days = sorted({d for d in schedule.week_days if isinstance(d, int) and not isinstance(d, bool) and 1 <= d <= 7})
    if not days:
        raise ScheduleError("weekly schedule needs at least one ISO weekday (1=Mon..7=Sun)")
    return days


def _cron_next(expression: str | None, start_local: datetime) -> datetime:
    if not expression or not croniter.is_valid(expression):
        raise ScheduleError(f"Invalid cron expression: {expression!r}")
    return croniter(expression, start_local).get_next(datetime)


def compute_next_run_at(
    frequency: Frequency | str,
    schedule: Schedule,
    scheduled_for: datetime | str,
) -> datetime | None:
    """Return the next UTC run time after ``scheduled_for``; None for one-time.

    Raises:
        ScheduleError: frequency unknown or schedule unusable.
    """
    base = parse_utc(scheduled_for)
    freq = _frequency(frequency)

    if freq is Frequency.ONE_TIME:
        return None

    if freq is Frequency.DAILY:
        return base + timedelta(days=1)

    zone = _zone(schedule.timezone)
    base_local = base.astimezone(zone)

    if freq is Frequency.WEEKLY:
        at = parse_time_of_day(schedule.time_of_day)
        days = _week_days(schedule)
        current = base_local.isoweekday()
        later = [d for d in days if d > current]
        days_to_add = later[0] - current if later else 7 - current + days[0]
        # Wall-clock arithmetic in the user's zone keeps 09:30 at 09:30 across DST.
        local_base = base_local.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)
        return (local_base + timedelta(days=days_to_add)).astimezone(timezone.utc)

    if freq is Frequency.CRON:
        return _cron_next(schedule.cron, base_local).astimezone(timezone.utc)

    raise ScheduleError(f"Unsupported frequency: {frequency!r}")


def compute_initial_run_at(
    frequency: Frequency | str,
    schedule: Schedule,
    now: datetime,
) -> datetime:
    """Return the first UTC run time for a newly created reminder.

    Raises:
        ScheduleError: frequency unknown or schedule unusable.
    """
    freq = _frequency(frequency)
    zone = _zone(schedule.timezone)
    now_local = parse_utc(now).astimezone(zone)

    if freq is Frequency.CRON:
        return _cron_next(schedule.cron, now_local).astimezone(timezone.utc)

    at = parse_time_of_day(schedule.time_of_day)

    if freq is Frequency.ONE_TIME:
        if not schedule.date:
            raise ScheduleError("one_time schedule needs a date")
        try:
            day = date.fromisoformat(schedule.date)
        except ValueError as exc:
            raise ScheduleError(f"Invalid date: {schedule.date!r}") from exc
        return datetime.combine(day, at, tzinfo=zone).astimezone(timezone.utc)

    candidate = datetime.combine(now_local.date(), at, tzinfo=zone)

    if freq is Frequency.DAILY:
        if candidate <= now_local:
            candidate += timedelta(days=1)
        return candidate.astimezone(timezone.utc)

    days = _week_days(schedule)
    for offset in range(8):
        option = candidate + timedelta(days=offset)
        if option > now_local and option.isoweekday() in days:
            return option.astimezone(timezone.utc)
    raise ScheduleError("weekly schedule has no upcoming weekday")
