"""Unit tests for schedule arithmetic and the schedule advancer."""

from datetime import datetime, timezone

import pytest

from remindr.clock import format_utc
from remindr.execution.advancer import INVALID_SCHEDULE, ScheduleAdvancer
from remindr.reminders.models import Intent, Schedule
from remindr.reminders.schedule import (
    ScheduleError,
    compute_initial_run_at,
    compute_next_run_at,
    parse_time_of_day,
)
from remindr.store.paths import reminder_path


def _next(frequency, schedule, scheduled_for):
    return format_utc(compute_next_run_at(frequency, schedule, scheduled_for))


def _initial(frequency, schedule, now):
    return format_utc(compute_initial_run_at(frequency, schedule, datetime.fromisoformat(now)))


class TestComputeNextRunAt:
    def test_daily_adds_one_day_to_scheduled_time(self):
        assert _next("daily", Schedule(time_of_day="09:00"), "2024-01-01T09:00:00.000Z") == "2024-01-02T09:00:00.000Z"

    def test_daily_result_does_not_depend_on_when_the_run_happened(self):
        """Only the frozen scheduled time is an input; lateness cannot shift the cadence."""
        schedule = Schedule(time_of_day="09:00")
        results = {_next("daily", schedule, "2024-01-01T09:00:00.000Z") for _ in range(3)}
        assert results == {"2024-01-02T09:00:00.000Z"}

    def test_daily_crosses_month_and_year(self):
        assert _next("daily", Schedule(), "2023-12-31T23:30:00.000Z") == "2024-01-01T23:30:00.000Z"

    def test_one_time_has_no_next_run(self):
        assert compute_next_run_at("one_time", Schedule(), "2024-01-01T09:00:00.000Z") is None

    def test_weekly_moves_to_next_configured_day_in_same_week(self):
        schedule = Schedule(time_of_day="09:00", timezone="Europe/London", week_days=[1, 4])
        # Monday -> Thursday
        assert _next("weekly", schedule, "2024-01-01T09:00:00.000Z") == "2024-01-04T09:00:00.000Z"

    def test_weekly_wraps_to_following_week(self):
        schedule = Schedule(time_of_day="09:00", timezone="Europe/London", week_days=[1, 4])
        # Thursday -> next Monday
        assert _next("weekly", schedule, "2024-01-04T09:00:00.000Z") == "2024-01-08T09:00:00.000Z"

    def test_weekly_single_day_repeats_after_seven_days(self):
        schedule = Schedule(time_of_day="09:00", week_days=[1])
        assert _next("weekly", schedule, "2024-01-01T09:00:00.000Z") == "2024-01-08T09:00:00.000Z"

    def test_weekly_uses_local_weekday_not_utc_weekday(self):
        schedule = Schedule(time_of_day="08:00", timezone="Asia/Tokyo", week_days=[2])
        # 2024-01-01T23:00Z is Tuesday 08:00 in Tokyo.
        assert _next("weekly", schedule, "2024-01-01T23:00:00.000Z") == "2024-01-08T23:00:00.000Z"

    def test_weekly_keeps_local_time_across_dst_change(self):
        schedule = Schedule(time_of_day="09:00", timezone="America/New_York", week_days=[7])
        # 09:00 EST on 2024-03-03, then 09:00 EDT on 2024-03-10.
        assert _next("weekly", schedule, "2024-03-03T14:00:00.000Z") == "2024-03-10T13:00:00.000Z"

    def test_cron_next_fire_time(self):
        schedule = Schedule(cron="0 9 * * 1-5")
        # Friday -> Monday
        assert _next("cron", schedule, "2024-01-05T09:00:00.000Z") == "2024-01-08T09:00:00.000Z"

    def test_cron_is_evaluated_in_reminder_timezone(self):
        schedule = Schedule(cron="0 9 * * *", timezone="America/New_York")
        assert _next("cron", schedule, "2024-01-01T14:00:00.000Z") == "2024-01-02T14:00:00.000Z"

    @pytest.mark.parametrize(
        ("frequency", "schedule"),
        [
            ("weekly", Schedule(time_of_day="09:00", week_days=[])),
            ("weekly", Schedule(time_of_day="09:00", week_days=[0, 8])),
            ("weekly", Schedule(time_of_day="9am", week_days=[1])),
            ("weekly", Schedule(time_of_day="09:00", timezone="Mars/Olympus", week_days=[1])),
            ("cron", Schedule(cron="not a cron")),
            ("cron", Schedule()),
            ("hourly", Schedule()),
        ],
    )
    def test_invalid_schedules_raise(self, frequency, schedule):
        with pytest.raises(ScheduleError):
            compute_next_run_at(frequency, schedule, "2024-01-01T09:00:00.000Z")


class TestComputeInitialRunAt:
    def test_daily_later_today(self):
        assert _initial("daily", Schedule(time_of_day="18:30"), "2024-01-01T09:05:00+00:00") == "2024-01-01T18:30:00.000Z"

    def test_daily_already_passed_goes_to_tomorrow(self):
        assert _initial("daily", Schedule(time_of_day="09:00"), "2024-01-01T09:05:00+00:00") == "2024-01-02T09:00:00.000Z"

    def test_daily_in_local_timezone(self):
        schedule = Schedule(time_of_day="09:00", timezone="Asia/Kolkata")
        assert _initial("daily", schedule, "2024-01-01T00:00:00+00:00") == "2024-01-01T03:30:00.000Z"

    def test_one_time_uses_date_and_time(self):
        schedule = Schedule(time_of_day="07:15", date="2024-02-10", timezone="Europe/Berlin")
        assert _initial("one_time", schedule, "2024-01-01T09:05:00+00:00") == "2024-02-10T06:15:00.000Z"

    def test_one_time_requires_date(self):
        with pytest.raises(ScheduleError):
            compute_initial_run_at("one_time", Schedule(time_of_day="07:15"), datetime(2024, 1, 1, tzinfo=timezone.utc))

    def test_weekly_skips_todays_passed_slot(self):
        schedule = Schedule(time_of_day="09:00", week_days=[1])
        assert _initial("weekly", schedule, "2024-01-01T09:05:00+00:00") == "2024-01-08T09:00:00.000Z"

    def test_weekly_picks_nearest_configured_day(self):
        schedule = Schedule(time_of_day="09:00", week_days=[3, 5])
        assert _initial("weekly", schedule, "2024-01-01T09:05:00+00:00") == "2024-01-03T09:00:00.000Z"

    def test_cron_first_fire(self):
        assert _initial("cron", Schedule(cron="30 * * * *"), "2024-01-01T09:05:00+00:00") == "2024-01-01T09:30:00.000Z"


@pytest.mark.parametrize(("raw", "hour", "minute"), [("09:00", 9, 0), ("7:05", 7, 5), ("23:59", 23, 59)])
def test_parse_time_of_day(raw, hour, minute):
    parsed = parse_time_of_day(raw)
    assert (parsed.hour, parsed.minute) == (hour, minute)


@pytest.mark.parametrize("raw", [None, "", "24:00", "12:60", "noon", "12"])
def test_parse_time_of_day_rejects(raw):
    with pytest.raises(ScheduleError):
        parse_time_of_day(raw)


async def _intent(store, **fields):
    path = reminder_path("u1", "r1")
    doc = {
        "enabled": True,
        "frequency": "daily",
        "reminderType": "simple",
        "content": {"message": "hi"},
        "schedule": {"timeOfDay": "09:00"},
        "nextRunAtUTC": "2024-01-01T09:00:00.000Z",
    }
    doc.update(fields)
    await store.set(path, doc)
    return Intent.from_snapshot(await store.get(path))


class TestScheduleAdvancer:
    @pytest.mark.asyncio
    async def test_recurring_sets_next_run_and_updated_at(self, store, clock):
        intent = await _intent(store)
        result = await ScheduleAdvancer(store, clock).advance(intent, intent.next_run_at_utc)
        assert result.ok
        assert result.value.next_run_at_utc == "2024-01-02T09:00:00.000Z"
        stored = await store.get(intent.path)
        assert stored.get("nextRunAtUTC") == "2024-01-02T09:00:00.000Z"
        assert stored.get("updatedAt") == "2024-01-01T09:05:00.000Z"
        assert stored.get("enabled") is True

    @pytest.mark.asyncio
    async def test_one_time_disables_and_keeps_next_run(self, store, clock):
        intent = await _intent(store, frequency="one_time")
        result = await ScheduleAdvancer(store, clock).advance(intent, intent.next_run_at_utc)
        assert result.value.disabled is True
        stored = await store.get(intent.path)
        assert stored.get("enabled") is False
        assert stored.get("nextRunAtUTC") == "2024-01-01T09:00:00.000Z"

    @pytest.mark.asyncio
    async def test_invalid_schedule_disables_with_reason(self, store, clock):
        intent = await _intent(store, frequency="cron", schedule={"cron": "bogus"})
        result = await ScheduleAdvancer(store, clock).advance(intent, intent.next_run_at_utc)
        assert result.ok
        assert result.value.reason == INVALID_SCHEDULE
        stored = await store.get(intent.path)
        assert stored.get("enabled") is False
        assert stored.get("disabledReason") == INVALID_SCHEDULE

    @pytest.mark.asyncio
    async def test_never_touches_user_owned_fields(self, store, clock):
        intent = await _intent(store, frequency="weekly", schedule={"timeOfDay": "09:00", "weekDays": [1]})
        before = (await store.get(intent.path)).data
        await ScheduleAdvancer(store, clock).advance(intent, intent.next_run_at_utc)
        after = (await store.get(intent.path)).data
        for key in ("schedule", "content", "frequency", "reminderType"):
            assert after[key] == before[key]

    @pytest.mark.asyncio
    async def test_store_failure_is_returned_not_raised(self, failing_store, clock):
        intent = await _intent(failing_store)
        failing_store.fail_write_on.append("/reminders/")
        result = await ScheduleAdvancer(failing_store, clock).advance(intent, intent.next_run_at_utc)
        assert result.ok is False
        assert result.operation == "advance_schedule"

    @pytest.mark.asyncio
    async def test_disable_keeps_next_run_and_records_reason(self, store, clock):
        intent = await _intent(store)
        result = await ScheduleAdvancer(store, clock).disable(intent, "unknown_reminder_type")
        assert result.ok
        stored = await store.get(intent.path)
        assert stored.get("enabled") is False
        assert stored.get("disabledReason") == "unknown_reminder_type"
        assert stored.get("nextRunAtUTC") == "2024-01-01T09:00:00.000Z"

    @pytest.mark.asyncio
    async def test_resume_advances_a_reminder_still_pointing_at_the_slot(self, store, clock):
        intent = await _intent(store)
        result = await ScheduleAdvancer(store, clock).resume(intent, intent.next_run_at_utc)
        assert result.value.next_run_at_utc == "2024-01-02T09:00:00.000Z"
        assert (await store.get(intent.path)).get("nextRunAtUTC") == "2024-01-02T09:00:00.000Z"

    @pytest.mark.asyncio
    async def test_resume_leaves_moved_or_disabled_reminders_alone(self, store, clock):
        intent = await _intent(store)
        advancer = ScheduleAdvancer(store, clock)
        await store.update(intent.path, {"nextRunAtUTC": "2024-01-05T09:00:00.000Z"})
        assert (await advancer.resume(intent, intent.next_run_at_utc)).value is None

        await store.update(intent.path, {"nextRunAtUTC": "2024-01-01T09:00:00.000Z", "enabled": False})
        assert (await advancer.resume(intent, intent.next_run_at_utc)).value is None
        assert (await store.get(intent.path)).get("nextRunAtUTC") == "2024-01-01T09:00:00.000Z"
