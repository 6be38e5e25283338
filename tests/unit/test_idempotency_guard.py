from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from hypothesis import given
from hypothesis import strategies as st

from remindr.execution.idempotency import IdempotencyGuard, execution_key
from remindr.store.paths import execution_path

_ids = st.text(
    alphabet=st.characters(exclude_characters="/", exclude_categories=("Cs",)),
    min_size=1,
    max_size=24,
).filter(lambda s: s.strip() != "")
_times = st.datetimes(
    min_value=datetime(2000, 1, 1),
    max_value=datetime(2099, 12, 31),
    timezones=st.just(timezone.utc),
).map(lambda dt: dt.replace(microsecond=dt.microsecond // 1000 * 1000))


def test_execution_key_format() -> None:
    assert execution_key("r1", "2024-01-01T09:00:00Z") == "r1_2024-01-01T09:00:00.000Z"


def test_execution_key_normalises_equivalent_timestamps() -> None:
    aware = datetime(2024, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=1)))
    assert execution_key("r1", aware) == execution_key("r1", "2024-01-01T09:00:00.000Z")


@pytest.mark.parametrize("bad", ["", "   ", "a/b"])
def test_execution_key_rejects_unusable_ids(bad: str) -> None:
    with pytest.raises(ValueError):
        execution_key(bad, "2024-01-01T09:00:00.000Z")


@given(a_id=_ids, a_time=_times, b_id=_ids, b_time=_times)
def test_property_distinct_pairs_never_collide(a_id: str, a_time: datetime, b_id: str, b_time: datetime) -> None:
    """Keys are equal exactly when both the id and the scheduled time are equal."""
    same_pair = a_id == b_id and a_time == b_time
    assert (execution_key(a_id, a_time) == execution_key(b_id, b_time)) is same_pair


@given(intent_id=_ids, when=_times)
def test_property_key_is_deterministic(intent_id: str, when: datetime) -> None:
    assert execution_key(intent_id, when) == execution_key(intent_id, when.isoformat())


def test_underscore_ids_do_not_alias() -> None:
    left = execution_key("a_2024", "2024-01-01T09:00:00.000Z")
    right = execution_key("a", "2024-01-01T09:00:00.000Z")
    assert left != right
    assert left.endswith("_2024-01-01T09:00:00.000Z")


@pytest.mark.asyncio
async def test_exists_reflects_recorded_runs(store) -> None:
    guard = IdempotencyGuard(store)
    assert await guard.exists("u1", "r1", "2024-01-01T09:00:00.000Z") is False
    await store.set(execution_path("u1", "r1_2024-01-01T09:00:00.000Z"), {"status": "executed"})
    assert await guard.exists("u1", "r1", "2024-01-01T09:00:00.000Z") is True
    assert await guard.exists("u1", "r1", "2024-01-02T09:00:00.000Z") is False
    assert await guard.exists("u2", "r1", "2024-01-01T09:00:00.000Z") is False


@pytest.mark.asyncio
async def test_exists_fails_open_on_read_error(failing_store) -> None:
    await failing_store.set(execution_path("u1", "r1_2024-01-01T09:00:00.000Z"), {"status": "executed"})
    failing_store.fail_get_on.append("/executions/")
    guard = IdempotencyGuard(failing_store)
    assert await guard.exists("u1", "r1", "2024-01-01T09:00:00.000Z") is False


@pytest.mark.asyncio
async def test_exists_never_writes(store) -> None:
    await IdempotencyGuard(store).exists("u1", "r1", "2024-01-01T09:00:00.000Z")
    assert store.paths() == []
