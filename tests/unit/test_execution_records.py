"""Unit tests for execution records, drafts and the best-effort wrapper."""

import asyncio

import pytest

from remindr.execution.best_effort import BestEffortResult, best_effort
from remindr.execution.drafts import DraftWriter
from remindr.execution.records import (
    ExecutionLogWriter,
    ExecutionRecord,
    ExecutionStatus,
    list_executions,
)
from remindr.store.errors import DocumentExistsError
from remindr.store.paths import execution_path


@pytest.mark.asyncio
async def test_record_written_under_execution_key(store, clock):
    writer = ExecutionLogWriter(store, clock)
    result = await writer.record(
        "u1",
        reminder_id="r1",
        reminder_type="ai",
        scheduled_for="2024-01-01T09:00:00Z",
        status=ExecutionStatus.EXECUTED,
        ai_used=True,
        draft_id="d1",
    )
    assert result.ok
    assert result.value == "r1_2024-01-01T09:00:00.000Z"
    doc = (await store.get(execution_path("u1", result.value))).data
    assert doc == {
        "reminderId": "r1",
        "reminderType": "ai",
        "scheduledForUTC": "2024-01-01T09:00:00.000Z",
        "status": "executed",
        "aiUsed": True,
        "draftId": "d1",
        "createdAt": "2024-01-01T09:05:00.000Z",
    }


@pytest.mark.asyncio
async def test_record_is_write_once(store, clock):
    writer = ExecutionLogWriter(store, clock)
    kwargs = dict(reminder_id="r1", reminder_type="simple", scheduled_for="2024-01-01T09:00:00.000Z")
    await writer.record("u1", status=ExecutionStatus.EXECUTED, **kwargs)
    second = await writer.record("u1", status=ExecutionStatus.SKIPPED_ERROR, **kwargs)
    assert second.ok is False
    assert isinstance(second.error, DocumentExistsError)
    stored = await store.get(execution_path("u1", "r1_2024-01-01T09:00:00.000Z"))
    assert stored.get("status") == "executed"


@pytest.mark.asyncio
async def test_duplicate_status_is_never_persisted(store, clock):
    with pytest.raises(ValueError):
        await ExecutionLogWriter(store, clock).record(
            "u1",
            reminder_id="r1",
            reminder_type="simple",
            scheduled_for="2024-01-01T09:00:00.000Z",
            status=ExecutionStatus.SKIPPED_IDEMPOTENT,
        )


@pytest.mark.asyncio
async def test_reason_is_kept_for_skips(store, clock):
    result = await ExecutionLogWriter(store, clock).record(
        "u1",
        reminder_id="r1",
        reminder_type="ai",
        scheduled_for="2024-01-01T09:00:00.000Z",
        status=ExecutionStatus.SKIPPED_CAP,
        reason="global_limit",
    )
    record = ExecutionRecord.from_snapshot(await store.get(execution_path("u1", result.value)))
    assert record.status is ExecutionStatus.SKIPPED_CAP
    assert record.reason == "global_limit"
    assert record.draft_id is None


@pytest.mark.asyncio
async def test_list_executions_newest_first(store, clock):
    writer = ExecutionLogWriter(store, clock)
    for day in ("01", "02", "03"):
        clock.set(f"2024-01-{day}T09:05:00Z")
        await writer.record(
            "u1",
            reminder_id="r1",
            reminder_type="simple",
            scheduled_for=f"2024-01-{day}T09:00:00Z",
            status=ExecutionStatus.EXECUTED,
        )
    records = await list_executions(store, "u1", limit=2)
    assert [r.scheduled_for_utc for r in records] == ["2024-01-03T09:00:00.000Z", "2024-01-02T09:00:00.000Z"]
    assert await list_executions(store, "u2") == []


@pytest.mark.asyncio
async def test_draft_writer_appends(store, clock):
    writer = DraftWriter(store, clock)
    first = await writer.create(
        "u1", reminder_id="r1", reminder_type="simple", content="hello", scheduled_for="2024-01-01T09:00:00Z"
    )
    second = await writer.create(
        "u1", reminder_id="r1", reminder_type="simple", content="hello", scheduled_for="2024-01-01T09:00:00Z"
    )
    assert first.ok and second.ok
    assert first.value != second.value
    draft = await store.get(f"users/u1/drafts/{first.value}")
    assert draft.data == {
        "reminderId": "r1",
        "reminderType": "simple",
        "content": "hello",
        "scheduledForUTC": "2024-01-01T09:00:00.000Z",
        "createdAt": "2024-01-01T09:05:00.000Z",
    }


@pytest.mark.asyncio
async def test_draft_writer_failure_is_captured(failing_store, clock):
    failing_store.fail_write_on.append("/drafts")
    result = await DraftWriter(failing_store, clock).create(
        "u1", reminder_id="r1", reminder_type="ai", content="x", scheduled_for="2024-01-01T09:00:00Z"
    )
    assert result.ok is False
    assert result.value_or("fallback") == "fallback"


@pytest.mark.asyncio
async def test_best_effort_success_and_failure(caplog):
    async def ok():
        return 42

    async def boom():
        raise RuntimeError("nope")

    good = await best_effort("op_ok", ok())
    bad = await best_effort("op_bad", boom(), reminder_id="r1")

    assert good == BestEffortResult(operation="op_ok", value=42)
    assert bad.ok is False
    assert bad.operation == "op_bad"
    assert "best_effort_failed operation=op_bad" in caplog.text
    assert "reminder_id=r1" in caplog.text


@pytest.mark.asyncio
async def test_best_effort_does_not_swallow_cancellation():
    async def cancelled():
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await best_effort("op", cancelled())
