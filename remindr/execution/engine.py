"""Execution engine: drives one due reminder through its state machine.

States, in order: load, enablement check, freeze the scheduled time,
idempotency check, type routing, cap check (AI only), single AI call, draft,
schedule advancement, execution record. Every terminal path ends in exactly
one :class:`ExecutionOutcome`; nothing raised inside escapes :meth:`run_one`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TypeVar

from remindr.clock import Clock, SystemClock, format_utc
from remindr.execution.advancer import AdvanceResult, ScheduleAdvancer
from remindr.execution.best_effort import BestEffortResult
from remindr.execution.drafts import DraftWriter
from remindr.execution.idempotency import IdempotencyGuard
from remindr.execution.records import ExecutionLogWriter, ExecutionStatus
from remindr.governance.usage_caps import UsageCapGuard
from remindr.governance.usage_counters import UsageCounterWriter
from remindr.integrations.llm import TextGenerator
from remindr.reminders.models import AIContent, Intent, SimpleContent
from remindr.reminders.prompts import build_prompt
from remindr.store.protocols import DocumentSnapshot, DocumentStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Outcome reasons
INTENT_NOT_FOUND = "intent_not_found"
LOAD_FAILED = "load_failed"
INVALID_INTENT = "invalid_intent"
MISSING_NEXT_RUN = "missing_next_run_at"
UNKNOWN_TYPE = "unknown_reminder_type"
EMPTY_MESSAGE = "empty_message"
EMPTY_PROMPT = "empty_prompt"
AI_CALL_FAILED = "ai_call_failed"
INTERNAL_ERROR = "internal_error"


@dataclass(slots=True)
class ExecutionOutcome:
    """What one execution attempt did."""

    intent_path: str
    status: ExecutionStatus
    intent_id: str | None = None
    owner_id: str | None = None
    scheduled_for_utc: str | None = None
    ai_used: bool = False
    draft_id: str | None = None
    advanced: bool = False
    next_run_at_utc: str | None = None
    recorded: bool = False
    reason: str | None = None
    degraded: list[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.status is ExecutionStatus.SKIPPED_ERROR

    def to_dict(self) -> dict[str, object]:
        return {
            "intent_path": self.intent_path,
            "intent_id": self.intent_id,
            "owner_id": self.owner_id,
            "status": self.status.value,
            "scheduled_for_utc": self.scheduled_for_utc,
            "ai_used": self.ai_used,
            "draft_id": self.draft_id,
            "advanced": self.advanced,
            "next_run_at_utc": self.next_run_at_utc,
            "recorded": self.recorded,
            "reason": self.reason,
            "degraded": list(self.degraded),
        }


class ExecutionEngine:
    """Executes exactly one reminder per :meth:`run_one` call.

    Collaborators default to store-backed implementations built from ``store``
    and ``clock``; tests inject their own.
    """

    def __init__(
        self,
        *,
        store: DocumentStore,
        generator: TextGenerator,
        clock: Clock | None = None,
        idempotency: IdempotencyGuard | None = None,
        caps: UsageCapGuard | None = None,
        counters: UsageCounterWriter | None = None,
        drafts: DraftWriter | None = None,
        log: ExecutionLogWriter | None = None,
        advancer: ScheduleAdvancer | None = None,
        user_daily_cap: int = 1,
        global_daily_cap: int = 100,
    ) -> None:
        self._store = store
        self._generator = generator
        self._clock = clock or SystemClock()
        self._idempotency = idempotency or IdempotencyGuard(store)
        self._caps = caps or UsageCapGuard(
            store,
            self._clock,
            user_daily_cap=user_daily_cap,
            global_daily_cap=global_daily_cap,
        )
        self._counters = counters or UsageCounterWriter(store, self._clock)
        self._drafts = drafts or DraftWriter(store, self._clock)
        self._log = log or ExecutionLogWriter(store, self._clock)
        self._advancer = advancer or ScheduleAdvancer(store, self._clock)

    async def run_one(self, intent_ref: str | DocumentSnapshot) -> ExecutionOutcome:
        """Run one reminder, given its store path or a snapshot from the sweep."""
        intent_path = intent_ref.path if isinstance(intent_ref, DocumentSnapshot) else str(intent_ref)
        try:
            outcome = await self._run(intent_ref, intent_path)
        except Exception as exc:
            logger.exception("execution_unhandled_error intent_path=%s error=%s", intent_path, exc)
            outcome = ExecutionOutcome(
                intent_path=intent_path,
                status=ExecutionStatus.SKIPPED_ERROR,
                reason=INTERNAL_ERROR,
            )
        self._log_outcome(outcome)
        return outcome

    async def _run(self, intent_ref: str | DocumentSnapshot, intent_path: str) -> ExecutionOutcome:
        intent, failure = await self._load(intent_ref, intent_path)
        if intent is None:
            return failure  # type: ignore[return-value]

        outcome = ExecutionOutcome(
            intent_path=intent.path,
            status=ExecutionStatus.SKIPPED_ERROR,
            intent_id=intent.id,
            owner_id=intent.owner_id,
        )

        if not intent.enabled:
            outcome.status = ExecutionStatus.SKIPPED_DISABLED
            if intent.next_run_at_utc is None:
                logger.warning("execution_disabled_without_schedule reminder_id=%s", intent.id)
                return outcome
            outcome.scheduled_for_utc = format_utc(intent.next_run_at_utc)
            await self._record(outcome, intent)
            return outcome

        if intent.next_run_at_utc is None:
            logger.error("execution_missing_next_run reminder_id=%s owner_id=%s", intent.id, intent.owner_id)
            outcome.reason = MISSING_NEXT_RUN
            return outcome

        # The execution identity is frozen here; nothing below re-reads it.
        scheduled_for = intent.next_run_at_utc
        outcome.scheduled_for_utc = format_utc(scheduled_for)

        if await self._idempotency.exists(intent.owner_id, intent.id, scheduled_for):
            logger.info(
                "execution_already_recorded reminder_id=%s scheduled_for_utc=%s",
                intent.id,
                outcome.scheduled_for_utc,
            )
            outcome.status = ExecutionStatus.SKIPPED_IDEMPOTENT
            # A recorded run whose advancement failed would otherwise be due forever.
            resumed = self._track(outcome, await self._advancer.resume(intent, scheduled_for))
            if resumed is not None:
                outcome.advanced = True
                outcome.next_run_at_utc = resumed.next_run_at_utc
            return outcome

        content = intent.content
        if isinstance(content, SimpleContent):
            await self._execute_simple(outcome, intent, content, scheduled_for)
        elif isinstance(content, AIContent):
            await self._execute_ai(outcome, intent, content, scheduled_for)
        else:
            logger.error(
                "execution_unknown_reminder_type reminder_id=%s reminder_type=%r",
                intent.id,
                intent.reminder_type,
            )
            outcome.reason = UNKNOWN_TYPE
            # Left enabled it would stay due and hold a batch slot on every sweep.
            self._track(outcome, await self._advancer.disable(intent, UNKNOWN_TYPE))
            await self._record(outcome, intent)
            return outcome

        await self._advance(outcome, intent, scheduled_for)
        await self._record(outcome, intent)
        return outcome

    async def _load(
        self,
        intent_ref: str | DocumentSnapshot,
        intent_path: str,
    ) -> tuple[Intent | None, ExecutionOutcome | None]:
        def failure(reason: str) -> tuple[None, ExecutionOutcome]:
            return None, ExecutionOutcome(
                intent_path=intent_path,
                status=ExecutionStatus.SKIPPED_ERROR,
                reason=reason,
            )

        if isinstance(intent_ref, DocumentSnapshot):
            snapshot: DocumentSnapshot | None = intent_ref
        else:
            try:
                snapshot = await self._store.get(intent_path)
            except Exception as exc:
                logger.error("execution_load_failed intent_path=%s error=%s", intent_path, exc)
                return failure(LOAD_FAILED)
        if snapshot is None:
            logger.error("execution_intent_not_found intent_path=%s", intent_path)
            return failure(INTENT_NOT_FOUND)
        try:
            return Intent.from_snapshot(snapshot), None
        except ValueError as exc:
            logger.error("execution_invalid_intent intent_path=%s error=%s", intent_path, exc)
            return failure(INVALID_INTENT)

    async def _execute_simple(
        self,
        outcome: ExecutionOutcome,
        intent: Intent,
        content: SimpleContent,
        scheduled_for: datetime,
    ) -> None:
        if not content.message:
            logger.error("execution_empty_message reminder_id=%s", intent.id)
            outcome.reason = EMPTY_MESSAGE
            return
        outcome.status = ExecutionStatus.EXECUTED
        await self._write_draft(outcome, intent, content.message, scheduled_for)

    async def _execute_ai(
        self,
        outcome: ExecutionOutcome,
        intent: Intent,
        content: AIContent,
        scheduled_for: datetime,
    ) -> None:
        if not content.prompt:
            logger.error("execution_empty_prompt reminder_id=%s", intent.id)
            outcome.reason = EMPTY_PROMPT
            return

        decision = await self._caps.check(intent.owner_id)
        if not decision.allowed:
            outcome.status = ExecutionStatus.SKIPPED_CAP
            outcome.reason = decision.reason
            return

        try:
            text = await self._generator.generate(build_prompt(content))
        except Exception as exc:
            logger.error(
                "execution_ai_call_failed reminder_id=%s error_type=%s error=%s",
                intent.id,
                type(exc).__name__,
                exc,
            )
            outcome.reason = AI_CALL_FAILED
            return

        outcome.status = ExecutionStatus.EXECUTED
        outcome.ai_used = True
        self._track(outcome, await self._counters.increment(intent.owner_id))
        await self._write_draft(outcome, intent, text, scheduled_for)

    async def _write_draft(
        self,
        outcome: ExecutionOutcome,
        intent: Intent,
        text: str,
        scheduled_for: datetime,
    ) -> None:
        result = await self._drafts.create(
            intent.owner_id,
            reminder_id=intent.id,
            reminder_type=intent.reminder_type,
            content=text,
            scheduled_for=scheduled_for,
        )
        outcome.draft_id = self._track(outcome, result)

    async def _advance(self, outcome: ExecutionOutcome, intent: Intent, scheduled_for: datetime) -> None:
        result: BestEffortResult[AdvanceResult] = await self._advancer.advance(intent, scheduled_for)
        advanced = self._track(outcome, result)
        if advanced is not None:
            outcome.advanced = True
            outcome.next_run_at_utc = advanced.next_run_at_utc

    async def _record(self, outcome: ExecutionOutcome, intent: Intent) -> None:
        result = await self._log.record(
            intent.owner_id,
            reminder_id=intent.id,
            reminder_type=intent.reminder_type,
            scheduled_for=outcome.scheduled_for_utc,
            status=outcome.status,
            ai_used=outcome.ai_used,
            draft_id=outcome.draft_id,
            reason=outcome.reason,
        )
        outcome.recorded = self._track(outcome, result) is not None

    @staticmethod
    def _track(outcome: ExecutionOutcome, result: BestEffortResult[T]) -> T | None:
        if not result.ok:
            outcome.degraded.append(result.operation)
        return result.value_or(None)

    @staticmethod
    def _log_outcome(outcome: ExecutionOutcome) -> None:
        log = logger.error if outcome.failed else logger.info
        log(
            "execution_outcome reminder_id=%s owner_id=%s status=%s scheduled_for_utc=%s "
            "ai_used=%s draft_id=%s advanced=%s reason=%s degraded=%s",
            outcome.intent_id,
            outcome.owner_id,
            outcome.status.value,
            outcome.scheduled_for_utc,
            outcome.ai_used,
            outcome.draft_id,
            outcome.advanced,
            outcome.reason,
            ",".join(outcome.degraded) or None,
        )
