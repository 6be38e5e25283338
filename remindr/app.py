"""Application wiring: one object holding config, store, generator and clock."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine

from remindr.clock import Clock, SystemClock
from remindr.config.models import RemindrConfig
from remindr.execution.engine import ExecutionEngine, ExecutionOutcome
from remindr.execution.records import ExecutionRecord, list_executions
from remindr.integrations.llm import TextGenerator, generator_from_config
from remindr.maintenance import CleanupResult, cleanup_expired_executions
from remindr.scheduler.sweep import SchedulerSweep, SweepResult
from remindr.store.memory import InMemoryDocumentStore
from remindr.store.protocols import DocumentSnapshot, DocumentStore

logger = logging.getLogger(__name__)


class Remindr:
    """Facade exposing the sweep and single-run operations."""

    def __init__(
        self,
        config: RemindrConfig,
        store: DocumentStore,
        generator: TextGenerator,
        clock: Clock | None = None,
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.generator = generator
        self.clock = clock or SystemClock()
        self._db_engine = engine
        self.engine = ExecutionEngine(
            store=store,
            generator=generator,
            clock=self.clock,
            user_daily_cap=config.usage.user_daily_ai_cap,
            global_daily_cap=config.usage.global_daily_ai_cap,
        )
        self.sweep = SchedulerSweep(
            store,
            self.engine,
            self.clock,
            batch_size=config.scheduler.batch_size,
        )

    @classmethod
    def from_config(
        cls,
        config: RemindrConfig | None = None,
        *,
        store: DocumentStore | None = None,
        generator: TextGenerator | None = None,
        clock: Clock | None = None,
    ) -> Remindr:
        """Build the application; the store comes from ``storage`` unless given.

        Raises:
            ConfigurationError: ``storage.backend`` is ``sql`` and no database URL is set.
        """
        cfg = config or RemindrConfig()
        db_engine: AsyncEngine | None = None
        if store is None:
            if cfg.storage.backend == "memory":
                store = InMemoryDocumentStore()
            else:
                from remindr.db.engine import create_engine
                from remindr.store.sql import SQLDocumentStore

                db_engine = create_engine(cfg.storage.resolved_database_url())
                store = SQLDocumentStore.from_engine(db_engine)
        logger.info(
            "remindr_initialized backend=%s model=%s mock_mode=%s",
            cfg.storage.backend,
            cfg.integrations.llm.model,
            cfg.integrations.llm.mock_mode,
        )
        return cls(
            cfg,
            store,
            generator or generator_from_config(cfg.integrations.llm),
            clock,
            engine=db_engine,
        )

    async def run_sweep(self) -> SweepResult:
        return await self.sweep.run_sweep()

    async def run_one(self, intent_ref: str | DocumentSnapshot) -> ExecutionOutcome:
        return await self.engine.run_one(intent_ref)

    async def list_executions(self, owner_id: str, *, limit: int = 20) -> list[ExecutionRecord]:
        return await list_executions(self.store, owner_id, limit=limit)

    async def cleanup(self, ttl_days: int | None = None) -> CleanupResult:
        return await cleanup_expired_executions(
            self.store,
            self.clock,
            ttl_days=ttl_days or self.config.retention.execution_ttl_days,
        )

    async def create_schema(self) -> None:
        """Create tables when backed by SQL; no-op otherwise."""
        if self._db_engine is None:
            return
        from remindr.db.engine import create_schema

        await create_schema(self._db_engine)

    async def aclose(self) -> None:
        if self._db_engine is not None:
            await self._db_engine.dispose()
            self._db_engine = None

    async def __aenter__(self) -> Remindr:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
