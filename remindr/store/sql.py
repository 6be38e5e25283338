"""SQL-backed document store (PostgreSQL via asyncpg, SQLite via aiosqlite).

Each document is one row keyed by its full path, with the body kept in a JSON
column. Collection-group queries use the ``collection`` column; field filters
compile to JSON element comparisons so filtering and ordering happen in SQL.
"""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, String, delete, func, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column

from remindr.db.base import Base
from remindr.db.engine import create_engine
from remindr.db.session import create_session_factory
from remindr.store.errors import DocumentExistsError, DocumentNotFoundError, StoreError
from remindr.store.memory import deep_merge, new_document_id
from remindr.store.protocols import (
    CollectionQuery,
    DocumentSnapshot,
    FieldFilter,
    collection_parts,
    document_parts,
)

_JSON = JSON().with_variant(JSONB(), "postgresql")


class DocumentModel(Base):
    """One stored document."""

    __tablename__ = "remindr_documents"
    __table_args__ = (
        Index("idx_remindr_documents_collection", "collection"),
        Index("idx_remindr_documents_parent", "parent"),
    )

    path: Mapped[str] = mapped_column(String(512), primary_key=True)
    parent: Mapped[str] = mapped_column(String(512), nullable=False)
    collection: Mapped[str] = mapped_column(String(128), nullable=False)
    data: Mapped[dict] = mapped_column(_JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


def _element(field_name: str, sample: Any) -> Any:
    """Typed JSON element accessor chosen from the comparison value."""
    element = DocumentModel.data[field_name]
    if isinstance(sample, bool):
        return element.as_boolean()
    if isinstance(sample, int):
        return element.as_integer()
    if isinstance(sample, float):
        return element.as_float()
    if isinstance(sample, str):
        return element.as_string()
    raise ValueError(f"Unsupported filter value type for {field_name!r}: {type(sample).__name__}")


def _condition(flt: FieldFilter) -> Any:
    column = _element(flt.field, flt.value)
    if flt.op == "==":
        return column == flt.value
    if flt.op == "!=":
        return column != flt.value
    if flt.op == "<":
        return column < flt.value
    if flt.op == "<=":
        return column <= flt.value
    if flt.op == ">":
        return column > flt.value
    if flt.op == ">=":
        return column >= flt.value
    raise ValueError(f"Unsupported filter operator: {flt.op!r}")


def _row(parts: list[str], data: dict[str, Any]) -> DocumentModel:
    return DocumentModel(
        path="/".join(parts),
        parent="/".join(parts[:-1]),
        collection=parts[-2],
        data=copy.deepcopy(data),
    )


class SQLDocumentStore:
    """SQLAlchemy implementation of :class:`DocumentStore`."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> SQLDocumentStore:
        return cls(create_session_factory(engine))

    @classmethod
    def from_url(cls, database_url: str | None = None) -> SQLDocumentStore:
        return cls.from_engine(create_engine(database_url))

    async def get(self, path: str) -> DocumentSnapshot | None:
        key = "/".join(document_parts(path))
        async with self._session_factory() as session:
            row = await session.get(DocumentModel, key)
            if row is None:
                return None
            return DocumentSnapshot(path=row.path, data=copy.deepcopy(row.data))

    async def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None:
        parts = document_parts(path)
        async with self._session_factory() as session, session.begin():
            row = await session.get(DocumentModel, "/".join(parts))
            if row is None:
                session.add(_row(parts, data))
            elif merge:
                row.data = deep_merge(row.data, copy.deepcopy(data))
            else:
                row.data = copy.deepcopy(data)

    async def update(self, path: str, data: dict[str, Any]) -> None:
        key = "/".join(document_parts(path))
        async with self._session_factory() as session, session.begin():
            row = await session.get(DocumentModel, key, with_for_update=True)
            if row is None:
                raise DocumentNotFoundError(key)
            row.data = {**row.data, **copy.deepcopy(data)}

    async def create(self, path: str, data: dict[str, Any]) -> None:
        parts = document_parts(path)
        try:
            async with self._session_factory() as session, session.begin():
                session.add(_row(parts, data))
        except IntegrityError as exc:
            raise DocumentExistsError("/".join(parts)) from exc

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        parent = collection_parts(collection)
        doc_id = new_document_id()
        async with self._session_factory() as session, session.begin():
            session.add(_row([*parent, doc_id], data))
        return doc_id

    async def delete(self, path: str) -> None:
        key = "/".join(document_parts(path))
        async with self._session_factory() as session, session.begin():
            await session.execute(delete(DocumentModel).where(DocumentModel.path == key))

    async def query(self, query: CollectionQuery) -> list[DocumentSnapshot]:
        if query.group:
            stmt = select(DocumentModel).where(DocumentModel.collection == query.collection.strip("/"))
        else:
            parent = "/".join(collection_parts(query.collection))
            stmt = select(DocumentModel).where(DocumentModel.parent == parent)
        for flt in query.filters:
            stmt = stmt.where(_condition(flt))
        if query.order_by is not None:
            sample = next((f.value for f in query.filters if f.field == query.order_by), "")
            order_column = _element(query.order_by, sample)
            stmt = stmt.where(order_column.is_not(None))
            stmt = stmt.order_by(order_column.desc() if query.descending else order_column.asc())
        if query.limit is not None:
            stmt = stmt.limit(max(0, query.limit))
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [
                DocumentSnapshot(path=row.path, data=copy.deepcopy(row.data))
                for row in result.scalars().all()
            ]

    async def increment(self, path: str, field: str, delta: int = 1) -> None:
        parts = document_parts(path)
        # A concurrent first insert loses the primary-key race once; the
        # second pass then finds the row and takes the row lock.
        for _ in range(2):
            try:
                await self._increment_once(parts, field, int(delta))
                return
            except IntegrityError:
                continue
        raise StoreError(f"Increment failed after insert conflict: {'/'.join(parts)}")

    async def _increment_once(self, parts: list[str], field: str, delta: int) -> None:
        key = "/".join(parts)
        async with self._session_factory() as session, session.begin():
            stmt = select(DocumentModel).where(DocumentModel.path == key).with_for_update()
            row = await session.scalar(stmt)
            if row is None:
                session.add(_row(parts, {field: delta}))
                return
            data = dict(row.data)
            current = data.get(field, 0)
            if not isinstance(current, int) or isinstance(current, bool):
                current = 0
            data[field] = current + delta
            row.data = data
