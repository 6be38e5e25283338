"""In-memory document store for tests and local runs; no database required.

Documents are deep-copied on every read and write so callers never share
mutable state with the store. Data is lost on process exit.
"""

from __future__ import annotations

import copy
import operator
import uuid
from collections.abc import Callable
from typing import Any

from remindr.store.errors import DocumentExistsError, DocumentNotFoundError
from remindr.store.protocols import (
    CollectionQuery,
    DocumentSnapshot,
    FieldFilter,
    collection_parts,
    document_parts,
)

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def deep_merge(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = dict(base)
    for key, value in updates.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def matches(data: dict[str, Any], flt: FieldFilter) -> bool:
    """Evaluate one filter; missing fields and incomparable types never match."""
    if flt.field not in data:
        return False
    compare = _OPERATORS.get(flt.op)
    if compare is None:
        raise ValueError(f"Unsupported filter operator: {flt.op!r}")
    try:
        return bool(compare(data[flt.field], flt.value))
    except TypeError:
        return False


def new_document_id() -> str:
    return uuid.uuid4().hex[:20]


class InMemoryDocumentStore:
    """Dict-backed implementation of :class:`DocumentStore`."""

    def __init__(self) -> None:
        self._docs: dict[str, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._docs)

    def paths(self) -> list[str]:
        return sorted(self._docs)

    async def get(self, path: str) -> DocumentSnapshot | None:
        key = "/".join(document_parts(path))
        data = self._docs.get(key)
        if data is None:
            return None
        return DocumentSnapshot(path=key, data=copy.deepcopy(data))

    async def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None:
        key = "/".join(document_parts(path))
        incoming = copy.deepcopy(data)
        if merge and key in self._docs:
            self._docs[key] = deep_merge(self._docs[key], incoming)
        else:
            self._docs[key] = incoming

    async def update(self, path: str, data: dict[str, Any]) -> None:
        key = "/".join(document_parts(path))
        if key not in self._docs:
            raise DocumentNotFoundError(key)
        self._docs[key].update(copy.deepcopy(data))

    async def create(self, path: str, data: dict[str, Any]) -> None:
        key = "/".join(document_parts(path))
        if key in self._docs:
            raise DocumentExistsError(key)
        self._docs[key] = copy.deepcopy(data)

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        parent = "/".join(collection_parts(collection))
        doc_id = new_document_id()
        while f"{parent}/{doc_id}" in self._docs:
            doc_id = new_document_id()
        self._docs[f"{parent}/{doc_id}"] = copy.deepcopy(data)
        return doc_id

    async def delete(self, path: str) -> None:
        self._docs.pop("/".join(document_parts(path)), None)

    async def query(self, query: CollectionQuery) -> list[DocumentSnapshot]:
        if query.group:
            collection_id = query.collection.strip("/")

            def _in_scope(path: str) -> bool:
                parts = path.split("/")
                return len(parts) >= 2 and parts[-2] == collection_id
        else:
            parent = "/".join(collection_parts(query.collection))

            def _in_scope(path: str) -> bool:
                return path.rsplit("/", 1)[0] == parent

        results = [
            (path, data)
            for path, data in self._docs.items()
            if _in_scope(path) and all(matches(data, flt) for flt in query.filters)
        ]
        if query.order_by is not None:
            order_field = query.order_by
            results = [item for item in results if order_field in item[1]]
            results.sort(key=lambda item: item[1][order_field], reverse=query.descending)
        if query.limit is not None:
            results = results[: max(0, query.limit)]
        return [DocumentSnapshot(path=path, data=copy.deepcopy(data)) for path, data in results]

    async def increment(self, path: str, field: str, delta: int = 1) -> None:
        # No await between read and write: atomic within the event loop.
        key = "/".join(document_parts(path))
        doc = self._docs.setdefault(key, {})
        current = doc.get(field, 0)
        if not isinstance(current, int) or isinstance(current, bool):
            current = 0
        doc[field] = current + int(delta)
