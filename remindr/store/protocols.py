"""Document store contract shared by the engine and store implementations."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from remindr.store.errors import InvalidPathError

FilterOp = Literal["==", "!=", "<", "<=", ">", ">="]


def split_path(path: str) -> list[str]:
    """Split a slash-separated store path, rejecting empty segments."""
    if not isinstance(path, str) or not path.strip():
        raise InvalidPathError("path must be a non-empty string")
    parts = path.strip().strip("/").split("/")
    if any(not part for part in parts):
        raise InvalidPathError(f"path has empty segments: {path!r}")
    return parts


def document_parts(path: str) -> list[str]:
    """Split a document path; documents live at even segment counts."""
    parts = split_path(path)
    if len(parts) % 2 != 0:
        raise InvalidPathError(f"not a document path: {path!r}")
    return parts


def collection_parts(path: str) -> list[str]:
    """Split a collection path; collections live at odd segment counts."""
    parts = split_path(path)
    if len(parts) % 2 != 1:
        raise InvalidPathError(f"not a collection path: {path!r}")
    return parts


@dataclass(slots=True)
class DocumentSnapshot:
    """Point-in-time copy of one stored document."""

    path: str
    data: dict[str, Any]

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def parent(self) -> str:
        """Path of the collection holding this document."""
        return self.path.rsplit("/", 1)[0]

    def get(self, field_name: str, default: Any = None) -> Any:
        return self.data.get(field_name, default)


@dataclass(frozen=True, slots=True)
class FieldFilter:
    """Single top-level field comparison."""

    field: str
    op: FilterOp
    value: Any


@dataclass(frozen=True, slots=True)
class CollectionQuery:
    """Query over one collection, or over every collection with a given id.

    With ``group=True`` the ``collection`` is a collection id (``"reminders"``)
    matched at any depth; otherwise it is a full collection path
    (``"users/u1/executions"``). Documents missing a filtered or ordered field
    never match.
    """

    collection: str
    filters: Sequence[FieldFilter] = field(default_factory=tuple)
    order_by: str | None = None
    descending: bool = False
    limit: int | None = None
    group: bool = False


class DocumentStore(Protocol):
    """Hierarchical document store consumed by the engine."""

    async def get(self, path: str) -> DocumentSnapshot | None:
        """Return the document at path, or None when absent."""

    async def set(self, path: str, data: dict[str, Any], *, merge: bool = False) -> None:
        """Write a document; merge=True deep-merges into an existing one."""

    async def update(self, path: str, data: dict[str, Any]) -> None:
        """Replace top-level fields of an existing document."""

    async def create(self, path: str, data: dict[str, Any]) -> None:
        """Write a document only if none exists at path."""

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        """Append a document under a generated id and return the id."""

    async def delete(self, path: str) -> None:
        """Delete a document; deleting an absent document is a no-op."""

    async def query(self, query: CollectionQuery) -> list[DocumentSnapshot]:
        """Run a filtered, ordered, bounded collection query."""

    async def increment(self, path: str, field: str, delta: int = 1) -> None:
        """Atomically add delta to an integer field, creating the document."""
