"""Document store contract and implementations."""

from remindr.store.errors import DocumentExistsError, DocumentNotFoundError, InvalidPathError, StoreError
from remindr.store.memory import InMemoryDocumentStore
from remindr.store.protocols import CollectionQuery, DocumentSnapshot, DocumentStore, FieldFilter

__all__ = [
    "CollectionQuery",
    "DocumentExistsError",
    "DocumentNotFoundError",
    "DocumentSnapshot",
    "DocumentStore",
    "FieldFilter",
    "InMemoryDocumentStore",
    "InvalidPathError",
    "StoreError",
]
