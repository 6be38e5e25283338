"""Document store exceptions."""


class StoreError(Exception):
    """Base exception for document store operations."""


class DocumentNotFoundError(StoreError):
    """Raised when an update targets a document that does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Document not found: {path}")


class DocumentExistsError(StoreError):
    """Raised when a create-only write lands on an existing document."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Document already exists: {path}")


class InvalidPathError(StoreError, ValueError):
    """Raised when a document or collection path is malformed."""
