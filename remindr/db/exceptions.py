"""Database-related exceptions for remindr.

Messages never include credentials from the database URL.
"""


class DatabaseError(Exception):
    """Base exception for database operations."""


class ConfigurationError(DatabaseError):
    """Raised when database configuration is invalid or missing."""
