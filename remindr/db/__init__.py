"""remindr database layer: Base, engine, session, exceptions."""

from remindr.db.base import Base
from remindr.db.engine import DATABASE_URL_ENV, create_engine, create_schema, resolve_database_url
from remindr.db.exceptions import ConfigurationError, DatabaseError
from remindr.db.session import create_session_factory

__all__ = [
    "Base",
    "DATABASE_URL_ENV",
    "create_engine",
    "create_schema",
    "resolve_database_url",
    "create_session_factory",
    "DatabaseError",
    "ConfigurationError",
]
