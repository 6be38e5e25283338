"""Async engine creation for the SQL document store."""

import os

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from remindr.db.exceptions import ConfigurationError

DATABASE_URL_ENV = "REMINDR_DATABASE_URL"

# Accepted URL schemes and the async driver each one runs on.
_ASYNC_SCHEMES = {
    "postgresql": "postgresql+asyncpg",
    "postgresql+asyncpg": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
    "sqlite+aiosqlite": "sqlite+aiosqlite",
}


def resolve_database_url(database_url: str | None = None) -> str:
    """Return the async-driver URL from the argument or ``REMINDR_DATABASE_URL``.

    Raises:
        ConfigurationError: no URL configured, or not PostgreSQL / SQLite.
    """
    raw = (database_url or "").strip() or os.environ.get(DATABASE_URL_ENV, "").strip()
    if not raw:
        raise ConfigurationError(f"Database URL not set. Set {DATABASE_URL_ENV} or pass database_url.")
    scheme, sep, rest = raw.partition("://")
    driver = _ASYNC_SCHEMES.get(scheme.lower()) if sep else None
    if driver is None:
        # The URL itself may hold credentials; only the scheme is reported.
        raise ConfigurationError(
            f"Database URL must be PostgreSQL (postgresql://) or SQLite (sqlite://), got scheme {scheme!r}."
        )
    return f"{driver}://{rest}"


def create_engine(
    database_url: str | None = None,
    *,
    pool_size: int = 10,
    max_overflow: int = 5,
    pool_recycle: int = 1800,
    echo: bool = False,
) -> AsyncEngine:
    """Create an async engine for the document store.

    Pool sizing applies to PostgreSQL only; SQLite uses SQLAlchemy's default
    pool for aiosqlite.

    Raises:
        ConfigurationError: URL missing or invalid.
    """
    url = resolve_database_url(database_url)
    if url.startswith("sqlite+aiosqlite://"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(
        url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_recycle=pool_recycle,
        pool_pre_ping=True,
        echo=echo,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create the document table and its indexes if they do not exist yet."""
    # Registers DocumentModel on Base.metadata.
    import remindr.store.sql  # noqa: F401
    from remindr.db.base import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
