"""remindr db: schema management for the SQL document store."""

from __future__ import annotations

import asyncio
import os

import typer

from remindr.db.engine import DATABASE_URL_ENV, create_engine, create_schema
from remindr.db.exceptions import ConfigurationError

db_app = typer.Typer(name="db", help="Database operations for the SQL document store.")


async def _init_impl(url: str) -> None:
    engine = create_engine(url)
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()


@db_app.command("init")
def init_command(
    database_url: str = typer.Option(
        "",
        "--database-url",
        help=f"Database URL (default: {DATABASE_URL_ENV}).",
    ),
) -> None:
    """Create the document table and its indexes if they do not exist."""
    url = database_url.strip() or os.environ.get(DATABASE_URL_ENV, "").strip()
    if not url:
        typer.echo(f"Error: Set {DATABASE_URL_ENV} or pass --database-url.", err=True)
        raise typer.Exit(2)
    try:
        asyncio.run(_init_impl(url))
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from e
    typer.echo("Schema ready: remindr_documents")
