"""Execution commands: sweep, run-one, executions, cleanup."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from remindr.app import Remindr
from remindr.config.loader import ConfigLoadError
from remindr.config.manager import ConfigManager
from remindr.config.models import RemindrConfig
from remindr.db.exceptions import ConfigurationError

T = TypeVar("T")


def configure_logging(config: RemindrConfig, level: str | None = None) -> None:
    """Configure the root logger from ``--log-level`` or ``logging.level``."""
    chosen = (level or config.logging.level or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, chosen, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _load_config(config: str) -> RemindrConfig:
    try:
        return ConfigManager.load(config or None).get()
    except (ConfigLoadError, ValueError) as e:
        typer.echo(f"Error: invalid configuration: {e}", err=True)
        raise typer.Exit(2) from e


def _with_app(config: str, log_level: str, action: Callable[[Remindr], Awaitable[T]]) -> T:
    cfg = _load_config(config)
    configure_logging(cfg, log_level or None)
    try:
        app = Remindr.from_config(cfg)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2) from e

    async def _run() -> T:
        async with app:
            return await action(app)

    return asyncio.run(_run())


def _echo_json(payload: dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def sweep_command(config: str = "", log_level: str = "") -> None:
    result = _with_app(config, log_level, lambda app: app.run_sweep())
    _echo_json(result.to_dict())


def run_one_command(path: str, config: str = "", log_level: str = "") -> None:
    normalized = path.strip().strip("/")
    if not normalized:
        raise typer.BadParameter("path must not be empty.")
    outcome = _with_app(config, log_level, lambda app: app.run_one(normalized))
    _echo_json(outcome.to_dict())
    if outcome.failed:
        raise typer.Exit(1)


def executions_command(uid: str, limit: int = 20, config: str = "", log_level: str = "") -> None:
    if not uid.strip():
        raise typer.BadParameter("uid must not be empty.")
    if limit < 1:
        raise typer.BadParameter("limit must be >= 1.")
    records = _with_app(config, log_level, lambda app: app.list_executions(uid.strip(), limit=limit))
    table = Table(title=f"Executions for {uid.strip()}", show_header=True, header_style="bold")
    table.add_column("Scheduled (UTC)")
    table.add_column("Reminder", style="dim")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("AI")
    table.add_column("Draft")
    table.add_column("Reason")
    for record in records:
        table.add_row(
            record.scheduled_for_utc,
            record.reminder_id,
            record.reminder_type,
            record.status.value,
            "yes" if record.ai_used else "no",
            record.draft_id or "-",
            record.reason or "-",
        )
    Console().print(table)


def cleanup_command(ttl_days: int = 0, config: str = "", log_level: str = "") -> None:
    if ttl_days < 0:
        raise typer.BadParameter("ttl-days must be >= 0.")
    result = _with_app(config, log_level, lambda app: app.cleanup(ttl_days or None))
    _echo_json({"deleted": result.deleted, "cutoff": result.cutoff, "error": result.error})
    if not result.ok:
        raise typer.Exit(1)
