"""CLI tools for remindr: init, sweep, run-one, executions, cleanup, db."""

import sys
from importlib import metadata

import typer

from remindr.cli.db import db_app
from remindr.cli.init_config import init_config_command
from remindr.cli.run import cleanup_command, executions_command, run_one_command, sweep_command

app = typer.Typer(
    name="remindr",
    help="remindr: scheduled reminder execution engine.",
)
app.add_typer(db_app, name="db")

_CONFIG_HELP = "Config file path (default: REMINDR_CONFIG or ./remindr.yaml)"
_LOG_LEVEL_HELP = "Override logging.level (DEBUG, INFO, WARNING, ERROR)"


def _version_callback(value: bool) -> None:
    if not value:
        return
    try:
        version = metadata.version("remindr")
    except metadata.PackageNotFoundError:
        version = "unknown"
    typer.echo(f"remindr {version}")
    raise typer.Exit(0)


@app.callback()
def root(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """remindr command line."""


@app.command("init")
def init_command(
    path: str = typer.Option(".", "--path", help="Output directory"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing remindr.yaml"),
) -> None:
    """Generate default remindr.yaml in target directory."""
    try:
        init_config_command(path=path, force=force)
    except FileExistsError as e:
        typer.echo(f"Error: {e}. Use --force to overwrite.", err=True)
        raise typer.Exit(1) from e


@app.command("sweep")
def sweep(
    config: str = typer.Option("", "--config", help=_CONFIG_HELP),
    log_level: str = typer.Option("", "--log-level", help=_LOG_LEVEL_HELP),
) -> None:
    """Run one sweep over due reminders and print the counts as JSON."""
    sweep_command(config=config, log_level=log_level)


@app.command("run-one")
def run_one(
    path: str = typer.Argument(..., help="Reminder path, users/{uid}/reminders/{id}"),
    config: str = typer.Option("", "--config", help=_CONFIG_HELP),
    log_level: str = typer.Option("", "--log-level", help=_LOG_LEVEL_HELP),
) -> None:
    """Execute a single reminder and print its outcome as JSON."""
    run_one_command(path, config=config, log_level=log_level)


@app.command("executions")
def executions(
    uid: str = typer.Argument(..., help="User id"),
    limit: int = typer.Option(20, "--limit", help="Maximum records to show"),
    config: str = typer.Option("", "--config", help=_CONFIG_HELP),
    log_level: str = typer.Option("", "--log-level", help=_LOG_LEVEL_HELP),
) -> None:
    """Show a user's execution history, newest first."""
    executions_command(uid, limit=limit, config=config, log_level=log_level)


@app.command("cleanup")
def cleanup(
    ttl_days: int = typer.Option(0, "--ttl-days", help="Override retention.execution_ttl_days (0 keeps it)"),
    config: str = typer.Option("", "--config", help=_CONFIG_HELP),
    log_level: str = typer.Option("", "--log-level", help=_LOG_LEVEL_HELP),
) -> None:
    """Delete execution records older than the retention window."""
    cleanup_command(ttl_days=ttl_days, config=config, log_level=log_level)


def main() -> None:
    """CLI entry point."""
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(130)
