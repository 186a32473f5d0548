"""Main Typer application — imports and registers all CLI commands.

Entry point: ``nftmarket`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from nftmarket.cli.commands.demo import demo_cmd
from nftmarket.cli.commands.events_cmd import events_cmd
from nftmarket.config import settings
from nftmarket.core.event_log import EventLog, EventLogIntegrityError

app = typer.Typer(
    name="nftmarket",
    help="nftmarket: fixed-price NFT marketplace with an escrowed earnings ledger.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        settings.log_level, "--log-level", help="Logging level (DEBUG, INFO, ...)."
    ),
) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=settings.debug)],
        force=True,
    )


# Register subcommands
app.command(name="demo", help="Run a scripted list/buy/withdraw session.")(demo_cmd)
app.command(name="events", help="Show the marketplace event log.")(events_cmd)


@app.command(name="verify", help="Verify the event log hash chain.")
def verify_cmd(
    event_log: Path = typer.Option(
        settings.event_log_path, "--log", "-l", help="Path to the event log database."
    ),
) -> None:
    """Verify the event log hash chain; exit 1 when it is broken."""
    console = Console()
    if not event_log.exists():
        console.print(f"[bold red]Event log not found:[/bold red] {event_log}")
        raise typer.Exit(code=1)

    log = EventLog(event_log)
    try:
        log.verify_chain()
    except EventLogIntegrityError as exc:
        console.print(f"[bold red]Chain verification failed:[/bold red] {exc}")
        raise typer.Exit(code=1)
    console.print(f"[bold green]Chain valid[/bold green] ({log.count()} record(s)).")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
