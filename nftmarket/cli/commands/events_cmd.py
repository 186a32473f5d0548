"""``nftmarket events`` — show the marketplace event log.

Displays committed events in append order with a projection summary of
active listings, sales volume, and withdrawals.  Optionally verifies the
hash chain first.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from nftmarket.config import settings
from nftmarket.core.event_log import EventLog, EventLogIntegrityError
from nftmarket.core.projection import MarketProjection
from nftmarket.models.events import EventKind

console = Console()


def events_cmd(
    kind: str = typer.Option(
        None, "--kind", "-k", help="Only show events of this kind (e.g. item_bought)."
    ),
    verify_chain: bool = typer.Option(
        False, "--verify-chain", "-V", help="Verify the hash chain before displaying."
    ),
    event_log: Path = typer.Option(
        settings.event_log_path, "--log", "-l", help="Path to the event log database."
    ),
) -> None:
    """Show committed marketplace events and a summary projection."""
    if not event_log.exists():
        console.print(f"[bold red]Event log not found:[/bold red] {event_log}")
        console.print("[dim]Create one first with: nftmarket demo[/dim]")
        raise typer.Exit(code=1)

    try:
        kind_filter = EventKind(kind) if kind else None
    except ValueError:
        valid = ", ".join(k.value for k in EventKind)
        console.print(f"[bold red]Unknown event kind:[/bold red] {kind} (expected one of {valid})")
        raise typer.Exit(code=2)

    log = EventLog(event_log)

    if verify_chain:
        console.print("[bold cyan]Verifying hash chain...[/bold cyan]")
        try:
            log.verify_chain()
            console.print("[bold green]Chain valid.[/bold green]")
        except EventLogIntegrityError as exc:
            console.print(f"[bold red]Chain verification failed:[/bold red] {exc}")
            raise typer.Exit(code=1)
        console.print()

    records = log.get_events(kind=kind_filter)
    if not records:
        console.print("[dim]No events recorded.[/dim]")
        return

    table = Table(title="Event log")
    table.add_column("Seq", justify="right")
    table.add_column("Kind", style="cyan", no_wrap=True)
    table.add_column("Contract", style="dim")
    table.add_column("Payload")
    table.add_column("Hash", style="green", no_wrap=True)
    for record in records:
        payload = ", ".join(f"{k}={v}" for k, v in sorted(record.payload.items()))
        table.add_row(
            str(record.sequence),
            record.kind.value,
            record.contract[:12] + "...",
            payload,
            record.record_hash[:12],
        )
    console.print(table)

    snapshot = MarketProjection(log).snapshot()
    console.print(
        f"[bold]Active listings:[/bold] {len(snapshot.active_listings)}  "
        f"[bold]Sales:[/bold] {snapshot.sales_count}  "
        f"[bold]Volume:[/bold] {snapshot.volume_by_asset}  "
        f"[bold]Withdrawn:[/bold] {snapshot.withdrawn_by_asset}"
    )
