"""``nftmarket demo`` — run a complete marketplace session with sample data.

Deploys a reference payment token, a reference collection, and a
marketplace on a fresh chain, then lists, buys, and withdraws, persisting
every committed event to the event log.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nftmarket.assets.reference import ReferenceCollectible, ReferenceToken
from nftmarket.config import settings
from nftmarket.core.chain import Chain
from nftmarket.core.engine import NftMarketplace
from nftmarket.core.event_log import EventLog
from nftmarket.core.hasher import derive_address

console = Console()


def demo_cmd(
    price: int = typer.Option(
        1_000_000_000, "--price", "-p", min=1, help="Listing price in token units."
    ),
    fee_bps: int = typer.Option(
        settings.fee_bps, "--fee-bps", min=0, max=255, help="Platform fee in basis points."
    ),
    event_log: Path = typer.Option(
        settings.event_log_path, "--log", "-l", help="Path to the event log database."
    ),
) -> None:
    """Run list -> buy -> withdraw against in-memory reference assets."""
    chain = Chain(name="demo")
    log = EventLog(event_log)
    chain.subscribe(log.append)

    seller = derive_address("demo:seller")
    buyer = derive_address("demo:buyer")
    operator = derive_address("demo:operator")

    usdc = ReferenceToken("USDC", decimals=6)
    chain.deploy(usdc)
    art = ReferenceCollectible("Demo Collection")
    chain.deploy(art)
    market = NftMarketplace(chain, [usdc.address], fee_bps=fee_bps, operator=operator)

    token_id = 1
    art.mint(seller, token_id)
    art.approve(seller, market.address, token_id)
    usdc.mint(buyer, price)
    usdc.approve(buyer, market.address, price)

    market.list_item(seller, art.address, token_id, price, usdc.address)
    market.buy_item(buyer, art.address, token_id)
    fee = market.get_platform_earnings(usdc.address)
    seller_paid = market.withdraw_earnings(seller, usdc.address)
    if fee:
        market.withdraw_platform_earnings(operator, usdc.address)

    console.print()
    console.print(
        Panel(
            "\n".join([
                "[bold green]Demo sale settled.[/bold green]",
                "",
                f"[bold]Marketplace:[/bold]  {market.address}",
                f"[bold]Collection:[/bold]   {art.address}",
                f"[bold]Payment:[/bold]      {usdc.address} (USDC)",
                f"[bold]Price:[/bold]        {price}",
                f"[bold]Fee:[/bold]          {fee} ({fee_bps} bps)",
                f"[bold]Seller paid:[/bold]  {seller_paid}",
                f"[bold]New owner:[/bold]    {art.owner_of(token_id)}",
                "",
                f"[dim]Events written to {event_log}[/dim]",
            ]),
            title="[bold]nftmarket[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )

    table = Table(title="Committed events")
    table.add_column("#", justify="right")
    table.add_column("Kind", style="cyan", no_wrap=True)
    table.add_column("Details")
    for i, event in enumerate(chain.events, start=1):
        details = event.model_dump(
            mode="json", exclude={"event_id", "kind", "contract", "timestamp_utc"}
        )
        table.add_row(str(i), event.kind.value, ", ".join(f"{k}={v}" for k, v in details.items()))
    console.print(table)
