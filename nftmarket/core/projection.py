"""Read model of marketplace activity rebuilt from the event log.

The projection is a pure function of the log.  It does not compute truth;
it replays it.  Each ``snapshot()`` re-reads the log.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from nftmarket.core.event_log import EventLog, EventLogIntegrityError
from nftmarket.models.events import (
    EarningsWithdrawn,
    ItemBought,
    ItemListed,
    ListingCanceled,
)
from nftmarket.models.listing import Listing


class MarketSnapshot(BaseModel):
    """Point-in-time view of a marketplace as seen by an indexer."""

    model_config = ConfigDict(frozen=True)

    event_count: int = 0
    active_listings: list[Listing] = Field(default_factory=list)
    sales_count: int = 0
    volume_by_asset: dict[str, int] = Field(default_factory=dict)
    withdrawn_by_asset: dict[str, int] = Field(default_factory=dict)
    chain_valid: bool = True


class MarketProjection:
    """Replays ``EventLog`` records into a ``MarketSnapshot``.

    Parameters
    ----------
    event_log:
        The log to read from.
    contract:
        Optional marketplace address; when set, only its events are replayed.
    """

    def __init__(self, event_log: EventLog, contract: str | None = None) -> None:
        self._log = event_log
        self._contract = contract

    def snapshot(self) -> MarketSnapshot:
        listings: dict[tuple[str, int], Listing] = {}
        volume: dict[str, int] = {}
        withdrawn: dict[str, int] = {}
        sales = 0

        records = self._log.get_events(contract=self._contract)
        for record in records:
            event = EventLog.decode(record)
            if isinstance(event, ItemListed):
                listings[(event.nft_contract, event.token_id)] = Listing(
                    nft_contract=event.nft_contract,
                    token_id=event.token_id,
                    seller=event.seller,
                    price=event.price,
                    payment_asset=event.payment_asset,
                )
            elif isinstance(event, ItemBought):
                listings.pop((event.nft_contract, event.token_id), None)
                sales += 1
                volume[event.payment_asset] = (
                    volume.get(event.payment_asset, 0) + event.price
                )
            elif isinstance(event, ListingCanceled):
                listings.pop((event.nft_contract, event.token_id), None)
            elif isinstance(event, EarningsWithdrawn):
                withdrawn[event.asset] = withdrawn.get(event.asset, 0) + event.amount

        try:
            chain_valid = self._log.verify_chain()
        except EventLogIntegrityError:
            chain_valid = False

        return MarketSnapshot(
            event_count=len(records),
            active_listings=[listings[k] for k in sorted(listings)],
            sales_count=sales,
            volume_by_asset=volume,
            withdrawn_by_asset=withdrawn,
            chain_valid=chain_valid,
        )
