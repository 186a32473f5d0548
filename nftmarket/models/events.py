"""Marketplace domain events.

Events are emitted only when an operation commits.  Each one is a frozen
record of a single state transition, suitable for the append-only event
log and for off-chain indexers.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    """Discriminator for marketplace events."""

    ITEM_LISTED = "item_listed"
    ITEM_BOUGHT = "item_bought"
    LISTING_CANCELED = "listing_canceled"
    EARNINGS_WITHDRAWN = "earnings_withdrawn"


class MarketEvent(BaseModel):
    """Base for every event emitted by a marketplace contract."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: f"evt-{uuid.uuid4().hex[:12]}")
    kind: EventKind
    contract: str  # address of the emitting marketplace
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class ItemListed(MarketEvent):
    kind: Literal[EventKind.ITEM_LISTED] = EventKind.ITEM_LISTED
    seller: str
    nft_contract: str
    token_id: int
    price: int
    payment_asset: str


class ItemBought(MarketEvent):
    kind: Literal[EventKind.ITEM_BOUGHT] = EventKind.ITEM_BOUGHT
    buyer: str
    nft_contract: str
    token_id: int
    price: int
    payment_asset: str


class ListingCanceled(MarketEvent):
    kind: Literal[EventKind.LISTING_CANCELED] = EventKind.LISTING_CANCELED
    seller: str
    nft_contract: str
    token_id: int


class EarningsWithdrawn(MarketEvent):
    """Proceeds paid out of the earnings ledger.

    ``beneficiary`` is the ledger key that was debited; for platform fees it
    is the marketplace's own address while ``recipient`` is the operator.
    """

    kind: Literal[EventKind.EARNINGS_WITHDRAWN] = EventKind.EARNINGS_WITHDRAWN
    beneficiary: str
    recipient: str
    asset: str
    amount: int


EVENT_TYPE_MAP: dict[EventKind, type[MarketEvent]] = {
    EventKind.ITEM_LISTED: ItemListed,
    EventKind.ITEM_BOUGHT: ItemBought,
    EventKind.LISTING_CANCELED: ListingCanceled,
    EventKind.EARNINGS_WITHDRAWN: EarningsWithdrawn,
}
