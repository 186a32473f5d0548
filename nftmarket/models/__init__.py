"""nftmarket data models — all Pydantic v2, all frozen (immutable)."""

from nftmarket.models.events import (
    EVENT_TYPE_MAP,
    EarningsWithdrawn,
    EventKind,
    ItemBought,
    ItemListed,
    ListingCanceled,
    MarketEvent,
)
from nftmarket.models.listing import UINT256_MAX, ZERO_ADDRESS, Listing, ListingKey

__all__ = [
    # listing
    "Listing",
    "ListingKey",
    "UINT256_MAX",
    "ZERO_ADDRESS",
    # events
    "EventKind",
    "MarketEvent",
    "ItemListed",
    "ItemBought",
    "ListingCanceled",
    "EarningsWithdrawn",
    "EVENT_TYPE_MAP",
]
