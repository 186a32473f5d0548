"""Listing store — at most one listing per (nft_contract, token_id)."""

from __future__ import annotations

from nftmarket.models.listing import Listing, ListingKey


class ListingStore:
    """Keyed container of active listings owned by a marketplace.

    Lookups for keys without a listing return the zero sentinel from
    ``Listing.absent`` rather than ``None``.
    """

    def __init__(self) -> None:
        self._listings: dict[ListingKey, Listing] = {}

    def get(self, nft_contract: str, token_id: int) -> Listing:
        listing = self._listings.get(ListingKey(nft_contract, token_id))
        if listing is None:
            return Listing.absent(nft_contract, token_id)
        return listing

    def put(self, listing: Listing) -> None:
        if not listing.is_active:
            raise ValueError("Only listings with a positive price can be stored.")
        self._listings[listing.key] = listing

    def delete(self, nft_contract: str, token_id: int) -> None:
        self._listings.pop(ListingKey(nft_contract, token_id), None)

    def active(self) -> list[Listing]:
        """Return all stored listings sorted by key."""
        return [self._listings[k] for k in sorted(self._listings)]

    def __len__(self) -> int:
        return len(self._listings)

    # Listings are frozen, so a shallow copy of the mapping is a full snapshot.
    def snapshot(self) -> dict[ListingKey, Listing]:
        return dict(self._listings)

    def restore(self, snapshot: dict[ListingKey, Listing]) -> None:
        self._listings = dict(snapshot)
