"""Listing model — the single record kept per (nft_contract, token_id).

A listing is active while ``price > 0``.  The all-zero record returned by
``Listing.absent`` is the canonical "not listed" state; stores hand it back
instead of ``None`` so callers can test ``is_active`` uniformly.
"""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

UINT256_MAX = 2**256 - 1
ZERO_ADDRESS = "0x" + "0" * 40


class ListingKey(NamedTuple):
    """Compound key identifying a listed item."""

    nft_contract: str
    token_id: int


class Listing(BaseModel):
    """A fixed-price offer to sell one non-fungible token.

    The seller keeps custody of the token until sale; the marketplace only
    holds a per-token approval.
    """

    model_config = ConfigDict(frozen=True)

    nft_contract: str
    token_id: int = Field(ge=0, le=UINT256_MAX)
    seller: str = ZERO_ADDRESS
    price: int = Field(default=0, ge=0, le=UINT256_MAX)
    payment_asset: str = ZERO_ADDRESS

    @classmethod
    def absent(cls, nft_contract: str, token_id: int) -> Listing:
        """Return the zero sentinel for a key with no active listing."""
        return cls(nft_contract=nft_contract, token_id=token_id)

    @property
    def key(self) -> ListingKey:
        return ListingKey(self.nft_contract, self.token_id)

    @property
    def is_active(self) -> bool:
        return self.price > 0
