"""Asset capabilities consumed by the marketplace and in-memory references."""

from nftmarket.assets.interfaces import FungibleAsset, NonFungibleAsset
from nftmarket.assets.reference import AssetError, ReferenceCollectible, ReferenceToken

__all__ = [
    "FungibleAsset",
    "NonFungibleAsset",
    "AssetError",
    "ReferenceToken",
    "ReferenceCollectible",
]
