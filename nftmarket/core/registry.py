"""Supported payment asset registry — fixed at construction."""

from __future__ import annotations

from collections.abc import Iterable

from nftmarket.core.errors import AssetNotSupportedError, NoSupportedAssetsProvidedError


class SupportedAssetRegistry:
    """Immutable set of fungible assets accepted as payment.

    There is deliberately no add or remove operation.

    Examples
    --------
    >>> registry = SupportedAssetRegistry(["0xusdc", "0xdai", "0xusdc"])
    >>> registry.assets
    ('0xdai', '0xusdc')
    >>> registry.is_supported("0xweth")
    False
    """

    def __init__(self, assets: Iterable[str]) -> None:
        members = frozenset(assets)
        if not members:
            raise NoSupportedAssetsProvidedError()
        self._assets = members

    @property
    def assets(self) -> tuple[str, ...]:
        return tuple(sorted(self._assets))

    def is_supported(self, asset: str) -> bool:
        return asset in self._assets

    def require(self, asset: str) -> None:
        """Raise ``AssetNotSupportedError`` unless *asset* is registered."""
        if asset not in self._assets:
            raise AssetNotSupportedError(asset)

    def __contains__(self, asset: object) -> bool:
        return asset in self._assets

    def __len__(self) -> int:
        return len(self._assets)
