"""Marketplace engine — listing, purchase, and settlement of NFTs.

Listings are non-custodial: a seller keeps the token and grants the
marketplace a per-token approval.  A purchase pulls the price from the
buyer into the marketplace, credits the seller's proceeds and the platform
fee to the internal earnings ledger, and then moves the token from seller
to buyer.  Proceeds leave the marketplace only through the two withdrawal
operations.

Every mutating operation runs inside a chain transaction, so a failure at
any step (including inside an external asset call) restores the listing
store, the earnings ledger, and every asset contract to their state before
the call.  Mutating operations also share a re-entrancy guard; withdrawals
additionally zero the ledger entry before paying out.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from nftmarket.assets.interfaces import FungibleAsset, NonFungibleAsset
from nftmarket.core.arithmetic import checked_mul, checked_sub
from nftmarket.core.chain import Chain, Contract
from nftmarket.core.earnings_ledger import EarningsLedger
from nftmarket.core.errors import (
    AllowanceNotMetError,
    AlreadyListedError,
    AssetNotSupportedError,
    MarketplaceError,
    NftNotApprovedForSpendingError,
    NoEarningsError,
    NotListedError,
    NotOwnerError,
    NotPlatformOperatorError,
    PriceBelowOrEqZeroError,
    PriceNotMetError,
    TransferFailedError,
)
from nftmarket.core.listing_store import ListingStore
from nftmarket.core.reentrancy import ReentrancyGuard, nonreentrant
from nftmarket.core.registry import SupportedAssetRegistry
from nftmarket.models.events import (
    EarningsWithdrawn,
    ItemBought,
    ItemListed,
    ListingCanceled,
)
from nftmarket.models.listing import Listing

if TYPE_CHECKING:
    from nftmarket.config import MarketSettings

logger = logging.getLogger(__name__)

# Sales at or below this price are fee-exempt.
FEE_THRESHOLD = 100_000_000
BPS_DENOMINATOR = 10_000
MAX_FEE_BPS = 255


class NftMarketplace(Contract):
    """Fixed-price marketplace for non-fungible tokens.

    Parameters
    ----------
    chain:
        The chain the marketplace is deployed on; asset contracts are
        resolved through it by address.
    supported_assets:
        Non-empty collection of fungible asset addresses accepted as
        payment.  Fixed for the lifetime of the marketplace.
    fee_bps:
        Platform fee in basis points, 0-255.
    operator:
        Address allowed to withdraw accrued platform fees.
    address:
        Optional explicit address; derived by the chain when omitted.

    Examples
    --------
    >>> chain = Chain()
    >>> market = NftMarketplace(chain, ["0xusdc"], fee_bps=25, operator="0xops")
    >>> market.quote_fee(10**9)
    2500000
    >>> market.quote_fee(9_999)
    0
    """

    def __init__(
        self,
        chain: Chain,
        supported_assets: Iterable[str],
        fee_bps: int,
        operator: str,
        address: str | None = None,
    ) -> None:
        self._registry = SupportedAssetRegistry(supported_assets)
        if not 0 <= fee_bps <= MAX_FEE_BPS:
            raise ValueError(
                f"fee_bps must be between 0 and {MAX_FEE_BPS}, got {fee_bps}."
            )
        self._fee_bps = fee_bps
        self._operator = operator
        self._chain = chain
        self._listings = ListingStore()
        self._earnings = EarningsLedger()
        self._guard = ReentrancyGuard(chain.lock)
        chain.deploy(self, address)
        logger.info(
            "Marketplace deployed at %s (fee %d bps, %d payment asset(s)).",
            self.address,
            fee_bps,
            len(self._registry),
        )

    @classmethod
    def from_settings(
        cls, chain: Chain, settings: MarketSettings, operator: str
    ) -> NftMarketplace:
        """Build a marketplace from environment-driven settings."""
        return cls(
            chain,
            supported_assets=settings.supported_assets,
            fee_bps=settings.fee_bps,
            operator=operator,
        )

    # -- Chain state ----------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        return {
            "listings": self._listings.snapshot(),
            "earnings": self._earnings.snapshot(),
        }

    def restore(self, snapshot: dict[str, Any]) -> None:
        self._listings.restore(snapshot["listings"])
        self._earnings.restore(snapshot["earnings"])

    # -- Listing --------------------------------------------------------------

    @nonreentrant
    def list_item(
        self,
        caller: str,
        nft_contract: str,
        token_id: int,
        price: int,
        payment_asset: str,
    ) -> Listing:
        """List *token_id* of *nft_contract* for *price* units of *payment_asset*.

        Raises
        ------
        AlreadyListedError
            If *caller* already has an active listing for this token.
        NotOwnerError
            If *caller* does not own the token.
        AssetNotSupportedError
            If *payment_asset* is not accepted by this marketplace.
        PriceBelowOrEqZeroError
            If *price* is zero.
        NftNotApprovedForSpendingError
            If the marketplace is not the token's approved operator.
        """
        with self._chain.transaction():
            existing = self._listings.get(nft_contract, token_id)
            # Only a re-listing by the same seller is rejected; a new owner
            # may replace a listing left behind by a previous owner.
            if existing.is_active and existing.seller == caller:
                raise self._reject(AlreadyListedError(nft_contract, token_id))

            nft = self._nft(nft_contract)
            self._require_owner(nft, token_id, caller)
            self._require_supported(payment_asset)
            if price <= 0:
                raise self._reject(PriceBelowOrEqZeroError())
            if nft.get_approved(token_id) != self.address:
                raise self._reject(NftNotApprovedForSpendingError(nft_contract, token_id))

            listing = Listing(
                nft_contract=nft_contract,
                token_id=token_id,
                seller=caller,
                price=price,
                payment_asset=payment_asset,
            )
            self._listings.put(listing)
            self._chain.emit(
                ItemListed(
                    contract=self.address,
                    seller=caller,
                    nft_contract=nft_contract,
                    token_id=token_id,
                    price=price,
                    payment_asset=payment_asset,
                )
            )

        logger.info(
            "Listed %s #%d by %s for %d %s.",
            nft_contract, token_id, caller, price, payment_asset,
        )
        return listing

    @nonreentrant
    def cancel_listing(self, caller: str, nft_contract: str, token_id: int) -> None:
        """Remove the active listing for a token owned by *caller*."""
        with self._chain.transaction():
            self._require_owner(self._nft(nft_contract), token_id, caller)
            self._require_listed(nft_contract, token_id)
            self._listings.delete(nft_contract, token_id)
            self._chain.emit(
                ListingCanceled(
                    contract=self.address,
                    seller=caller,
                    nft_contract=nft_contract,
                    token_id=token_id,
                )
            )

        logger.info("Canceled listing of %s #%d by %s.", nft_contract, token_id, caller)

    # -- Purchase -------------------------------------------------------------

    @nonreentrant
    def buy_item(self, caller: str, nft_contract: str, token_id: int) -> Listing:
        """Buy a listed token at its asking price and return the settled listing.

        Funds are pulled and credited before the token moves; if the token
        transfer fails the whole purchase is rolled back.

        Raises
        ------
        NotListedError
            If the token has no active listing.
        AllowanceNotMetError
            If *caller* has not allowed the marketplace to spend the price.
        PriceNotMetError
            If *caller*'s balance is below the price.
        TransferFailedError
            If the payment asset reports an unsuccessful transfer.
        ArithmeticOverflowError
            If the fee or a ledger balance exceeds uint256.
        """
        with self._chain.transaction():
            listing = self._require_listed(nft_contract, token_id)
            price = listing.price
            asset = listing.payment_asset
            token = self._fungible(asset)

            if token.allowance(caller, self.address) < price:
                raise self._reject(AllowanceNotMetError(nft_contract, token_id, price, asset))
            if token.balance_of(caller) < price:
                raise self._reject(PriceNotMetError(nft_contract, token_id, price, asset))

            if not token.transfer_from(self.address, caller, self.address, price):
                raise self._reject(TransferFailedError(asset, caller, self.address, price))

            fee = self.quote_fee(price)
            self._earnings.credit(listing.seller, asset, checked_sub(price, fee))
            self._earnings.credit(self.address, asset, fee)
            self._listings.delete(nft_contract, token_id)

            self._nft(nft_contract).safe_transfer_from(
                self.address, listing.seller, caller, token_id
            )
            self._chain.emit(
                ItemBought(
                    contract=self.address,
                    buyer=caller,
                    nft_contract=nft_contract,
                    token_id=token_id,
                    price=price,
                    payment_asset=asset,
                )
            )

        logger.info(
            "Sold %s #%d from %s to %s for %d %s (fee %d).",
            nft_contract, token_id, listing.seller, caller, price, asset, fee,
        )
        return listing

    def quote_fee(self, price: int) -> int:
        """Return the platform fee charged on a sale at *price*.

        Raises ``ArithmeticOverflowError`` when ``price * fee_bps`` exceeds
        uint256.
        """
        if price <= FEE_THRESHOLD:
            return 0
        return checked_mul(price, self._fee_bps) // BPS_DENOMINATOR

    # -- Withdrawals ----------------------------------------------------------

    @nonreentrant
    def withdraw_earnings(self, caller: str, asset: str) -> int:
        """Pay out *caller*'s accrued earnings in *asset* and return the amount."""
        return self._withdraw(caller, caller, asset)

    @nonreentrant
    def withdraw_platform_earnings(self, caller: str, asset: str) -> int:
        """Pay out accrued platform fees in *asset* to the operator."""
        if caller != self._operator:
            raise self._reject(NotPlatformOperatorError(caller))
        return self._withdraw(caller, self.address, asset)

    def _withdraw(self, caller: str, beneficiary: str, asset: str) -> int:
        with self._chain.transaction():
            self._require_supported(asset)
            if self._earnings.balance_of(beneficiary, asset) == 0:
                raise self._reject(NoEarningsError(asset))

            # Zero the entry before paying out.
            amount = self._earnings.clear(beneficiary, asset)
            if not self._fungible(asset).transfer(self.address, caller, amount):
                raise self._reject(TransferFailedError(asset, self.address, caller, amount))
            self._chain.emit(
                EarningsWithdrawn(
                    contract=self.address,
                    beneficiary=beneficiary,
                    recipient=caller,
                    asset=asset,
                    amount=amount,
                )
            )

        logger.info("Withdrew %d %s of %s earnings to %s.", amount, asset, beneficiary, caller)
        return amount

    # -- Read-only ------------------------------------------------------------

    def get_listing(self, nft_contract: str, token_id: int) -> Listing:
        """Return the listing for a token, or the zero sentinel when unlisted."""
        return self._listings.get(nft_contract, token_id)

    def get_earnings(self, beneficiary: str, asset: str) -> int:
        return self._earnings.balance_of(beneficiary, asset)

    def get_platform_earnings(self, asset: str) -> int:
        return self._earnings.balance_of(self.address, asset)

    def active_listings(self) -> list[Listing]:
        return self._listings.active()

    def is_supported(self, asset: str) -> bool:
        return self._registry.is_supported(asset)

    @property
    def supported_assets(self) -> tuple[str, ...]:
        return self._registry.assets

    @property
    def fee_bps(self) -> int:
        return self._fee_bps

    @property
    def operator(self) -> str:
        return self._operator

    # -- Helpers --------------------------------------------------------------

    def _nft(self, address: str) -> NonFungibleAsset:
        contract = self._chain.at(address)
        if not isinstance(contract, NonFungibleAsset):
            raise TypeError(f"Contract at {address} is not a non-fungible asset.")
        return contract

    def _fungible(self, address: str) -> FungibleAsset:
        contract = self._chain.at(address)
        if not isinstance(contract, FungibleAsset):
            raise TypeError(f"Contract at {address} is not a fungible asset.")
        return contract

    def _require_owner(self, nft: NonFungibleAsset, token_id: int, caller: str) -> None:
        if nft.owner_of(token_id) != caller:
            raise self._reject(NotOwnerError(nft.address, token_id, caller))

    def _require_listed(self, nft_contract: str, token_id: int) -> Listing:
        listing = self._listings.get(nft_contract, token_id)
        if not listing.is_active:
            raise self._reject(NotListedError(nft_contract, token_id))
        return listing

    def _require_supported(self, asset: str) -> None:
        if not self._registry.is_supported(asset):
            raise self._reject(AssetNotSupportedError(asset))

    @staticmethod
    def _reject(error: MarketplaceError) -> MarketplaceError:
        logger.warning("Rejected: %s", error)
        return error
