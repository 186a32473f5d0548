"""Tests for NftMarketplace listing and cancellation."""

from __future__ import annotations

import logging

import pytest

from nftmarket.core.chain import Chain
from nftmarket.core.engine import NftMarketplace
from nftmarket.core.errors import (
    AlreadyListedError,
    AssetNotSupportedError,
    NftNotApprovedForSpendingError,
    NoSupportedAssetsProvidedError,
    NotListedError,
    NotOwnerError,
    PriceBelowOrEqZeroError,
    UnknownContractError,
)
from nftmarket.models.events import ItemListed, ListingCanceled
from nftmarket.models.listing import ZERO_ADDRESS


class TestConstruction:
    def test_empty_asset_list_rejected(self, chain: Chain):
        with pytest.raises(NoSupportedAssetsProvidedError):
            NftMarketplace(chain, [], fee_bps=25, operator="0xops")

    def test_duplicate_assets_collapse(self, chain: Chain):
        market = NftMarketplace(chain, ["0xa", "0xa", "0xb"], fee_bps=0, operator="0xops")
        assert market.supported_assets == ("0xa", "0xb")

    @pytest.mark.parametrize("fee_bps", [-1, 256])
    def test_fee_out_of_range_rejected(self, chain: Chain, fee_bps: int):
        with pytest.raises(ValueError, match="fee_bps"):
            NftMarketplace(chain, ["0xa"], fee_bps=fee_bps, operator="0xops")

    def test_deployed_on_chain(self, chain: Chain, market: NftMarketplace):
        assert market.address.startswith("0x")
        assert chain.at(market.address) is market
        assert market.fee_bps == 25

    def test_explicit_address(self, chain: Chain):
        market = NftMarketplace(
            chain, ["0xa"], fee_bps=0, operator="0xops", address="0xmarket"
        )
        assert market.address == "0xmarket"


class TestListItem:
    def test_listing_round_trip(self, market, art, usdc, listed, accounts):
        listed(price=1234)
        listing = market.get_listing(art.address, 1)
        assert listing.seller == accounts.seller
        assert listing.payment_asset == usdc.address
        assert listing.token_id == 1
        assert listing.price == 1234
        assert listing.nft_contract == art.address
        assert listing.is_active

    def test_listing_is_non_custodial(self, market, art, listed, accounts):
        listed()
        assert art.owner_of(1) == accounts.seller

    def test_emits_item_listed(self, chain, market, art, usdc, listed, accounts):
        listed(price=500)
        assert len(chain.events) == 1
        event = chain.events[0]
        assert isinstance(event, ItemListed)
        assert event.seller == accounts.seller
        assert event.nft_contract == art.address
        assert event.token_id == 1
        assert event.price == 500
        assert event.payment_asset == usdc.address
        assert event.contract == market.address

    def test_zero_price_rejected(self, market, art, usdc, accounts):
        art.approve(accounts.seller, market.address, 1)
        with pytest.raises(PriceBelowOrEqZeroError):
            market.list_item(accounts.seller, art.address, 1, 0, usdc.address)

    def test_not_approved_rejected(self, market, art, usdc, accounts):
        with pytest.raises(NftNotApprovedForSpendingError) as exc_info:
            market.list_item(accounts.seller, art.address, 1, 100, usdc.address)
        assert exc_info.value.token_id == 1

    def test_approved_for_someone_else_rejected(self, market, art, usdc, accounts):
        art.approve(accounts.seller, accounts.stranger, 1)
        with pytest.raises(NftNotApprovedForSpendingError):
            market.list_item(accounts.seller, art.address, 1, 100, usdc.address)

    def test_non_owner_rejected(self, market, art, usdc, accounts):
        art.approve(accounts.seller, market.address, 1)
        with pytest.raises(NotOwnerError) as exc_info:
            market.list_item(accounts.stranger, art.address, 1, 100, usdc.address)
        assert exc_info.value.caller == accounts.stranger

    def test_unsupported_asset_rejected(self, market, art, weth, accounts):
        art.approve(accounts.seller, market.address, 1)
        with pytest.raises(AssetNotSupportedError) as exc_info:
            market.list_item(accounts.seller, art.address, 1, 100, weth.address)
        assert exc_info.value.asset == weth.address

    def test_double_list_by_same_seller_rejected(self, market, art, usdc, listed, accounts):
        listed()
        with pytest.raises(AlreadyListedError):
            market.list_item(accounts.seller, art.address, 1, 777, usdc.address)
        assert market.get_listing(art.address, 1).price != 777

    def test_new_owner_replaces_stale_listing(self, market, art, usdc, listed, accounts):
        # The previous owner moved the token away without canceling.
        listed()
        art.safe_transfer_from(accounts.seller, accounts.seller, accounts.stranger, 1)
        art.approve(accounts.stranger, market.address, 1)

        market.list_item(accounts.stranger, art.address, 1, 42, usdc.address)

        listing = market.get_listing(art.address, 1)
        assert listing.seller == accounts.stranger
        assert listing.price == 42

    def test_owner_check_precedes_price_check(self, market, art, usdc, accounts):
        with pytest.raises(NotOwnerError):
            market.list_item(accounts.stranger, art.address, 1, 0, usdc.address)

    def test_unknown_nft_contract(self, market, usdc, accounts):
        with pytest.raises(UnknownContractError):
            market.list_item(accounts.seller, "0xnowhere", 1, 100, usdc.address)

    def test_failed_listing_emits_nothing(self, chain, market, art, usdc, accounts):
        with pytest.raises(NftNotApprovedForSpendingError):
            market.list_item(accounts.seller, art.address, 1, 100, usdc.address)
        assert chain.events == []
        assert not market.get_listing(art.address, 1).is_active


class TestCancelListing:
    def test_cancel_deletes_listing(self, chain, market, art, listed, accounts):
        listed()
        market.cancel_listing(accounts.seller, art.address, 1)

        listing = market.get_listing(art.address, 1)
        assert not listing.is_active
        assert listing.seller == ZERO_ADDRESS
        assert isinstance(chain.events[-1], ListingCanceled)
        assert chain.events[-1].seller == accounts.seller

    def test_cancel_by_non_owner_rejected(self, market, art, listed, accounts):
        listed()
        with pytest.raises(NotOwnerError):
            market.cancel_listing(accounts.stranger, art.address, 1)
        assert market.get_listing(art.address, 1).is_active

    def test_cancel_unlisted_rejected(self, market, art, accounts):
        with pytest.raises(NotListedError):
            market.cancel_listing(accounts.seller, art.address, 1)

    def test_relist_after_cancel(self, market, art, usdc, listed, accounts):
        listed()
        market.cancel_listing(accounts.seller, art.address, 1)
        market.list_item(accounts.seller, art.address, 1, 99, usdc.address)
        assert market.get_listing(art.address, 1).price == 99

    def test_active_listings(self, market, listed):
        listed(token_id=1)
        listed(token_id=2, price=200)
        assert [l.token_id for l in market.active_listings()] == [1, 2]


class TestRejectionLogging:
    def test_rejection_logged_before_raise(self, market, art, usdc, accounts, caplog):
        art.approve(accounts.seller, market.address, 1)
        with caplog.at_level(logging.WARNING, logger="nftmarket.core.engine"):
            with pytest.raises(PriceBelowOrEqZeroError):
                market.list_item(accounts.seller, art.address, 1, 0, usdc.address)
        assert "greater than zero" in caplog.text

    def test_unsupported_asset_logged(self, market, art, weth, accounts, caplog):
        art.approve(accounts.seller, market.address, 1)
        with caplog.at_level(logging.WARNING, logger="nftmarket.core.engine"):
            with pytest.raises(AssetNotSupportedError):
                market.list_item(accounts.seller, art.address, 1, 100, weth.address)
        assert weth.address in caplog.text

    def test_successful_listing_logs_no_warning(self, listed, caplog):
        with caplog.at_level(logging.WARNING, logger="nftmarket.core.engine"):
            listed()
        assert [r for r in caplog.records if r.levelno >= logging.WARNING] == []
