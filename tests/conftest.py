"""Shared test fixtures for nftmarket."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import NamedTuple

import pytest

from nftmarket.assets.reference import ReferenceCollectible, ReferenceToken
from nftmarket.core.chain import Chain
from nftmarket.core.engine import NftMarketplace
from nftmarket.core.event_log import EventLog
from nftmarket.models.listing import Listing

SELLER = "0x" + "5e" * 20
BUYER = "0x" + "b0" * 20
OPERATOR = "0x" + "0b" * 20
STRANGER = "0x" + "57" * 20

DEFAULT_PRICE = 10**9 - 1  # above the fee threshold


class Accounts(NamedTuple):
    seller: str
    buyer: str
    operator: str
    stranger: str


@pytest.fixture
def accounts() -> Accounts:
    """Provide the well-known test account addresses."""
    return Accounts(SELLER, BUYER, OPERATOR, STRANGER)


@pytest.fixture
def chain() -> Chain:
    """Provide a fresh in-process chain."""
    return Chain(name="test")


@pytest.fixture
def usdc(chain: Chain) -> ReferenceToken:
    """A supported payment token."""
    token = ReferenceToken("USDC", decimals=6)
    chain.deploy(token)
    return token


@pytest.fixture
def weth(chain: Chain) -> ReferenceToken:
    """A deployed token that the marketplace does not accept."""
    token = ReferenceToken("WETH")
    chain.deploy(token)
    return token


@pytest.fixture
def art(chain: Chain) -> ReferenceCollectible:
    """A collection with token 1 minted to the seller."""
    collection = ReferenceCollectible("Test Art")
    chain.deploy(collection)
    collection.mint(SELLER, 1)
    return collection


@pytest.fixture
def market(chain: Chain, usdc: ReferenceToken) -> NftMarketplace:
    """Provide a marketplace accepting USDC with a 25 bps fee."""
    return NftMarketplace(chain, [usdc.address], fee_bps=25, operator=OPERATOR)


@pytest.fixture
def event_log(tmp_path: Path, chain: Chain) -> EventLog:
    """Provide an event log subscribed to the test chain."""
    log = EventLog(tmp_path / "events.db")
    chain.subscribe(log.append)
    return log


@pytest.fixture
def listed(
    market: NftMarketplace, art: ReferenceCollectible, usdc: ReferenceToken
) -> Callable[..., Listing]:
    """Factory fixture: approve and list a seller-owned token."""

    def _factory(
        token_id: int = 1,
        price: int = DEFAULT_PRICE,
        seller: str = SELLER,
    ) -> Listing:
        if not art.exists(token_id):
            art.mint(seller, token_id)
        art.approve(seller, market.address, token_id)
        return market.list_item(seller, art.address, token_id, price, usdc.address)

    return _factory


@pytest.fixture
def funded_buyer(
    market: NftMarketplace, usdc: ReferenceToken
) -> Callable[..., str]:
    """Factory fixture: mint *amount* to the buyer and approve the marketplace."""

    def _factory(amount: int = DEFAULT_PRICE, allowance: int | None = None) -> str:
        usdc.mint(BUYER, amount)
        usdc.approve(BUYER, market.address, amount if allowance is None else allowance)
        return BUYER

    return _factory
