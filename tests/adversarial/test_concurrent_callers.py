"""Adversarial tests — callers on other threads while an operation is running.

These tests verify that:
1. A call from another thread waits for the running operation instead of
   being rejected as re-entrant
2. Concurrent purchases of the same token settle exactly once
"""

from __future__ import annotations

import threading
import time

import pytest

from nftmarket.assets.reference import ReferenceCollectible, ReferenceToken
from nftmarket.core.chain import Chain
from nftmarket.core.engine import NftMarketplace
from nftmarket.core.errors import NotListedError


class SlowToken(ReferenceToken):
    """Payment token whose pull signals its start and then stalls."""

    def __init__(self, symbol: str) -> None:
        super().__init__(symbol)
        self.started = threading.Event()

    def transfer_from(self, caller, sender, recipient, amount) -> bool:
        self.started.set()
        time.sleep(0.2)
        return super().transfer_from(caller, sender, recipient, amount)


@pytest.fixture
def setup(accounts):
    chain = Chain(name="concurrent")
    token = SlowToken("SLOW")
    chain.deploy(token)
    art = ReferenceCollectible("Concurrent Art")
    chain.deploy(art)
    market = NftMarketplace(chain, [token.address], fee_bps=25, operator=accounts.operator)

    art.mint(accounts.seller, 1)
    art.approve(accounts.seller, market.address, 1)
    market.list_item(accounts.seller, art.address, 1, 1_000, token.address)
    art.mint(accounts.seller, 2)
    art.approve(accounts.seller, market.address, 2)
    token.mint(accounts.buyer, 5_000)
    token.approve(accounts.buyer, market.address, 5_000)
    return chain, token, art, market


def _run(target, errors: list[BaseException]) -> threading.Thread:
    def body():
        try:
            target()
        except BaseException as exc:
            errors.append(exc)

    thread = threading.Thread(target=body)
    thread.start()
    return thread


class TestConcurrentCallers:
    def test_other_thread_waits_for_purchase(self, setup, accounts):
        chain, token, art, market = setup
        errors: list[BaseException] = []

        buyer_thread = _run(lambda: market.buy_item(accounts.buyer, art.address, 1), errors)
        assert token.started.wait(timeout=5)
        market.list_item(accounts.seller, art.address, 2, 500, token.address)
        buyer_thread.join(timeout=5)

        assert errors == []
        assert art.owner_of(1) == accounts.buyer
        assert market.get_listing(art.address, 2).price == 500
        assert [type(e).__name__ for e in chain.events][-2:] == ["ItemBought", "ItemListed"]

    def test_same_token_settles_once(self, setup, accounts):
        chain, token, art, market = setup
        errors: list[BaseException] = []

        threads = [
            _run(lambda: market.buy_item(accounts.buyer, art.address, 1), errors)
            for _ in range(2)
        ]
        for thread in threads:
            thread.join(timeout=5)

        assert len(errors) == 1
        assert isinstance(errors[0], NotListedError)
        assert token.balance_of(accounts.buyer) == 4_000
        assert market.get_earnings(accounts.seller, token.address) == 1_000
