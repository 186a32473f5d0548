"""In-memory reference asset contracts.

``ReferenceToken`` and ``ReferenceCollectible`` implement the asset
protocols with plain dictionaries so a marketplace can be exercised without
any external system: the CLI demo and the test-suite deploy them on a
``Chain`` next to the marketplace.
"""

from __future__ import annotations

import logging

from nftmarket.core.chain import Contract
from nftmarket.models.listing import UINT256_MAX, ZERO_ADDRESS

logger = logging.getLogger(__name__)


class AssetError(RuntimeError):
    """Raised by reference assets when a transfer or approval is invalid."""


class ReferenceToken(Contract):
    """Fungible token with balances, allowances, and minting."""

    _STATE_ATTRS = ("_balances", "_allowances", "total_supply")

    def __init__(self, symbol: str, decimals: int = 18) -> None:
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}

    def balance_of(self, owner: str) -> int:
        return self._balances.get(owner, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def mint(self, recipient: str, amount: int) -> None:
        if amount < 0 or self.total_supply + amount > UINT256_MAX:
            raise AssetError(f"Cannot mint {amount} {self.symbol}.")
        self.total_supply += amount
        self._balances[recipient] = self.balance_of(recipient) + amount

    def approve(self, caller: str, spender: str, amount: int) -> bool:
        if not 0 <= amount <= UINT256_MAX:
            raise AssetError(f"Invalid allowance {amount}.")
        self._allowances[(caller, spender)] = amount
        return True

    def transfer(self, caller: str, recipient: str, amount: int) -> bool:
        self._move(caller, recipient, amount)
        return True

    def transfer_from(
        self, caller: str, sender: str, recipient: str, amount: int
    ) -> bool:
        allowed = self.allowance(sender, caller)
        if allowed < amount:
            raise AssetError(
                f"{caller} may spend {allowed} {self.symbol} of {sender}, needs {amount}."
            )
        # An unlimited allowance is never decremented.
        if allowed != UINT256_MAX:
            self._allowances[(sender, caller)] = allowed - amount
        self._move(sender, recipient, amount)
        return True

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        if recipient == ZERO_ADDRESS:
            raise AssetError("Cannot transfer to the zero address.")
        balance = self.balance_of(sender)
        if amount < 0 or balance < amount:
            raise AssetError(
                f"{sender} holds {balance} {self.symbol}, cannot send {amount}."
            )
        self._balances[sender] = balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        logger.debug("%s: %d from %s to %s.", self.symbol, amount, sender, recipient)


class ReferenceCollectible(Contract):
    """Non-fungible token collection with single-token approvals."""

    _STATE_ATTRS = ("_owners", "_approvals")

    def __init__(self, name: str) -> None:
        self.name = name
        self._owners: dict[int, str] = {}
        self._approvals: dict[int, str] = {}

    def owner_of(self, token_id: int) -> str:
        try:
            return self._owners[token_id]
        except KeyError:
            raise AssetError(f"Token {token_id} of {self.name} does not exist.") from None

    def exists(self, token_id: int) -> bool:
        return token_id in self._owners

    def get_approved(self, token_id: int) -> str:
        self.owner_of(token_id)
        return self._approvals.get(token_id, ZERO_ADDRESS)

    def mint(self, recipient: str, token_id: int) -> None:
        if token_id in self._owners:
            raise AssetError(f"Token {token_id} of {self.name} already exists.")
        self._owners[token_id] = recipient

    def approve(self, caller: str, operator: str, token_id: int) -> None:
        if self.owner_of(token_id) != caller:
            raise AssetError(f"{caller} cannot approve token {token_id}.")
        self._approvals[token_id] = operator

    def safe_transfer_from(
        self, caller: str, sender: str, recipient: str, token_id: int
    ) -> None:
        owner = self.owner_of(token_id)
        if owner != sender:
            raise AssetError(f"{sender} is not the owner of token {token_id}.")
        if caller != owner and self._approvals.get(token_id) != caller:
            raise AssetError(f"{caller} is not approved for token {token_id}.")
        if recipient == ZERO_ADDRESS:
            raise AssetError("Cannot transfer to the zero address.")
        self._approvals.pop(token_id, None)
        self._owners[token_id] = recipient
        logger.debug("%s #%d: %s -> %s.", self.name, token_id, sender, recipient)
