"""Capabilities the marketplace consumes from external asset contracts.

The marketplace never owns token balances or approvals; it only reads them
and asks the asset contracts to move value.  Any object with the methods
below satisfies the protocols.  Mutating calls take the calling address as
their first argument because there is no implicit sender in-process.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class NonFungibleAsset(Protocol):
    """Ownership and transfer of unique tokens (ERC-721 shaped)."""

    address: str

    def owner_of(self, token_id: int) -> str:
        """Return the current owner of *token_id*."""
        ...

    def get_approved(self, token_id: int) -> str:
        """Return the address approved to move *token_id*, or the zero address."""
        ...

    def safe_transfer_from(
        self, caller: str, sender: str, recipient: str, token_id: int
    ) -> None:
        """Move *token_id* from *sender* to *recipient* on behalf of *caller*.

        Must raise if *sender* is not the owner or *caller* is neither the
        owner nor approved.
        """
        ...


@runtime_checkable
class FungibleAsset(Protocol):
    """Balances and allowances of an interchangeable token (ERC-20 shaped)."""

    address: str

    def balance_of(self, owner: str) -> int:
        ...

    def allowance(self, owner: str, spender: str) -> int:
        ...

    def transfer(self, caller: str, recipient: str, amount: int) -> bool:
        """Move *amount* from *caller* to *recipient*; ``False`` signals failure."""
        ...

    def transfer_from(
        self, caller: str, sender: str, recipient: str, amount: int
    ) -> bool:
        """Move *amount* from *sender* using *caller*'s allowance."""
        ...
