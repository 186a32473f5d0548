"""Earnings ledger — accrued, unwithdrawn proceeds per (beneficiary, asset)."""

from __future__ import annotations

import logging

from nftmarket.core.arithmetic import checked_add

logger = logging.getLogger(__name__)


class EarningsLedger:
    """Internal balance sheet of a marketplace.

    Entries are only ever credited by settlement and cleared in full by
    withdrawal.  Zero balances are not stored.

    Examples
    --------
    >>> ledger = EarningsLedger()
    >>> ledger.credit("0xseller", "0xusdc", 975)
    975
    >>> ledger.clear("0xseller", "0xusdc")
    975
    >>> ledger.balance_of("0xseller", "0xusdc")
    0
    """

    def __init__(self) -> None:
        self._balances: dict[tuple[str, str], int] = {}

    def balance_of(self, beneficiary: str, asset: str) -> int:
        return self._balances.get((beneficiary, asset), 0)

    def credit(self, beneficiary: str, asset: str, amount: int) -> int:
        """Add *amount* to an entry and return the new balance.

        Raises ``ArithmeticOverflowError`` if the balance would exceed uint256.
        """
        if amount < 0:
            raise ValueError(f"Credit amount must be non-negative, got {amount}.")
        if amount == 0:
            return self.balance_of(beneficiary, asset)
        key = (beneficiary, asset)
        balance = checked_add(self._balances.get(key, 0), amount)
        self._balances[key] = balance
        logger.debug("Credited %d %s to %s (balance %d).", amount, asset, beneficiary, balance)
        return balance

    def clear(self, beneficiary: str, asset: str) -> int:
        """Zero an entry and return the balance it held."""
        return self._balances.pop((beneficiary, asset), 0)

    def totals(self) -> dict[str, int]:
        """Return the sum of all outstanding balances per asset."""
        out: dict[str, int] = {}
        for (_, asset), amount in self._balances.items():
            out[asset] = out.get(asset, 0) + amount
        return out

    def snapshot(self) -> dict[tuple[str, str], int]:
        return dict(self._balances)

    def restore(self, snapshot: dict[tuple[str, str], int]) -> None:
        self._balances = dict(snapshot)
