"""Checked uint256 arithmetic.

Python integers never wrap, so overflow has to be detected explicitly
against the 256-bit bound the ledger values are defined on.
"""

from __future__ import annotations

from nftmarket.core.errors import ArithmeticOverflowError
from nftmarket.models.listing import UINT256_MAX


def checked_add(a: int, b: int) -> int:
    result = a + b
    if result > UINT256_MAX:
        raise ArithmeticOverflowError("add", a, b)
    return result


def checked_sub(a: int, b: int) -> int:
    result = a - b
    if result < 0:
        raise ArithmeticOverflowError("sub", a, b)
    return result


def checked_mul(a: int, b: int) -> int:
    result = a * b
    if result > UINT256_MAX:
        raise ArithmeticOverflowError("mul", a, b)
    return result
