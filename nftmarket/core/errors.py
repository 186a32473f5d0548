"""Marketplace error taxonomy.

Every error aborts the whole operation; the enclosing chain transaction
restores all state touched before the failure.  Diagnostic context is kept
on the exception as attributes so callers can inspect it without parsing
the message.
"""

from __future__ import annotations


class MarketplaceError(RuntimeError):
    """Base class for every marketplace failure."""


# -- Configuration ---------------------------------------------------------

class NoSupportedAssetsProvidedError(MarketplaceError):
    """Raised when a marketplace is constructed without payment assets."""

    def __init__(self) -> None:
        super().__init__("At least one supported payment asset is required.")


# -- Authorization ---------------------------------------------------------

class NotOwnerError(MarketplaceError):
    def __init__(self, nft_contract: str, token_id: int, caller: str) -> None:
        self.nft_contract = nft_contract
        self.token_id = token_id
        self.caller = caller
        super().__init__(
            f"{caller} does not own token {token_id} of {nft_contract}."
        )


class NotListedError(MarketplaceError):
    def __init__(self, nft_contract: str, token_id: int) -> None:
        self.nft_contract = nft_contract
        self.token_id = token_id
        super().__init__(f"Token {token_id} of {nft_contract} is not listed.")


class AlreadyListedError(MarketplaceError):
    def __init__(self, nft_contract: str, token_id: int) -> None:
        self.nft_contract = nft_contract
        self.token_id = token_id
        super().__init__(f"Token {token_id} of {nft_contract} is already listed.")


class AssetNotSupportedError(MarketplaceError):
    def __init__(self, asset: str) -> None:
        self.asset = asset
        super().__init__(f"Payment asset {asset} is not supported.")


class NotPlatformOperatorError(MarketplaceError):
    def __init__(self, caller: str) -> None:
        self.caller = caller
        super().__init__(f"{caller} is not the platform operator.")


# -- Preconditions ---------------------------------------------------------

class PriceBelowOrEqZeroError(MarketplaceError):
    def __init__(self) -> None:
        super().__init__("Listing price must be greater than zero.")


class NftNotApprovedForSpendingError(MarketplaceError):
    def __init__(self, nft_contract: str, token_id: int) -> None:
        self.nft_contract = nft_contract
        self.token_id = token_id
        super().__init__(
            f"Marketplace is not approved for token {token_id} of {nft_contract}."
        )


class _PaymentError(MarketplaceError):
    """Shared shape for buyer-side payment shortfalls."""

    reason = "payment requirement not met"

    def __init__(
        self, nft_contract: str, token_id: int, price: int, asset: str
    ) -> None:
        self.nft_contract = nft_contract
        self.token_id = token_id
        self.price = price
        self.asset = asset
        super().__init__(
            f"{self.reason.capitalize()} for token {token_id} of {nft_contract}: "
            f"price {price} in {asset}."
        )


class AllowanceNotMetError(_PaymentError):
    reason = "allowance below price"


class PriceNotMetError(_PaymentError):
    reason = "balance below price"


class NoEarningsError(MarketplaceError):
    def __init__(self, asset: str) -> None:
        self.asset = asset
        super().__init__(f"No earnings to withdraw in {asset}.")


class TransferFailedError(MarketplaceError):
    """Raised when a fungible asset reports an unsuccessful transfer."""

    def __init__(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        self.asset = asset
        self.sender = sender
        self.recipient = recipient
        self.amount = amount
        super().__init__(
            f"Transfer of {amount} {asset} from {sender} to {recipient} failed."
        )


# -- Execution -------------------------------------------------------------

class ReentrantCallError(MarketplaceError):
    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"Re-entrant call to {operation} while another operation is in progress."
        )


class ArithmeticOverflowError(MarketplaceError, ArithmeticError):
    def __init__(self, operation: str, a: int, b: int) -> None:
        self.operation = operation
        self.operands = (a, b)
        super().__init__(f"uint256 overflow in {operation}({a}, {b}).")


class UnknownContractError(MarketplaceError, LookupError):
    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"No contract deployed at {address}.")
