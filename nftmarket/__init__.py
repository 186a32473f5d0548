"""nftmarket: escrow-style fixed-price marketplace for non-fungible assets.

  - Non-custodial listings priced in a fixed set of fungible payment assets
  - Atomic purchases with an internal earnings ledger and platform fee
  - All-or-nothing transactions and emit-on-commit events via ``Chain``
  - Append-only, hash-chained SQLite event log for indexers
"""

__version__ = "0.1.0"

from nftmarket.core.chain import Chain
from nftmarket.core.engine import NftMarketplace
from nftmarket.core.event_log import EventLog
from nftmarket.models.listing import Listing

__all__ = ["Chain", "NftMarketplace", "EventLog", "Listing", "__version__"]
