"""In-process execution environment for marketplace contracts.

The ``Chain`` gives hosted contracts the guarantees the marketplace relies
on:

- Serialized execution: every transaction holds one global re-entrant lock.
- All-or-nothing: each transaction snapshots every deployed contract and
  restores all of them if the body raises.  Nested transactions act as
  savepoints.
- Emit-on-commit: events emitted inside a transaction are buffered and only
  delivered once the outermost transaction body completes.  Subscribers run
  inside that transaction, so a failing subscriber aborts it.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from nftmarket.core.errors import UnknownContractError
from nftmarket.core.hasher import derive_address
from nftmarket.models.events import MarketEvent
from nftmarket.models.listing import ZERO_ADDRESS

logger = logging.getLogger(__name__)

EventHandler = Callable[[MarketEvent], None]


class Contract:
    """Base class for objects hosted at an address on a ``Chain``.

    Subclasses list the attributes holding their mutable state in
    ``_STATE_ATTRS``; the default ``snapshot``/``restore`` deep-copy them.
    """

    _STATE_ATTRS: tuple[str, ...] = ()

    address: str = ZERO_ADDRESS

    def snapshot(self) -> dict[str, Any]:
        return {
            name: copy.deepcopy(getattr(self, name)) for name in self._STATE_ATTRS
        }

    def restore(self, snapshot: dict[str, Any]) -> None:
        for name, value in snapshot.items():
            setattr(self, name, value)


class Chain:
    """Address book, transaction boundary, and event bus for contracts.

    Parameters
    ----------
    name:
        Label used when deriving addresses for deployed contracts.

    Examples
    --------
    >>> chain = Chain()
    >>> with chain.transaction():
    ...     pass
    >>> chain.events
    []
    """

    def __init__(self, name: str = "local") -> None:
        self.name = name
        self._contracts: dict[str, Contract] = {}
        self._lock = threading.RLock()
        self._frames: list[list[MarketEvent]] = []
        self._subscribers: list[EventHandler] = []
        self._nonce = 0
        self.events: list[MarketEvent] = []

    # -- Address book --------------------------------------------------------

    def deploy(self, contract: Contract, address: str | None = None) -> str:
        """Host *contract* on this chain and return its address."""
        with self._lock:
            if address is None:
                self._nonce += 1
                address = derive_address(
                    f"{self.name}:{type(contract).__name__}:{self._nonce}"
                )
            if address in self._contracts:
                raise ValueError(f"Address {address} is already in use.")
            contract.address = address
            self._contracts[address] = contract
        logger.debug("Deployed %s at %s.", type(contract).__name__, address)
        return address

    def at(self, address: str) -> Contract:
        """Return the contract deployed at *address*."""
        try:
            return self._contracts[address]
        except KeyError:
            raise UnknownContractError(address) from None

    def is_deployed(self, address: str) -> bool:
        return address in self._contracts

    # -- Transactions --------------------------------------------------------

    @property
    def lock(self) -> threading.RLock:
        """The global re-entrant lock held by every transaction."""
        return self._lock

    @property
    def in_transaction(self) -> bool:
        return bool(self._frames)

    @contextmanager
    def transaction(self) -> Iterator[Chain]:
        """Run the body atomically against every deployed contract.

        The outermost transaction delivers its events to subscribers before
        committing; a subscriber that raises rolls the whole transaction back.
        """
        with self._lock:
            snapshots = [(c, c.snapshot()) for c in self._contracts.values()]
            self._frames.append([])
            try:
                yield self
                if len(self._frames) == 1:
                    self._deliver(self._frames[-1])
            except BaseException:
                discarded = self._frames.pop()
                for contract, snapshot in reversed(snapshots):
                    contract.restore(snapshot)
                logger.debug(
                    "Transaction rolled back; discarded %d pending event(s).",
                    len(discarded),
                )
                raise
            frame = self._frames.pop()
            if self._frames:
                self._frames[-1].extend(frame)
            else:
                self.events.extend(frame)

    # -- Events --------------------------------------------------------------

    def emit(self, event: MarketEvent) -> None:
        """Buffer *event* until the enclosing transaction commits."""
        if not self._frames:
            raise RuntimeError("Events can only be emitted inside a transaction.")
        self._frames[-1].append(event)

    def subscribe(self, handler: EventHandler) -> None:
        """Register *handler* to receive every committed event in order."""
        self._subscribers.append(handler)

    def _deliver(self, events: list[MarketEvent]) -> None:
        for event in events:
            for handler in self._subscribers:
                handler(event)
