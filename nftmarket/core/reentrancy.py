"""Per-instance re-entrancy guard.

Any call that reaches an external asset contract may call back into the
marketplace before the outer operation finishes.  Mutating operations are
wrapped with ``nonreentrant`` so such a nested call fails instead of
observing half-applied bookkeeping.

The guard holds a re-entrant lock for the whole operation.  Calls from other
threads wait on the lock; only a nested call from the thread already inside
the guard is rejected.
"""

from __future__ import annotations

import functools
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from nftmarket.core.errors import ReentrantCallError

F = TypeVar("F", bound=Callable[..., Any])


class ReentrancyGuard:
    """Tracks the operation currently holding the guard, if any.

    Parameters
    ----------
    lock:
        Re-entrant lock serializing guarded operations.  Pass the chain's
        lock so guarded calls and chain transactions share one ordering.
    """

    def __init__(self, lock: threading.RLock | None = None) -> None:
        self._lock = lock if lock is not None else threading.RLock()
        self._active: str | None = None

    @property
    def active(self) -> str | None:
        return self._active

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        with self._lock:
            if self._active is not None:
                raise ReentrantCallError(operation)
            self._active = operation
            try:
                yield
            finally:
                self._active = None


def nonreentrant(method: F) -> F:
    """Decorate a method of an object exposing ``_guard: ReentrancyGuard``."""

    @functools.wraps(method)
    def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        with self._guard.enter(method.__name__):
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]
