"""
Process-wide state containers with explicit init/teardown.

Both the session guard and the preference store are built on these two
pieces:

- ``Subscription``: a disposable handle returned by anything you can
  listen to. Releasing it twice is harmless, and it can be used as a
  context manager so release happens on every exit path.
- ``StateContainer``: holds one current value and notifies listeners,
  in registration order, after every transition.
"""

import logging
from typing import Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

S = TypeVar("S")


class Subscription:
    """Handle for a registered listener."""

    def __init__(self, unsubscribe: Optional[Callable[[], None]] = None):
        self._unsubscribe = unsubscribe
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def unsubscribe(self) -> None:
        """Release the listener. Only the first call has any effect."""
        if self._closed:
            return
        self._closed = True
        if self._unsubscribe is not None:
            callback, self._unsubscribe = self._unsubscribe, None
            callback()

    # Alias used by resource-style callers
    dispose = unsubscribe

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.unsubscribe()
        return False


class StateContainer(Generic[S]):
    """
    A single observable value.

    Subclasses change the value through ``_transition`` only; listeners
    receive ``(old, new)`` after the value is stored. A listener that raises
    is logged and skipped so one broken consumer cannot block the others.
    """

    def __init__(self, initial: S):
        self._state: S = initial
        self._listeners: List[Callable[[S, S], None]] = []

    @property
    def state(self) -> S:
        return self._state

    def add_listener(self, callback: Callable[[S, S], None]) -> Subscription:
        """Register a change listener and return its subscription."""
        self._listeners.append(callback)

        def _remove() -> None:
            try:
                self._listeners.remove(callback)
            except ValueError:
                pass

        return Subscription(_remove)

    def _transition(self, new: S) -> S:
        """Store ``new`` and notify listeners. Returns the previous value."""
        old = self._state
        self._state = new
        for callback in list(self._listeners):
            try:
                callback(old, new)
            except Exception:
                logger.exception(f"{type(self).__name__} listener failed")
        return old
