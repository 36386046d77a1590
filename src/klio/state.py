"""Observable state containers.

Each container owns exactly one snapshot. Presentation subscribes to it and
re-renders from the snapshot; only the owning container's methods replace it.
All mutation happens on the event loop thread, so no locking is needed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")

Listener = Callable[[T], None]

logger = logging.getLogger(__name__)


class StateContainer(Generic[T]):
    """Holds a snapshot and fans every replacement out to subscribers."""

    def __init__(self, initial: T) -> None:
        self._state: T = initial
        self._listeners: list[Listener[T]] = []

    @property
    def state(self) -> T:
        return self._state

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    def _replace(self, value: T) -> None:
        self._state = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.warning("State listener %r failed", listener, exc_info=True)
