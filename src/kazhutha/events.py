"""
Minimal observer channel.

Each committed state transition is published as a value; subscribers get it
synchronously in subscription order. ``subscribe`` returns a callable that
removes the subscription again.
"""
from __future__ import annotations

from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")


class EventChannel(Generic[T]):
    """Publish values of one type to any number of callbacks."""

    def __init__(self) -> None:
        self._subscribers: List[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, value: T) -> None:
        # Copy: a callback may unsubscribe itself while we iterate.
        for callback in list(self._subscribers):
            callback(value)

    def __len__(self) -> int:
        return len(self._subscribers)


__all__ = ["EventChannel"]
