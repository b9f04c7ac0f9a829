"""
Observable state container.

Holds one value and notifies subscribers whenever it is replaced. The
coordinator keeps the canonical deck and the busy-field set in these, and
UI layers subscribe to them instead of polling.
"""

from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")

Subscriber = Callable[[T], None]


class Observable(Generic[T]):
    """A value with subscribe/notify semantics."""

    def __init__(self, initial: T) -> None:
        self._value = initial
        self._subscribers: list[Subscriber[T]] = []

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        """Replace the value and notify every subscriber."""
        self._value = value
        for subscriber in list(self._subscribers):
            subscriber(value)

    def subscribe(self, subscriber: Subscriber[T]) -> Callable[[], None]:
        """
        Register a subscriber and call it immediately with the current value.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(subscriber)
        subscriber(self._value)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
