"""
Store-owned publish/subscribe channels.

Each store owns one ChangeStream and publishes its change records on it.
Subscribers are called synchronously, in subscription order, before
publish() returns. A subscriber may mutate stores again; the resulting
records are delivered further down the same call stack.

Change records are frozen pydantic models grouped into a union per channel.
Consumers dispatch with a `match` statement ending in `assert_never`, so a
type checker flags every consumer when a new variant is added.
"""

import logging
from collections.abc import Callable
from typing import Generic, NoReturn, TypeVar

logger = logging.getLogger(__name__)

ChangeT = TypeVar("ChangeT")
Subscriber = Callable[[ChangeT], None]


class ChangeStream(Generic[ChangeT]):
    """
    Synchronous observable of change records.

    Example:
        >>> stream: ChangeStream[TaskChange] = ChangeStream("tasks")
        >>> unsubscribe = stream.subscribe(print)
        >>> stream.publish(TaskAdded(id="aaaaaaaaaa"))
        id='aaaaaaaaaa'
        >>> unsubscribe()
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: list[Subscriber[ChangeT]] = []

    def subscribe(self, subscriber: Subscriber[ChangeT]) -> Callable[[], None]:
        """
        Register a subscriber.

        Returns:
            Callable that removes the subscriber again
        """
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def publish(self, change: ChangeT) -> None:
        """Deliver a change to every subscriber, in subscription order."""
        logger.debug("%s: %r", self.name, change)
        # Copy so that subscribing during delivery does not affect this round
        for subscriber in list(self._subscribers):
            subscriber(change)

    def __len__(self) -> int:
        return len(self._subscribers)


def assert_never(value: NoReturn) -> NoReturn:
    """Exhaustiveness check for `match` statements over change unions."""
    raise AssertionError(f"Unsupported change: {value!r}")
