"""A FIFO queue of arbitrary items, used for ready lists and wait lists."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator
from typing import Any


class QueueError(Exception):
    """Raised when a queue operation cannot be carried out."""


class Queue:
    """First-in, first-out queue of items.

    Items are compared by identity when deleting, so the same object that was
    enqueued must be passed to :meth:`delete`.  ``None`` cannot be stored.
    """

    def __init__(self) -> None:
        self._items: deque[Any] = deque()
        self._destroyed = False

    def _check_alive(self) -> None:
        if self._destroyed:
            raise QueueError("queue has been destroyed")

    def enqueue(self, data: Any) -> None:
        """Append ``data`` at the tail of the queue."""
        self._check_alive()
        if data is None:
            raise QueueError("cannot enqueue None")
        self._items.append(data)

    def dequeue(self) -> Any:
        """Remove and return the oldest item."""
        self._check_alive()
        if not self._items:
            raise QueueError("queue is empty")
        return self._items.popleft()

    def delete(self, data: Any) -> None:
        """Remove the oldest item that is ``data`` itself."""
        self._check_alive()
        if data is None:
            raise QueueError("cannot delete None")
        for index, item in enumerate(self._items):
            if item is data:
                del self._items[index]
                return
        raise QueueError("item not found in queue")

    def iterate(self, func: Callable[[Queue, Any], object]) -> None:
        """Call ``func(queue, item)`` on every item, oldest first.

        The callback may delete items from the queue while iterating; items
        removed before their turn are not visited.
        """
        self._check_alive()
        if not callable(func):
            raise QueueError("callback must be callable")
        for item in tuple(self._items):
            if any(present is item for present in self._items):
                func(self, item)

    def destroy(self) -> None:
        """Release the queue; it must be empty."""
        self._check_alive()
        if self._items:
            raise QueueError("cannot destroy a non-empty queue")
        self._destroyed = True

    def __len__(self) -> int:
        self._check_alive()
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        self._check_alive()
        return iter(tuple(self._items))

    def __repr__(self) -> str:
        state = "destroyed" if self._destroyed else f"{len(self._items)} items"
        return f"<Queue {state}>"