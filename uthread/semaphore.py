"""Counting semaphores for user-level threads."""

from __future__ import annotations

from contextlib import AbstractContextManager, nullcontext

from . import scheduler
from .fifo import Queue
from .scheduler import UThreadError, block, current, unblock, yield_now


class SemaphoreError(Exception):
    """Raised when a semaphore operation cannot be carried out."""


def _atomic() -> AbstractContextManager[object]:
    """Hold back preemption while a scheduler is running."""
    running = scheduler._active
    if running is None:
        return nullcontext()
    return running.preemption.disabled()


class Semaphore:
    """Semaphore with an internal count and a FIFO list of waiting threads.

    Taking an unavailable semaphore blocks the calling thread.  Releasing a
    semaphore with waiters hands the resource straight to the oldest waiter
    instead of raising the count.
    """

    def __init__(self, count: int = 0) -> None:
        if count < 0:
            raise ValueError("semaphore count cannot be negative")
        self._count = count
        self._blocked = Queue()
        self._destroyed = False

    @property
    def count(self) -> int:
        """Resources currently available."""
        return self._count

    def _check_alive(self) -> None:
        if self._destroyed:
            raise SemaphoreError("semaphore has been destroyed")

    def down(self) -> None:
        """Take a resource, blocking until one is available."""
        self._check_alive()
        with _atomic():
            if self._count > 0:
                self._count -= 1
                return
            running = current()
            if running is None or running.is_idle:
                raise SemaphoreError(
                    "cannot wait on a semaphore outside a running thread"
                )
            self._blocked.enqueue(running)
            try:
                block()
            except UThreadError as exc:
                self._blocked.delete(running)
                raise SemaphoreError(str(exc)) from exc
        yield_now()

    def up(self) -> None:
        """Release a resource, waking the oldest waiter if there is one."""
        self._check_alive()
        with _atomic():
            if len(self._blocked):
                unblock(self._blocked.dequeue())
            else:
                self._count += 1

    def destroy(self) -> None:
        """Release the semaphore; no thread may still be waiting on it."""
        self._check_alive()
        if len(self._blocked):
            raise SemaphoreError("threads are still blocked on the semaphore")
        self._blocked.destroy()
        self._destroyed = True

    def waiting(self) -> int:
        """Number of threads blocked on the semaphore."""
        self._check_alive()
        return len(self._blocked)

    def __repr__(self) -> str:
        if self._destroyed:
            return "<Semaphore destroyed>"
        return f"<Semaphore count={self._count} waiting={len(self._blocked)}>"