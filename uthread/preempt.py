"""Timer-driven preemption of user-level threads.

Preemption is driven by CPU time: once every ``1/hz`` seconds of process CPU
time a tick becomes due, and the next traced line executed by a thread started
while preemption is active calls the tick handler.  The handler is expected to
force the running thread to yield.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from types import FrameType
from typing import Any

HZ = 100
"""Default preemption frequency, in ticks per second of CPU time."""


class Preemption:
    """Periodic tick source that interrupts running threads.

    When not started, or started with ``preempt`` false, every other method is
    ineffective and no tick is ever delivered.
    """

    def __init__(self, handler: Callable[[], object], hz: float = HZ) -> None:
        if hz <= 0:
            raise ValueError("preemption frequency must be positive")
        self._handler = handler
        self._interval = 1.0 / hz
        self._active = False
        self._blocked = False
        self._next_tick = 0.0
        self._saved_trace: Any = None

    def start(self, preempt: bool) -> None:
        """Start delivering ticks if ``preempt`` is true."""
        if not preempt or self._active:
            return
        self._active = True
        self._blocked = False
        self._next_tick = time.process_time() + self._interval
        self._saved_trace = threading.gettrace()
        threading.settrace(self._trace)

    def stop(self) -> None:
        """Stop delivering ticks and restore the previous thread trace hook."""
        if not self._active:
            return
        threading.settrace(self._saved_trace)
        self._saved_trace = None
        self._active = False
        self._blocked = False

    def enable(self) -> None:
        """Allow ticks to be delivered again."""
        if self._active:
            self._blocked = False

    def disable(self) -> None:
        """Hold back ticks; a tick falling due meanwhile stays pending."""
        if self._active:
            self._blocked = True

    @contextmanager
    def disabled(self) -> Iterator[Preemption]:
        """Hold back ticks for the duration of the block, then restore."""
        previous = self._blocked
        self.disable()
        try:
            yield self
        finally:
            if self._active:
                self._blocked = previous

    def consume_tick(self) -> bool:
        """Return True, and rearm the timer, if a tick is due and deliverable."""
        if not self._active or self._blocked:
            return False
        now = time.process_time()
        if now < self._next_tick:
            return False
        self._next_tick = now + self._interval
        return True

    def _trace(self, frame: FrameType, event: str, arg: Any) -> Any:
        if event == "line" and self.consume_tick():
            self._handler()
        return self._trace