"""User-level threads scheduled one at a time in FIFO order.

Exactly one user-level thread runs at any moment; control passes between them
only when a thread yields, blocks or exits, or, with preemption enabled, when
a timer tick forces the running thread to yield.
"""

from __future__ import annotations

import itertools
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .fifo import Queue, QueueError
from .preempt import HZ, Preemption


class UThreadError(Exception):
    """Raised when a thread operation is used outside its valid context."""


class _ThreadExit(BaseException):
    """Unwinds the running thread on an explicit exit."""


class _ThreadCancelled(BaseException):
    """Unwinds a thread left blocked when the scheduler shuts down."""


@dataclass(eq=False)
class ThreadControlBlock:
    """State of one user-level thread."""

    func: Callable[[Any], object] | None
    arg: Any = None
    name: str = "idle"
    _wake: threading.Event = field(default_factory=threading.Event, init=False, repr=False)
    _thread: threading.Thread | None = field(default=None, init=False, repr=False)
    _cancelled: bool = field(default=False, init=False, repr=False)

    @property
    def is_idle(self) -> bool:
        """True for the scheduler's own idle thread."""
        return self.func is None

    def _owns_caller(self) -> bool:
        return self._thread is not None and self._thread.ident == threading.get_ident()


class _Scheduler:
    def __init__(self) -> None:
        self.ready = Queue()
        self.idle = ThreadControlBlock(None, name="idle")
        self.idle._thread = threading.current_thread()
        self.current = self.idle
        self.live: list[ThreadControlBlock] = []
        self.spawned: list[ThreadControlBlock] = []
        self.error: BaseException | None = None
        self.preemption = Preemption(self._on_tick, HZ)
        self._ids = itertools.count(1)

    def spawn(self, func: Callable[[Any], object], arg: Any) -> ThreadControlBlock:
        if not callable(func):
            raise TypeError("thread function must be callable")
        tcb = ThreadControlBlock(func, arg, name=f"uthread-{next(self._ids)}")
        tcb._thread = threading.Thread(
            target=self._bootstrap, args=(tcb,), name=tcb.name, daemon=True
        )
        with self.preemption.disabled():
            self.ready.enqueue(tcb)
            self.live.append(tcb)
            self.spawned.append(tcb)
        return tcb

    def execute(self, func: Callable[[Any], object], arg: Any, preempt: bool) -> None:
        self.preemption.start(preempt)
        try:
            self.spawn(func, arg)
            while True:
                try:
                    nxt = self.ready.dequeue()
                except QueueError:
                    break
                self._switch(self.idle, nxt)
            self._cancel_blocked()
        finally:
            self.preemption.stop()
            for tcb in self.spawned:
                if tcb._thread is not None and tcb._thread.ident is not None:
                    tcb._thread.join()
        if self.error is not None:
            raise self.error

    def yield_now(self) -> None:
        with self.preemption.disabled():
            try:
                nxt = self.ready.dequeue()
            except QueueError:
                return
            prev = self.current
            self.ready.enqueue(prev)
            self._switch(prev, nxt)

    def block(self) -> None:
        with self.preemption.disabled():
            prev = self.current
            self._switch(prev, self._next_or_idle())

    def unblock(self, tcb: ThreadControlBlock) -> None:
        if not isinstance(tcb, ThreadControlBlock) or tcb.is_idle:
            raise UThreadError("only user-level threads can be unblocked")
        with self.preemption.disabled():
            if tcb not in self.live:
                raise UThreadError("thread has already finished")
            if tcb is self.current or tcb in self.ready:
                raise UThreadError("thread is not blocked")
            self.ready.enqueue(tcb)

    def _next_or_idle(self) -> ThreadControlBlock:
        try:
            return self.ready.dequeue()
        except QueueError:
            return self.idle

    def _resume(self, nxt: ThreadControlBlock) -> None:
        self.current = nxt
        thread = nxt._thread
        if thread is None:
            raise UThreadError("thread has no execution context")
        if thread.ident is None:
            thread.start()
        else:
            nxt._wake.set()

    def _switch(self, prev: ThreadControlBlock, nxt: ThreadControlBlock) -> None:
        self._resume(nxt)
        prev._wake.wait()
        prev._wake.clear()
        if prev._cancelled:
            raise _ThreadCancelled

    def _bootstrap(self, tcb: ThreadControlBlock) -> None:
        self.preemption.enable()
        try:
            if tcb.func is not None:
                tcb.func(tcb.arg)
        except _ThreadExit:
            pass
        except _ThreadCancelled:
            return
        except BaseException as exc:
            if self.error is None:
                self.error = exc
        self._finish(tcb)

    def _finish(self, tcb: ThreadControlBlock) -> None:
        self.preemption.disable()
        self.live.remove(tcb)
        self._resume(self._next_or_idle())

    def _cancel_blocked(self) -> None:
        for tcb in list(self.live):
            tcb._cancelled = True
            self.current = tcb
            tcb._wake.set()
            if tcb._thread is not None:
                tcb._thread.join()
        self.live.clear()
        self.current = self.idle

    def _on_tick(self) -> None:
        running = self.current
        if not running.is_idle and running._owns_caller():
            self.yield_now()


_active: _Scheduler | None = None


def _running() -> _Scheduler:
    if _active is None:
        raise UThreadError("no scheduler is running")
    return _active


def _require_uthread() -> _Scheduler:
    sched = _running()
    running = sched.current
    if running.is_idle or not running._owns_caller():
        raise UThreadError("not called from the running user-level thread")
    return sched


def run(func: Callable[[Any], object], arg: Any = None, preempt: bool = False) -> None:
    """Run ``func(arg)`` as the first thread and return once all threads end.

    Threads still blocked when no thread can run are discarded.  The first
    exception raised by any thread is re-raised here.
    """
    global _active
    if _active is not None:
        raise UThreadError("the scheduler is already running")
    sched = _Scheduler()
    _active = sched
    try:
        sched.execute(func, arg, preempt)
    finally:
        _active = None


def create(func: Callable[[Any], object], arg: Any = None) -> ThreadControlBlock:
    """Create a thread running ``func(arg)`` and append it to the ready queue."""
    return _require_uthread().spawn(func, arg)


def yield_now() -> None:
    """Let the next ready thread run; a no-op when no scheduler is running."""
    if _active is None:
        return
    _require_uthread().yield_now()


def exit_thread() -> None:
    """Finish the running thread; never returns."""
    _require_uthread()
    raise _ThreadExit


def current() -> ThreadControlBlock | None:
    """Return the running thread, or None when no scheduler is running."""
    return _active.current if _active is not None else None


def block() -> None:
    """Suspend the running thread until another thread unblocks it."""
    _require_uthread().block()


def unblock(tcb: ThreadControlBlock) -> None:
    """Make a blocked thread ready to run again."""
    _require_uthread().unblock(tcb)