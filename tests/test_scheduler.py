import threading
import time
from collections import Counter

import pytest

from uthread.scheduler import (
    ThreadControlBlock,
    UThreadError,
    block,
    create,
    current,
    exit_thread,
    run,
    unblock,
    yield_now,
)


def _live_worker_threads():
    return [t for t in threading.enumerate() if t.name.startswith("uthread-")]


def _loop_printer(printed):
    def loop_printer(label):
        for _ in range(10):
            for _ in range(1000):
                pass
            printed.append(label)
            yield_now()
        exit_thread()

    return loop_printer


def test_loop_printers_with_preemption():
    printed = []
    loop_printer = _loop_printer(printed)

    def starter(label):
        create(loop_printer, "A")
        create(loop_printer, "B")
        loop_printer(label)

    run(starter, "Main", preempt=True)
    assert current() is None
    assert Counter(printed) == {"Main": 10, "A": 10, "B": 10}


def test_loop_printers_round_robin_without_preemption():
    printed = []
    loop_printer = _loop_printer(printed)

    def starter(label):
        create(loop_printer, "A")
        create(loop_printer, "B")
        loop_printer(label)

    run(starter, "Main")
    assert current() is None
    assert printed == ["Main", "A", "B"] * 10


def test_single_thread_runs_with_argument():
    seen = []
    run(seen.append, "Hello world!")
    assert seen == ["Hello world!"]


def test_parent_resumes_before_child_prints():
    printed = []

    def thread3(_):
        yield_now()
        printed.append("thread3")

    def thread2(_):
        create(thread3)
        yield_now()
        printed.append("thread2")

    def thread1(_):
        create(thread2)
        yield_now()
        printed.append("thread1")
        yield_now()

    run(thread1)
    assert current() is None
    assert printed == ["thread1", "thread2", "thread3"]


def test_exit_thread_stops_the_thread():
    log = []

    def worker(_):
        log.append("before")
        exit_thread()
        log.append("after")

    run(worker)
    assert current() is None
    assert log == ["before"]


def test_current_inside_and_outside():
    seen = []

    def worker(arg):
        tcb = current()
        seen.append((tcb.func is worker, tcb.arg, tcb.is_idle))

    assert current() is None
    run(worker, "x")
    assert seen == [(True, "x", False)]
    assert current() is None


def test_block_and_unblock_order():
    log = []
    sleepers = []

    def sleeper(_):
        sleepers.append(current())
        log.append("sleeper blocks")
        block()
        log.append("sleeper resumed")

    def waker(_):
        log.append("waker")
        unblock(sleepers[0])

    def starter(_):
        create(sleeper)
        create(waker)

    run(starter)
    assert current() is None
    assert log == ["sleeper blocks", "waker", "sleeper resumed"]


def test_blocked_threads_are_discarded_when_nothing_can_run():
    log = []

    def stuck(_):
        log.append("blocking")
        block()
        log.append("never")

    run(stuck)
    assert log == ["blocking"]
    assert current() is None
    assert _live_worker_threads() == []


def test_exception_in_thread_is_reraised_after_others_run():
    log = []

    def good(_):
        log.append("good")

    def bad(_):
        create(good)
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        run(bad)
    assert log == ["good"]


def test_nested_run_is_rejected():
    def worker(_):
        run(lambda _: None)

    with pytest.raises(UThreadError):
        run(worker)


def test_unblocking_running_thread_is_rejected():
    def worker(_):
        unblock(current())

    with pytest.raises(UThreadError):
        run(worker)


def test_unblocking_non_thread_is_rejected():
    def worker(_):
        unblock(ThreadControlBlock(None))

    with pytest.raises(UThreadError):
        run(worker)


def test_create_outside_run_is_rejected():
    with pytest.raises(UThreadError):
        create(lambda _: None)


def test_block_outside_run_is_rejected():
    with pytest.raises(UThreadError):
        block()


def test_exit_thread_outside_run_is_rejected():
    with pytest.raises(UThreadError):
        exit_thread()


def test_non_callable_rejected():
    with pytest.raises(TypeError):
        run(42)
    assert current() is None


def test_preemption_interleaves_spinning_thread():
    seen = threading.Event()
    results = []

    def other(_):
        seen.set()

    def spinner(_):
        create(other)
        deadline = time.monotonic() + 5.0
        while not seen.is_set() and time.monotonic() < deadline:
            pass
        results.append(seen.is_set())

    run(spinner, preempt=True)
    assert current() is None
    assert results == [True]


def test_without_preemption_spinner_runs_to_completion_first():
    order = []

    def other(_):
        order.append("other")

    def spinner(_):
        create(other)
        for _ in range(10000):
            pass
        order.append("spinner")

    run(spinner)
    assert current() is None
    assert order == ["spinner", "other"]