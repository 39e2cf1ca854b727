import pytest

from uthread.scheduler import create, current, run, yield_now
from uthread.semaphore import Semaphore, SemaphoreError


def test_down_takes_available_resources():
    sem = Semaphore(2)
    sem.down()
    sem.down()
    assert sem.count == 0


def test_up_then_down_round_trip():
    sem = Semaphore(0)
    sem.up()
    assert sem.count == 1
    sem.down()
    assert sem.count == 0


def test_negative_count_rejected():
    with pytest.raises(ValueError):
        Semaphore(-1)


def test_down_on_empty_outside_scheduler_raises():
    sem = Semaphore(0)
    with pytest.raises(SemaphoreError):
        sem.down()
    assert sem.waiting() == 0


def test_destroyed_semaphore_rejects_operations():
    sem = Semaphore(1)
    sem.destroy()
    with pytest.raises(SemaphoreError):
        sem.down()
    with pytest.raises(SemaphoreError):
        sem.up()
    with pytest.raises(SemaphoreError):
        sem.destroy()


def test_waiters_released_oldest_first():
    sem = Semaphore(0)
    woken = []
    seen = []

    def waiter(name):
        sem.down()
        woken.append(name)

    def main(_):
        for name in ("a", "b", "c"):
            create(waiter, name)
        yield_now()
        seen.append(sem.waiting())
        for _ in range(3):
            sem.up()

    run(main)
    assert seen == [3]
    assert woken == ["a", "b", "c"]
    assert sem.count == 0


def test_up_hands_resource_to_waiter():
    sem = Semaphore(0)
    observed = []

    def waiter(_):
        sem.down()
        observed.append("woken")

    def main(_):
        create(waiter)
        yield_now()
        sem.up()
        observed.append((sem.count, sem.waiting()))

    run(main)
    assert observed == [(0, 0), "woken"]
    assert sem.count == 0
    assert sem.waiting() == 0


def test_destroy_refused_while_threads_wait():
    sem = Semaphore(0)
    outcome = []

    def waiter(_):
        sem.down()

    def main(_):
        create(waiter)
        yield_now()
        try:
            sem.destroy()
        except SemaphoreError:
            outcome.append("refused")
        outcome.append(sem.waiting())
        sem.up()

    run(main)
    assert outcome == ["refused", 1]
    sem.destroy()
    with pytest.raises(SemaphoreError):
        sem.waiting()


def test_thread_left_blocked_is_discarded():
    sem = Semaphore(0)
    reached = []

    def main(_):
        sem.down()
        reached.append("after")

    run(main)
    assert reached == []
    assert sem.count == 0
    assert current() is None


def test_mutual_exclusion_keeps_shared_counter_consistent():
    mutex = Semaphore(1)
    state = {"value": 0}

    def worker(_):
        for _ in range(5):
            mutex.down()
            value = state["value"]
            yield_now()
            state["value"] = value + 1
            mutex.up()

    def main(_):
        create(worker)
        create(worker)
        worker(None)

    run(main)
    assert state["value"] == 15
    assert mutex.count == 1