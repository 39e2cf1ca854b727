"""Demonstration programs for the thread library.

Each demo runs under the scheduler and returns the lines it produced.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from .scheduler import UThreadError, create, run, yield_now
from .semaphore import Semaphore

BUFFER_SIZE = 16
MAXCOUNT_BUFFER = 1000
MAXCOUNT_COUNT = 20
MAXPRIME = 1000
MAX_PRINTS = 10

_UINT_MASK = 0xFFFFFFFF


class _RandR:
    """Reentrant pseudo-random generator with 32-bit unsigned state."""

    def __init__(self, seed: int) -> None:
        self._state = seed & _UINT_MASK

    def _step(self) -> int:
        self._state = (self._state * 1103515245 + 12345) & _UINT_MASK
        return self._state // 65536

    def __call__(self) -> int:
        result = self._step() % 2048
        result = (result << 10) ^ (self._step() % 1024)
        result = (result << 10) ^ (self._step() % 1024)
        return result


def hello() -> list[str]:
    """Run a single thread that greets the world."""
    lines: list[str] = []

    def greet(_: object) -> None:
        lines.append("Hello world!")

    run(greet)
    return lines


def yield_order() -> list[str]:
    """Show that a parent gets the processor back before its child runs."""
    lines: list[str] = []

    def thread3(_: object) -> None:
        yield_now()
        lines.append("thread3")

    def thread2(_: object) -> None:
        create(thread3)
        yield_now()
        lines.append("thread2")

    def thread1(_: object) -> None:
        create(thread2)
        yield_now()
        lines.append("thread1")
        yield_now()

    run(thread1)
    return lines


def sem_simple() -> list[str]:
    """Order three threads' messages through three semaphores."""
    lines: list[str] = []
    sem1, sem2, sem3 = Semaphore(0), Semaphore(0), Semaphore(0)

    def thread3(_: object) -> None:
        sem3.down()
        lines.append("thread3")
        sem2.up()

    def thread2(_: object) -> None:
        sem2.down()
        lines.append("thread2")
        sem1.up()

    def thread1(_: object) -> None:
        create(thread2)
        create(thread3)
        sem3.up()
        sem1.down()
        lines.append("thread1")

    run(thread1)
    for sem in (sem1, sem2, sem3):
        sem.destroy()
    return lines


@dataclass
class _Counter:
    maxcount: int
    x: int = 0
    sem1: Semaphore = field(default_factory=Semaphore)
    sem2: Semaphore = field(default_factory=Semaphore)


def sem_count(maxcount: int = MAXCOUNT_COUNT) -> list[str]:
    """Two threads take turns counting from 0 up to ``maxcount - 1``."""
    lines: list[str] = []
    shared = _Counter(maxcount)

    def thread2(_: object) -> None:
        while shared.x < shared.maxcount:
            lines.append(f"thread 2, x = {shared.x}")
            shared.x += 1
            shared.sem1.up()
            shared.sem2.down()

    def thread1(_: object) -> None:
        create(thread2)
        while shared.x < shared.maxcount:
            shared.sem1.down()
            lines.append(f"thread 1, x = {shared.x}")
            shared.x += 1
            shared.sem2.up()

    run(thread1)
    shared.sem1.destroy()
    shared.sem2.destroy()
    return lines


@dataclass
class _Buffer:
    maxcount: int
    cons_rand: _RandR
    prod_rand: _RandR
    empty: Semaphore = field(default_factory=lambda: Semaphore(0))
    full: Semaphore = field(default_factory=lambda: Semaphore(BUFFER_SIZE))
    mutex: Semaphore = field(default_factory=lambda: Semaphore(1))
    size: int = 0
    head: int = 0
    tail: int = 0
    slots: list[int] = field(default_factory=lambda: [0] * BUFFER_SIZE)


def sem_buffer(
    maxcount: int = MAXCOUNT_BUFFER, cons_seed: int = 1, prod_seed: int = 2
) -> list[str]:
    """Producer/consumer exchange of ``maxcount`` values through a ring buffer."""
    if maxcount < 0:
        raise ValueError("maxcount cannot be negative")
    lines: list[str] = []
    t = _Buffer(maxcount, _RandR(cons_seed), _RandR(prod_seed))

    def consumer(_: object) -> None:
        out = 0
        while out < t.maxcount - 1:
            wanted = min(t.cons_rand() % BUFFER_SIZE + 1, t.maxcount - out - 1)
            lines.append(f"Consumer wants to get {wanted} items out of buffer...")
            for _ in range(wanted):
                t.empty.down()
                out = t.slots[t.tail]
                lines.append(f"Consumer is taking {out} out of buffer")
                t.tail = (t.tail + 1) % BUFFER_SIZE
                t.mutex.down()
                t.size -= 1
                t.mutex.up()
                t.full.up()

    def producer(_: object) -> None:
        count = 0
        create(consumer)
        while count < t.maxcount:
            wanted = min(t.prod_rand() % BUFFER_SIZE + 1, t.maxcount - count)
            lines.append(f"Producer wants to put {wanted} items into buffer...")
            for _ in range(wanted):
                t.full.down()
                lines.append(f"Producer is putting {count} into buffer")
                t.slots[t.head] = count
                count += 1
                t.head = (t.head + 1) % BUFFER_SIZE
                t.mutex.down()
                t.size += 1
                t.mutex.up()
                t.empty.up()

    run(producer)
    for sem in (t.empty, t.full, t.mutex):
        sem.destroy()
    return lines


@dataclass(eq=False)
class _Channel:
    value: int = 0
    produce: Semaphore = field(default_factory=Semaphore)
    consume: Semaphore = field(default_factory=Semaphore)


@dataclass(eq=False)
class _Filter:
    left: _Channel
    right: _Channel
    prime: int


def sem_prime(maximum: int = MAXPRIME) -> list[str]:
    """Find the primes up to ``maximum`` with a growing pipeline of filters."""
    lines: list[str] = []

    def source(channel: _Channel) -> None:
        for number in range(2, maximum + 1):
            channel.value = number
            channel.consume.up()
            channel.produce.down()
        channel.value = -1
        channel.consume.up()
        channel.produce.down()

    def sieve(f: _Filter) -> None:
        while True:
            f.left.consume.down()
            value = f.left.value
            f.left.produce.up()
            if value == -1 or value % f.prime != 0:
                f.right.value = value
                f.right.consume.up()
                f.right.produce.down()
            if value == -1:
                break
        f.left.produce.destroy()
        f.left.consume.destroy()

    def sink(_: object) -> None:
        channel = _Channel()
        create(source, channel)
        while True:
            channel.consume.down()
            value = channel.value
            channel.produce.up()
            if value == -1:
                break
            lines.append(f"{value} is prime.")
            right = _Channel()
            create(sieve, _Filter(channel, right, value))
            channel = right
        channel.produce.destroy()
        channel.consume.destroy()

    run(sink)
    return lines


def spin_preempt(prints: int = MAX_PRINTS) -> list[str]:
    """Spin a thread under preemption.

    Thread "A" is requested before the scheduler is started; that request is
    refused and ignored, so only thread "B" runs.
    """
    lines: list[str] = []

    def spin(name: str) -> None:
        for _ in range(prints):
            lines.append(name)

    try:
        create(spin, "A")
    except UThreadError:
        pass
    run(spin, "B", preempt=True)
    return lines


def _c_integer(text: str) -> int:
    """Parse a non-negative integer with C-style base prefixes."""
    body = text.strip()
    lowered = body.lower()
    try:
        if lowered.startswith("0x"):
            value = int(body[2:], 16)
        elif len(body) > 1 and body.startswith("0"):
            value = int(body[1:], 8)
        else:
            value = int(body, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {text!r}") from None
    if value < 0 or value > _UINT_MASK:
        raise argparse.ArgumentTypeError(f"number out of range: {text!r}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="uthread-demo", description="Run a thread library demonstration."
    )
    demos = parser.add_subparsers(dest="demo", required=True)
    demos.add_parser("hello", help="single thread greeting")
    demos.add_parser("yield", help="thread creation and yielding order")
    demos.add_parser("simple", help="three threads ordered by semaphores")
    count = demos.add_parser("count", help="two threads counting in turn")
    count.add_argument("maxcount", nargs="?", type=_c_integer, default=MAXCOUNT_COUNT)
    buffer = demos.add_parser("buffer", help="producer/consumer through a buffer")
    buffer.add_argument("maxcount", nargs="?", type=_c_integer, default=MAXCOUNT_BUFFER)
    buffer.add_argument("cons_seed", nargs="?", type=_c_integer, default=1)
    buffer.add_argument("prod_seed", nargs="?", type=_c_integer, default=2)
    prime = demos.add_parser("prime", help="prime sieve pipeline")
    prime.add_argument("maximum", nargs="?", type=_c_integer, default=MAXPRIME)
    demos.add_parser("preempt", help="spinning thread under preemption")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the demo named on the command line and print its output."""
    args = _build_parser().parse_args(argv)
    runners: dict[str, Callable[[], list[str]]] = {
        "hello": hello,
        "yield": yield_order,
        "simple": sem_simple,
        "count": lambda: sem_count(args.maxcount),
        "buffer": lambda: sem_buffer(args.maxcount, args.cons_seed, args.prod_seed),
        "prime": lambda: sem_prime(args.maximum),
        "preempt": spin_preempt,
    }
    for line in runners[args.demo]():
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())