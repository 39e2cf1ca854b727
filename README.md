# uthread

uthread is a small library of user-level threads. One scheduler runs them
one at a time, in FIFO order. A thread keeps the processor until it yields,
blocks or finishes. If preemption is switched on, a timer tick can also
force it to yield. Semaphores let threads wait for one another.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Threads

The `uthread.scheduler` module provides the threads.

`run(func, arg=None, preempt=False)` starts the scheduler and runs
`func(arg)` as the first thread. It returns once no thread can run any
more. Some threads may still be blocked at that point, for example on a
semaphore that nobody releases. Those threads are discarded. If any thread
raised an exception, `run` raises the first such exception again after the
scheduler has shut down. Calling `run` while a scheduler is already running
raises `UThreadError`.

Call these from inside a running thread:

- `create(func, arg=None)` adds a new thread to the end of the ready queue
  and returns its `ThreadControlBlock`.
- `yield_now()` moves the caller to the end of the ready queue and runs the
  next ready thread. If no other thread is ready, it does nothing. If no
  scheduler is running, it also does nothing.
- `exit_thread()` ends the calling thread. It does not return.
- `block()` suspends the calling thread. The thread stays suspended until
  another thread passes its control block to `unblock(tcb)`.

`current()` returns the running thread's `ThreadControlBlock`. It returns
`None` when no scheduler is running. A `ThreadControlBlock` holds the
thread's `func`, `arg` and `name`. Its `is_idle` property is true for the
scheduler's own idle thread.

Any of these calls raises `UThreadError` when it is used outside the running
user-level thread. `unblock` also raises `UThreadError` if the thread is not
blocked or has already finished.

```python
from uthread import scheduler

def child(name):
    print(name)

def parent(_):
    scheduler.create(child, "child")
    scheduler.yield_now()
    print("parent")

scheduler.run(parent)
# child
# parent
```

## Semaphores

`uthread.semaphore.Semaphore(count=0)` keeps a count of available resources.
A negative count raises `ValueError`. Its members are:

- `down()` takes one resource. If none is available, the calling thread
  blocks until one is handed to it. If the count is zero and the caller is
  not a running user-level thread, `down()` raises `SemaphoreError` instead.
- `up()` wakes the oldest waiting thread if there is one. Otherwise it adds
  one to the count.
- `count` gives the number of resources currently available.
- `waiting()` gives the number of threads blocked on the semaphore.
- `destroy()` releases the semaphore. It raises `SemaphoreError` while
  threads are still waiting. Once it has been destroyed, any further use of
  the semaphore raises `SemaphoreError`.

## Queue

`uthread.fifo.Queue` is the FIFO queue that the scheduler and the semaphores
use. Items are matched by identity, and `None` cannot be stored.

- `enqueue(data)` adds an item at the tail.
- `dequeue()` removes and returns the oldest item.
- `delete(data)` removes the oldest item that is `data`.
- `iterate(func)` calls `func(queue, item)` on each item, oldest first.
  `func` may delete items while it runs. An item deleted before its turn is
  skipped.
- `destroy()` releases the queue. The queue must be empty.
- `len(queue)` gives the number of items, and iterating over the queue
  yields a snapshot of its items.

Misuse raises `QueueError`. Examples are dequeueing from an empty queue,
deleting an item that is not present, destroying a non-empty queue, and
using a queue after it has been destroyed.

## Preemption

`uthread.preempt.Preemption(handler, hz=100)` is a tick source based on
process CPU time. After `start(True)`, a tick falls due every `1/hz`
seconds of CPU time. When a tick is due, the next traced Python line
executed by a thread started after `start` calls `handler()`.

- `start(False)` does nothing. Without a successful start, every other
  method is ineffective.
- `disable()` holds ticks back and `enable()` releases them.
- `disabled()` is a context manager that holds ticks back for the length of
  a block and then restores the previous state.
- `consume_tick()` returns `True` and rearms the timer when a tick is due
  and deliverable.
- `stop()` restores the previous trace hook.

The scheduler uses `Preemption` when `run(..., preempt=True)` is given. Its
tick handler makes the running thread yield.

## Demo programs

`uthread.demos` contains example programs. Each one runs under the scheduler
and returns the lines it produced:

- `hello()` prints a single greeting.
- `yield_order()` shows that a parent runs again before its child. It
  returns `thread1`, `thread2`, `thread3`.
- `sem_simple()` uses three semaphores to put the messages of three
  threads in order.
- `sem_count(maxcount=20)` runs two threads that take turns counting up to
  `maxcount - 1`.
- `sem_buffer(maxcount=1000, cons_seed=1, prod_seed=2)` passes values from
  a producer to a consumer through a 16-slot ring buffer.
- `sem_prime(maximum=1000)` finds prime numbers with a pipeline of filter
  threads that grows as it runs.
- `spin_preempt(prints=10)` runs a spinning thread with preemption on.

The `uthread-demo` command runs a demo and prints its lines. Numbers may be
given in decimal, in hex with a `0x` prefix, or in octal with a leading `0`.

```
uthread-demo hello
uthread-demo yield
uthread-demo simple
uthread-demo count 20
uthread-demo buffer 1000 1 2
uthread-demo prime 100
uthread-demo preempt
```

## Limitations

Threads do not run in parallel. Each user-level thread is carried by a
Python thread, and the scheduler hands control to exactly one of them at a
time. Preemption can only interrupt Python code that is being traced. A
thread that is busy inside a long native call is not interrupted until that
call returns.