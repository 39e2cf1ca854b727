"""User-level threads with a FIFO scheduler, optional preemption, semaphores and demos."""

__version__ = "0.1.0"
__all__ = ["fifo", "preempt", "scheduler", "semaphore", "demos"]