"""Bounded-concurrency gate shared by the build/upload workers."""

from __future__ import annotations

import threading
from types import TracebackType


class Throttle:
    """Counting semaphore with a fixed number of permits.

    ``acquire`` blocks the calling worker until a permit is free; ``release``
    hands one back and wakes a single waiter. Waiters are not served in FIFO
    order.

    Usage:
        builds = Throttle(2)
        with builds:
            run_build()
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"throttle capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._in_use = 0
        self._cond = threading.Condition(threading.Lock())

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def in_use(self) -> int:
        with self._cond:
            return self._in_use

    def acquire(self) -> None:
        with self._cond:
            while self._in_use >= self._capacity:
                self._cond.wait()
            self._in_use += 1

    def release(self) -> None:
        with self._cond:
            if self._in_use == 0:
                raise RuntimeError("throttle released more times than acquired")
            self._in_use -= 1
            self._cond.notify()

    def __enter__(self) -> Throttle:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
