"""Counting gate that bounds concurrent ``work()`` calls to the core count."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from corepacer.errors import ConfigurationError


class AdmissionLimiter:
    """A :class:`threading.BoundedSemaphore` that also reports its usage.

    Every successful :meth:`acquire` must be matched by exactly one
    :meth:`release`; prefer :meth:`slot`, which releases on every exit path.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ConfigurationError("concurrency capacity must be at least 1")
        self._capacity = capacity
        self._semaphore = threading.BoundedSemaphore(capacity)
        self._lock = threading.Lock()
        self._in_use = 0
        self._peak = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def in_use(self) -> int:
        with self._lock:
            return self._in_use

    @property
    def available(self) -> int:
        with self._lock:
            return self._capacity - self._in_use

    @property
    def peak(self) -> int:
        """Highest number of units ever granted at the same time."""

        with self._lock:
            return self._peak

    def acquire(self, timeout: Optional[float] = None) -> bool:
        """Block until a unit is free; return ``False`` only on timeout."""

        if not self._semaphore.acquire(timeout=timeout):
            return False
        with self._lock:
            self._in_use += 1
            if self._in_use > self._peak:
                self._peak = self._in_use
        return True

    def release(self) -> None:
        with self._lock:
            if self._in_use == 0:
                raise ValueError("release() called without a matching acquire()")
            self._in_use -= 1
        self._semaphore.release()

    @contextmanager
    def slot(self) -> Iterator[None]:
        self.acquire()
        try:
            yield
        finally:
            self.release()
