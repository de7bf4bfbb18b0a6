"""Injectable source of random integers."""
from __future__ import annotations

import random
import threading
from typing import Optional, Protocol


class RandomnessProvider(Protocol):
    """Anything able to hand out integers in ``[low, high)``."""

    def next_int(self, low: int, high: int) -> int:
        ...


class SystemRandomness:
    """:class:`random.Random` behind a lock.

    An empty range (``high <= low``) yields ``low`` instead of raising, so a
    zero-length period simply produces a zero offset.
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def next_int(self, low: int, high: int) -> int:
        if high <= low:
            return low
        with self._lock:
            return self._random.randrange(low, high)
