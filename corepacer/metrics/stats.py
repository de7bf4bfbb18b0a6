"""Thread-safe counters describing what the execution wrapper did."""
from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Dict


@dataclass(slots=True)
class StatsSnapshot:
    """Point-in-time copy of :class:`ExecutionStats`."""

    dispatched: int = 0
    coalesced: int = 0
    started: int = 0
    completed: int = 0
    failed: int = 0
    abandoned: int = 0
    running: int = 0
    peak_running: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class ExecutionStats:
    """Counters updated from the dispatch thread and every pool worker.

    ``running`` counts ``work()`` calls currently in progress; ``peak_running``
    is the highest value it ever reached.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data = StatsSnapshot()

    def record_dispatched(self) -> None:
        with self._lock:
            self._data.dispatched += 1

    def record_coalesced(self) -> None:
        with self._lock:
            self._data.coalesced += 1

    def record_abandoned(self) -> None:
        with self._lock:
            self._data.abandoned += 1

    def work_started(self) -> None:
        with self._lock:
            self._data.started += 1
            self._data.running += 1
            if self._data.running > self._data.peak_running:
                self._data.peak_running = self._data.running

    def work_finished(self, failed: bool) -> None:
        with self._lock:
            self._data.running -= 1
            if failed:
                self._data.failed += 1
            else:
                self._data.completed += 1

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(**asdict(self._data))
