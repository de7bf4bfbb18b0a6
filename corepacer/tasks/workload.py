"""Synthetic busy-loop tasks used by the CLI to load the machine."""
from __future__ import annotations

import itertools
import logging
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, Iterator

from corepacer.config import WorkloadConfig
from corepacer.pacing.randomness import RandomnessProvider
from corepacer.tasks.descriptor import TaskDescriptor

logger = logging.getLogger(__name__)


class BusyTask:
    """Keeps one core at full utilisation for a random duration per call.

    The nominal interval is drawn once, in whole seconds, from
    ``[interval_min, interval_max)``.  Every :meth:`calculate` call logs a
    progress line and then spins for ``[busy_min, busy_max)`` milliseconds.
    """

    def __init__(
        self,
        task_id: int,
        config: WorkloadConfig,
        rng: RandomnessProvider,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.task_id = task_id
        self._config = config
        self._rng = rng
        self._clock = clock
        seconds = rng.next_int(
            int(config.interval_min.total_seconds()),
            int(config.interval_max.total_seconds()),
        )
        self.interval = timedelta(seconds=max(1, seconds))
        self.calls = 0
        self._calls_lock = threading.Lock()

    def calculate(self) -> None:
        started = datetime.now()
        logger.info(
            "%s.%03d - ID: %s - Interval: %g",
            started.strftime("%H:%M:%S"),
            started.microsecond // 1000,
            self.task_id,
            self.interval.total_seconds(),
        )
        with self._calls_lock:
            self.calls += 1
        busy_ms = self._rng.next_int(
            _milliseconds(self._config.busy_min), _milliseconds(self._config.busy_max)
        )
        deadline = self._clock() + busy_ms / 1000.0
        while self._clock() < deadline:
            pass

    def descriptor(self) -> TaskDescriptor:
        return TaskDescriptor(
            task_id=self.task_id, nominal_interval=self.interval, work=self.calculate
        )


def generate_tasks(
    config: WorkloadConfig, rng: RandomnessProvider
) -> Iterator[BusyTask]:
    """Yield an endless stream of :class:`BusyTask` with ids 0, 1, 2, ..."""

    for task_id in itertools.count():
        yield BusyTask(task_id, config, rng)


def _milliseconds(value: timedelta) -> int:
    return int(value.total_seconds() * 1000)
