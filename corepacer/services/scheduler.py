"""Periodic triggering of CPU-bound tasks under a core-sized admission gate."""
from __future__ import annotations

import heapq
import functools
import itertools
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Set, Tuple

from corepacer.config import SchedulerConfig
from corepacer.errors import ConfigurationError, SchedulerStateError
from corepacer.metrics import ExecutionStats, StatsSnapshot
from corepacer.notifiers import FailureReporter, LoggingReporter
from corepacer.pacing import (
    RandomnessProvider,
    SystemRandomness,
    effective_period,
    oversubscription_factor,
    phase_offset,
)
from corepacer.services.execution import ExecutionWrapper
from corepacer.services.limiter import AdmissionLimiter
from corepacer.services.trigger import TriggerHandle
from corepacer.tasks import TaskDescriptor

logger = logging.getLogger(__name__)

_HeapEntry = Tuple[float, int, TriggerHandle]


class Scheduler:
    """Fire every task's work once per effective period, at most ``capacity`` at a time.

    A single dispatch thread keeps all trigger handles in a min-heap ordered
    by their next fire time and submits due firings to a shared
    :class:`~concurrent.futures.ThreadPoolExecutor`.  Each firing then
    competes for the :class:`AdmissionLimiter`, which is the only place where
    backpressure is applied.  A task has at most one firing waiting for
    admission; later ticks are coalesced until it is admitted, so the pool's
    queue stays bounded by the task count.

    ``clock`` supplies the monotonic time, in seconds, used for the trigger
    grid.
    """

    def __init__(
        self,
        tasks: Sequence[TaskDescriptor],
        config: Optional[SchedulerConfig] = None,
        rng: Optional[RandomnessProvider] = None,
        reporter: Optional[FailureReporter] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._tasks = tuple(tasks)
        self._config = config or SchedulerConfig()
        self._rng = rng or SystemRandomness()
        self._reporter = reporter or LoggingReporter()
        self._clock = clock
        self._stats = ExecutionStats()
        self._stop_event = threading.Event()
        self._condition = threading.Condition()
        self._heap: List[_HeapEntry] = []
        self._sequence = itertools.count()
        self._handles: Tuple[TriggerHandle, ...] = ()
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()
        self._limiter: Optional[AdmissionLimiter] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._wrapper: Optional[ExecutionWrapper] = None
        self._thread: Optional[threading.Thread] = None
        self._factor: Optional[int] = None
        self._started = False
        self._stopped = False

    # ------------------------------------------------------------------
    # Public API
    @property
    def handles(self) -> Tuple[TriggerHandle, ...]:
        return self._handles

    @property
    def limiter(self) -> Optional[AdmissionLimiter]:
        return self._limiter

    @property
    def oversubscription_factor(self) -> Optional[int]:
        return self._factor

    @property
    def running(self) -> bool:
        return self._started and not self._stopped

    @property
    def pending_firings(self) -> int:
        """Firings submitted to the pool that have not finished yet."""

        with self._pending_lock:
            return len(self._pending)

    def stats(self) -> StatsSnapshot:
        return self._stats.snapshot()

    def start(self) -> None:
        """Validate the configuration and arm one trigger per task.

        Raises :class:`ConfigurationError` for a capacity below one or an
        empty task list, and :class:`SchedulerStateError` when called twice.
        """

        if self._started:
            raise SchedulerStateError("scheduler has already been started")
        capacity = self._config.concurrency_capacity
        if capacity < 1:
            raise ConfigurationError("concurrency capacity must be at least 1")
        if not self._tasks:
            raise ConfigurationError("at least one task must be specified")

        factor = oversubscription_factor(len(self._tasks), capacity)
        handles = []
        for task in self._tasks:
            period = effective_period(task.nominal_interval, factor)
            handles.append(
                TriggerHandle(
                    task=task,
                    effective_period=period,
                    phase_offset=phase_offset(period, self._rng),
                )
            )

        self._factor = factor
        self._limiter = AdmissionLimiter(capacity)
        self._executor = ThreadPoolExecutor(
            max_workers=self._config.resolved_worker_threads(),
            thread_name_prefix="corepacer-worker",
        )
        self._wrapper = ExecutionWrapper(
            limiter=self._limiter,
            rng=self._rng,
            jitter_margin=self._config.jitter_margin,
            reporter=self._reporter,
            stats=self._stats,
            stop_event=self._stop_event,
        )

        now = self._clock()
        with self._condition:
            for handle in handles:
                fire_at = handle.arm(now)
                heapq.heappush(self._heap, (fire_at, next(self._sequence), handle))
            self._handles = tuple(handles)
            self._started = True

        self._thread = threading.Thread(
            target=self._run, daemon=True, name="corepacer-dispatch"
        )
        self._thread.start()
        logger.info(
            "Scheduler started: %d tasks, capacity %d, oversubscription factor %d.",
            len(handles),
            capacity,
            factor,
        )

    def stop(self, wait: bool = True) -> None:
        """Dispose every trigger so no new firing starts.

        Firings still queued for a worker are cancelled, firings waiting for
        admission or settling are abandoned, and ``work()`` calls already in
        progress run to completion.  With ``wait`` the call returns only once
        they have.  Calling ``stop`` again, or before ``start``, does nothing.
        """

        with self._condition:
            if not self._started or self._stopped:
                return
            self._stopped = True
            for handle in self._handles:
                handle.dispose()
            self._heap.clear()
            self._stop_event.set()
            self._condition.notify_all()

        if self._thread is not None:
            self._thread.join()
        with self._pending_lock:
            pending = list(self._pending)
        for future in pending:
            future.cancel()
        if self._executor is not None:
            self._executor.shutdown(wait=wait, cancel_futures=True)
        logger.info("Scheduler stopped.")

    def __enter__(self) -> "Scheduler":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.stop()

    # ------------------------------------------------------------------
    # Dispatch loop
    def _run(self) -> None:
        while True:
            with self._condition:
                while not self._stopped and not self._heap:
                    self._condition.wait()
                if self._stopped:
                    break
                fire_at, _, handle = self._heap[0]
                now = self._clock()
                delay = fire_at - now
                if delay > 0:
                    self._condition.wait(timeout=delay)
                    continue
                heapq.heappop(self._heap)
                if not handle.is_armed:
                    continue
                next_at = handle.advance(now)
                heapq.heappush(self._heap, (next_at, next(self._sequence), handle))
            self._dispatch(handle)

    def _dispatch(self, handle: TriggerHandle) -> None:
        if not handle.enter_flight(self._config.single_flight):
            self._stats.record_coalesced()
            logger.debug("Task %r already has a firing pending, coalesced.", handle.task_id)
            return
        future = self._executor.submit(self._wrapper, handle)
        self._stats.record_dispatched()
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(functools.partial(self._settled, handle))

    def _settled(self, handle: TriggerHandle, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)
        if future.cancelled():
            # The wrapper never ran, so its flight bookkeeping is ours to undo.
            self._stats.record_abandoned()
            handle.leave_flight(admitted=False)
