"""Callback executed for every trigger firing."""
from __future__ import annotations

import logging
import threading
from datetime import timedelta

from corepacer.metrics import ExecutionStats
from corepacer.notifiers import FailureReporter
from corepacer.pacing import RandomnessProvider, settle_delay
from corepacer.services.limiter import AdmissionLimiter
from corepacer.services.trigger import TriggerHandle
from corepacer.tasks import TaskDescriptor

logger = logging.getLogger(__name__)


class ExecutionWrapper:
    """Admit, settle, run ``work()``, settle again, release.

    The admission unit is returned in a ``finally`` block, so neither a
    failing ``work()`` nor a stop request can leak capacity.  Errors raised
    by ``work()`` are handed to the reporter and never leave :meth:`__call__`.
    Once ``stop_event`` is set, settle waits end early and a firing that has
    not reached ``work()`` yet is abandoned.
    """

    def __init__(
        self,
        limiter: AdmissionLimiter,
        rng: RandomnessProvider,
        jitter_margin: timedelta,
        reporter: FailureReporter,
        stats: ExecutionStats,
        stop_event: threading.Event,
    ) -> None:
        self._limiter = limiter
        self._rng = rng
        self._jitter_margin = jitter_margin
        self._reporter = reporter
        self._stats = stats
        self._stop_event = stop_event

    def __call__(self, handle: TriggerHandle) -> None:
        admitted = False
        try:
            delay = settle_delay(handle.effective_period, self._jitter_margin, self._rng)
            with self._limiter.slot():
                handle.mark_admitted()
                admitted = True
                if self._cancelled(handle) or self._settle(delay):
                    self._stats.record_abandoned()
                    return
                self._run_work(handle.task)
                self._settle(delay)
        finally:
            handle.leave_flight(admitted)

    def _cancelled(self, handle: TriggerHandle) -> bool:
        return self._stop_event.is_set() or not handle.is_armed

    def _settle(self, delay: timedelta) -> bool:
        """Wait out ``delay``; return ``True`` if a stop was requested."""

        return self._stop_event.wait(delay.total_seconds())

    def _run_work(self, task: TaskDescriptor) -> None:
        failed = False
        self._stats.work_started()
        try:
            task.work()
        except Exception as exc:  # noqa: BLE001 - work errors never escape a firing
            failed = True
            self._report(task, exc)
        finally:
            self._stats.work_finished(failed)

    def _report(self, task: TaskDescriptor, exc: Exception) -> None:
        try:
            self._reporter.report(task, exc)
        except Exception:  # noqa: BLE001
            logger.exception("failure reporter raised while reporting task %r", task.task_id)
