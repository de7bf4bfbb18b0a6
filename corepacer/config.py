"""Configuration schema for corepacer.

The dataclasses below describe how the scheduler, the synthetic CPU-bound
workload and the failure reporter are configured.  They carry defaults that
match a single machine with eight cores running a thousand tasks, so the CLI
works without any configuration file.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional


@dataclass(slots=True)
class SchedulerConfig:
    """Admission and timing knobs for :class:`corepacer.services.Scheduler`."""

    concurrency_capacity: int = 8
    jitter_margin: timedelta = timedelta(milliseconds=100)
    worker_threads: Optional[int] = None
    single_flight: bool = False

    def resolved_worker_threads(self) -> int:
        """Return the pool size, defaulting to four workers per core."""

        if self.worker_threads is not None:
            return max(1, self.worker_threads)
        return max(1, self.concurrency_capacity * 4)


@dataclass(slots=True)
class WorkloadConfig:
    """Shape of the synthetic busy-loop task population."""

    task_count: int = 1000
    interval_min: timedelta = timedelta(seconds=1)
    interval_max: timedelta = timedelta(seconds=10)
    busy_min: timedelta = timedelta(milliseconds=500)
    busy_max: timedelta = timedelta(milliseconds=1500)
    seed: Optional[int] = None


@dataclass(slots=True)
class ReporterConfig:
    """Where work failures are delivered besides the log."""

    webhook_url: Optional[str] = None
    request_timeout: float = 5.0


@dataclass(slots=True)
class PacerConfig:
    """Top-level configuration bundle."""

    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    workload: WorkloadConfig = field(default_factory=WorkloadConfig)
    reporter: ReporterConfig = field(default_factory=ReporterConfig)
