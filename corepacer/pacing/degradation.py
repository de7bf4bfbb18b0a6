"""Effective period, phase offset and settle delay calculations.

With ``k = max(1, task_count // cores)`` every task's trigger period becomes
``nominal_interval / k``.  The integer floor division makes the degradation a
step function of the task count: it only changes when the population crosses
a multiple of the core count.

Random values are drawn in whole milliseconds through a
:class:`~corepacer.pacing.randomness.RandomnessProvider`.
"""
from __future__ import annotations

from datetime import timedelta

from corepacer.errors import ConfigurationError
from corepacer.pacing.randomness import RandomnessProvider

_ONE_MS = timedelta(milliseconds=1)


def oversubscription_factor(task_count: int, cores: int) -> int:
    """Return ``k``, the integer ratio of tasks to cores (at least 1)."""

    if cores < 1:
        raise ConfigurationError("concurrency capacity must be at least 1")
    return max(1, task_count // cores)


def effective_period(nominal_interval: timedelta, factor: int) -> timedelta:
    if factor < 1:
        raise ValueError(f"oversubscription factor must be >= 1, got {factor}")
    return nominal_interval / factor


def phase_offset(period: timedelta, rng: RandomnessProvider) -> timedelta:
    """Initial delay before the first firing, uniform in ``[0, period)``."""

    return timedelta(milliseconds=rng.next_int(0, _whole_ms(period)))


def settle_delay(
    period: timedelta, margin: timedelta, rng: RandomnessProvider
) -> timedelta:
    """Wait applied before and after ``work()``.

    The period plus a jitter drawn from ``[0, period + margin)``.
    """

    jitter = rng.next_int(0, _whole_ms(period) + _whole_ms(margin))
    return period + timedelta(milliseconds=jitter)


def _whole_ms(value: timedelta) -> int:
    return max(0, value // _ONE_MS)
