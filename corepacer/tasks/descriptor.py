"""Immutable description of a periodically invoked unit of work."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Hashable

Work = Callable[[], None]


@dataclass(frozen=True, slots=True)
class TaskDescriptor:
    """A task the scheduler triggers once per ``nominal_interval``.

    ``work`` is expected to block its thread for a bounded time while keeping
    one core busy.  The scheduler only keeps a reference to the descriptor
    and never mutates it.
    """

    task_id: Hashable
    nominal_interval: timedelta
    work: Work

    def __post_init__(self) -> None:
        if self.nominal_interval <= timedelta(0):
            raise ValueError(
                f"task {self.task_id!r}: nominal interval must be positive"
            )
