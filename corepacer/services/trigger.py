"""Per-task trigger state owned by the scheduler."""
from __future__ import annotations

import enum
import threading
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from corepacer.tasks.descriptor import TaskDescriptor


class TriggerState(enum.Enum):
    IDLE = "idle"
    ARMED = "armed"
    DISPOSED = "disposed"


@dataclass(slots=True, eq=False)
class TriggerHandle:
    """Repeating trigger for one task.

    Firings follow a fixed grid ``armed_at + phase_offset + n * effective_period``
    regardless of how long previous executions took.  When the dispatcher
    falls behind by more than one period, the missed grid points are counted
    in ``skipped`` rather than fired in a burst.  At most one firing per
    task waits for admission at a time; see :meth:`enter_flight`.
    """

    task: TaskDescriptor
    effective_period: timedelta
    phase_offset: timedelta
    state: TriggerState = TriggerState.IDLE
    next_fire_at: Optional[float] = None
    firings: int = 0
    skipped: int = 0
    in_flight: int = 0
    queued: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def task_id(self):
        return self.task.task_id

    @property
    def is_armed(self) -> bool:
        return self.state is TriggerState.ARMED

    def arm(self, now: float) -> float:
        with self._lock:
            if self.state is TriggerState.DISPOSED:
                raise RuntimeError(f"trigger for task {self.task_id!r} is disposed")
            self.state = TriggerState.ARMED
            self.next_fire_at = now + self.phase_offset.total_seconds()
            return self.next_fire_at

    def advance(self, now: float) -> float:
        """Move to the next grid point strictly after ``now``."""

        with self._lock:
            if self.next_fire_at is None:
                raise RuntimeError(f"trigger for task {self.task_id!r} was never armed")
            self.firings += 1
            # Sub-millisecond periods fire at most once per millisecond.
            period = max(self.effective_period.total_seconds(), 0.001)
            next_at = self.next_fire_at + period
            if next_at <= now:
                missed = int((now - next_at) // period) + 1
                self.skipped += missed
                next_at += missed * period
            self.next_fire_at = next_at
            return next_at

    def dispose(self) -> None:
        with self._lock:
            self.state = TriggerState.DISPOSED

    def enter_flight(self, single_flight: bool) -> bool:
        """Mark one execution as queued and in flight.

        Refused while an earlier firing is still waiting for admission, so a
        task never has more than one firing queued.  With ``single_flight``
        it is also refused while any earlier firing is still running.
        """

        with self._lock:
            if self.queued or (single_flight and self.in_flight):
                return False
            self.queued = True
            self.in_flight += 1
            return True

    def mark_admitted(self) -> None:
        with self._lock:
            self.queued = False

    def leave_flight(self, admitted: bool = True) -> None:
        with self._lock:
            self.in_flight -= 1
            if not admitted:
                self.queued = False
