"""Scheduler, admission limiter and trigger machinery."""

from .execution import ExecutionWrapper
from .limiter import AdmissionLimiter
from .scheduler import Scheduler
from .trigger import TriggerHandle, TriggerState

__all__ = [
    "AdmissionLimiter",
    "ExecutionWrapper",
    "Scheduler",
    "TriggerHandle",
    "TriggerState",
]
