"""Core-bounded periodic scheduler for CPU-bound tasks."""

from .cli import main as cli_main
from .config_loader import load_config
from .errors import ConfigurationError, PacerError, ReporterError, SchedulerStateError
from .services import AdmissionLimiter, Scheduler
from .tasks import TaskDescriptor

__all__ = [
    "AdmissionLimiter",
    "ConfigurationError",
    "PacerError",
    "ReporterError",
    "Scheduler",
    "SchedulerStateError",
    "TaskDescriptor",
    "cli_main",
    "load_config",
    "config",
    "metrics",
    "notifiers",
    "pacing",
    "services",
    "tasks",
]
