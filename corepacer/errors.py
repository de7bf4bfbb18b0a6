"""Exception hierarchy shared by the scheduler components."""
from __future__ import annotations


class PacerError(RuntimeError):
    """Generic corepacer failure."""


class ConfigurationError(PacerError, ValueError):
    """Raised when the scheduler is started with an unusable configuration."""


class SchedulerStateError(PacerError):
    """Raised when a lifecycle method is called in the wrong state."""


class ReporterError(PacerError):
    """Raised when a failure report cannot be delivered."""
