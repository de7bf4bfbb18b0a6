"""Work failure reporting backends."""

from .reporters import FailureReporter, LoggingReporter, WebhookReporter

__all__ = ["FailureReporter", "LoggingReporter", "WebhookReporter"]
