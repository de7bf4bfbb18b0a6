"""Destinations for errors raised by a task's ``work()`` call."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from corepacer.config import ReporterConfig
from corepacer.errors import ConfigurationError, ReporterError
from corepacer.tasks.descriptor import TaskDescriptor

logger = logging.getLogger(__name__)


class FailureReporter(Protocol):
    """Receives every exception raised by a task's work function."""

    def report(self, task: TaskDescriptor, exc: BaseException) -> None:
        ...


class LoggingReporter:
    """Write the failure and its traceback to the ``corepacer`` log."""

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self._log = log or logger

    def report(self, task: TaskDescriptor, exc: BaseException) -> None:
        self._log.error(
            "task %r failed (nominal interval %.3fs): %s",
            task.task_id,
            task.nominal_interval.total_seconds(),
            exc,
            exc_info=exc,
        )


class WebhookReporter:
    """POST a JSON description of each failure to an HTTP endpoint.

    The request body has the shape ``{"task_id": ..., "nominal_interval_seconds":
    float, "error": str, "message": str}``.
    """

    def __init__(
        self,
        config: ReporterConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not config.webhook_url:
            raise ConfigurationError("webhook reporter requires a webhook_url")
        self._config = config
        self._client = httpx.Client(
            timeout=config.request_timeout,
            follow_redirects=True,
            transport=transport,
        )

    def report(self, task: TaskDescriptor, exc: BaseException) -> None:
        payload = self._payload(task, exc)
        try:
            response = self._client.post(self._config.webhook_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc_http:
            raise ReporterError(
                f"could not deliver failure report for task {task.task_id!r}: {exc_http}"
            ) from exc_http

    def close(self) -> None:
        """Close the underlying :class:`httpx.Client`."""

        self._client.close()

    def __enter__(self) -> "WebhookReporter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    @staticmethod
    def _payload(task: TaskDescriptor, exc: BaseException) -> Dict[str, Any]:
        task_id = task.task_id
        if not isinstance(task_id, (str, int, float, bool)):
            task_id = str(task_id)
        return {
            "task_id": task_id,
            "nominal_interval_seconds": task.nominal_interval.total_seconds(),
            "error": type(exc).__name__,
            "message": str(exc),
        }
