"""Execution statistics."""

from .stats import ExecutionStats, StatsSnapshot

__all__ = ["ExecutionStats", "StatsSnapshot"]
