"""Task descriptors and the synthetic CPU-bound workload."""

from .descriptor import TaskDescriptor, Work
from .workload import BusyTask, generate_tasks

__all__ = ["BusyTask", "TaskDescriptor", "Work", "generate_tasks"]
