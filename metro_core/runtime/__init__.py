"""Periodic task registry and its runtime helpers."""

from __future__ import annotations

from .duration import DEFAULT_INTERVAL, microseconds, milliseconds, monotonic_us, seconds, to_micros
from .errors import DuplicateTaskError, MetroError, TaskNotFoundError
from .executor import ExecutionMode, InlineExecutor, TaskWorker
from .guard import RuntimeGuard
from .instance import get_instance, shutdown_instances
from .loop import MetroLoop
from .scheduler import DuplicatePolicy, Metro
from .task import Task

__all__ = [
    "DEFAULT_INTERVAL",
    "DuplicatePolicy",
    "DuplicateTaskError",
    "ExecutionMode",
    "InlineExecutor",
    "Metro",
    "MetroError",
    "MetroLoop",
    "RuntimeGuard",
    "Task",
    "TaskNotFoundError",
    "TaskWorker",
    "get_instance",
    "microseconds",
    "milliseconds",
    "monotonic_us",
    "seconds",
    "shutdown_instances",
    "to_micros",
]
