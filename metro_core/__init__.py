"""metro_core: pull-based periodic task scheduler."""

from __future__ import annotations

from .runtime import (
    DEFAULT_INTERVAL,
    DuplicatePolicy,
    DuplicateTaskError,
    ExecutionMode,
    Metro,
    MetroError,
    MetroLoop,
    RuntimeGuard,
    Task,
    TaskNotFoundError,
    microseconds,
    milliseconds,
    seconds,
)

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_INTERVAL",
    "DuplicatePolicy",
    "DuplicateTaskError",
    "ExecutionMode",
    "Metro",
    "MetroError",
    "MetroLoop",
    "RuntimeGuard",
    "Task",
    "TaskNotFoundError",
    "__version__",
    "microseconds",
    "milliseconds",
    "seconds",
]
