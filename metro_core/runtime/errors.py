"""Exceptions raised by the metro registry."""

from __future__ import annotations


class MetroError(Exception):
    """Base class for registry errors."""


class TaskNotFoundError(MetroError, KeyError):
    """Raised when a task name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"no task registered under {self.name!r}"


class DuplicateTaskError(MetroError, ValueError):
    """Raised by ``DuplicatePolicy.RAISE`` when a name is already taken."""

    def __init__(self, name: str) -> None:
        super().__init__(f"task {name!r} is already registered")
        self.name = name


__all__ = ["DuplicateTaskError", "MetroError", "TaskNotFoundError"]
