"""Integer microsecond durations and the default scheduler clock."""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Callable, Union

DurationLike = Union[int, timedelta]
TimeFn = Callable[[], int]

MICROS_PER_MILLI = 1_000
MICROS_PER_SECOND = 1_000_000


def microseconds(value: int) -> int:
    return int(value)


def milliseconds(value: int) -> int:
    return int(value) * MICROS_PER_MILLI


def seconds(value: int) -> int:
    return int(value) * MICROS_PER_SECOND


DEFAULT_INTERVAL = milliseconds(1000)


def to_micros(value: DurationLike) -> int:
    """Normalise ``value`` into integer microseconds.

    Plain integers are taken as microseconds already. ``timedelta`` values
    are converted exactly (``timedelta`` itself has microsecond resolution).
    """

    if isinstance(value, timedelta):
        return (value.days * 86_400 + value.seconds) * MICROS_PER_SECOND + value.microseconds
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"duration must be int microseconds or timedelta, got {type(value).__name__}")
    return value


def non_negative(value: DurationLike, what: str) -> int:
    micros = to_micros(value)
    if micros < 0:
        raise ValueError(f"{what} must not be negative")
    return micros


def monotonic_us() -> int:
    """Current monotonic clock reading in microseconds."""

    return time.monotonic_ns() // 1_000


__all__ = [
    "DEFAULT_INTERVAL",
    "DurationLike",
    "MICROS_PER_MILLI",
    "MICROS_PER_SECOND",
    "TimeFn",
    "microseconds",
    "milliseconds",
    "monotonic_us",
    "non_negative",
    "seconds",
    "to_micros",
]
