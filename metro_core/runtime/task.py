"""A single periodic task and its trigger decision."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Union

from .duration import (
    DurationLike,
    TimeFn,
    microseconds,
    milliseconds,
    monotonic_us,
    non_negative,
    seconds,
)
from .executor import Body, InlineExecutor, TaskWorker

logger = logging.getLogger(__name__)

Executor = Union[InlineExecutor, TaskWorker]


class Task:
    """Periodic task polled by its owning :class:`~metro_core.runtime.scheduler.Metro`.

    A task fires when strictly more than ``interval`` microseconds separate
    ``now`` from ``last_triggered``. Tasks are created through
    ``Metro.add`` and live only as long as the registry holds them.
    """

    def __init__(
        self,
        name: str,
        body: Body,
        interval: DurationLike,
        *,
        delay: DurationLike = 0,
        catch_up: bool = True,
        executor: Optional[Executor] = None,
        time_fn: Optional[TimeFn] = None,
    ) -> None:
        if not callable(body):
            raise TypeError("task body must be callable")
        self._name = name
        self.body = body
        self._interval = non_negative(interval, "interval")
        self._delay = non_negative(delay, "delay")
        self.catch_up = catch_up
        self.enabled = True
        self.fired = 0
        self._executor: Executor = executor or InlineExecutor()
        self._time_fn = time_fn or monotonic_us
        self.last_triggered = 0
        self.reset()

    @property
    def name(self) -> str:
        return self._name

    @property
    def interval(self) -> int:
        return self._interval

    @property
    def delay(self) -> int:
        return self._delay

    @property
    def executor(self) -> Executor:
        return self._executor

    # ------------------------------------------------------------------
    # Trigger decision
    # ------------------------------------------------------------------
    def poll(self, now: Optional[int] = None) -> bool:
        """Fire the task if it is due at ``now``. Returns whether it fired."""

        if not self.enabled:
            return False
        if now is None:
            now = self._time_fn()
        diff = now - self.last_triggered
        if diff <= self._interval:
            return False

        if self._executor.closed:
            logger.debug("task %s is closed; skipping firing", self._name)
            return False

        started = self._time_fn()
        self._executor.submit(self.body)
        self.fired += 1

        if self.catch_up:
            self.last_triggered += diff
        else:
            # inline body time is left out of the next interval
            self.last_triggered = now + max(0, self._time_fn() - started)
        logger.debug("task %s fired (diff=%sus, last_triggered=%s)", self._name, diff, self.last_triggered)
        return True

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def set_interval(self, interval: DurationLike) -> "Task":
        self._interval = non_negative(interval, "interval")
        return self

    def set_interval_us(self, value: int) -> "Task":
        return self.set_interval(microseconds(value))

    def set_interval_ms(self, value: int) -> "Task":
        return self.set_interval(milliseconds(value))

    def set_interval_sec(self, value: int) -> "Task":
        return self.set_interval(seconds(value))

    def set_delay(self, delay: DurationLike) -> "Task":
        """Change the start offset. Takes effect on the next :meth:`reset`."""

        self._delay = non_negative(delay, "delay")
        return self

    def set_delay_us(self, value: int) -> "Task":
        return self.set_delay(microseconds(value))

    def set_delay_ms(self, value: int) -> "Task":
        return self.set_delay(milliseconds(value))

    def set_delay_sec(self, value: int) -> "Task":
        return self.set_delay(seconds(value))

    # ------------------------------------------------------------------
    # Gate and clock
    # ------------------------------------------------------------------
    def reset(self, reference_time: Optional[int] = None) -> None:
        if reference_time is None:
            reference_time = self._time_fn()
        self.last_triggered = reference_time + self._delay

    def enable(self, reset_time_point: bool = False, now: Optional[int] = None) -> None:
        self.enabled = True
        if reset_time_point:
            self.last_triggered = self._time_fn() if now is None else now

    def disable(self) -> None:
        self.enabled = False

    def close(self, wait: bool = True) -> None:
        self._executor.close(wait=wait)

    def describe(self) -> Dict[str, object]:
        return {
            "name": self._name,
            "interval_us": self._interval,
            "delay_us": self._delay,
            "enabled": self.enabled,
            "catch_up": self.catch_up,
            "last_triggered": self.last_triggered,
            "fired": self.fired,
            "busy": self._executor.busy,
        }

    def __repr__(self) -> str:
        return f"Task(name={self._name!r}, interval={self._interval}, enabled={self.enabled})"


__all__ = ["Executor", "Task"]
