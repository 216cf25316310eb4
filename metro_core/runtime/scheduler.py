"""Pull-based registry of named periodic tasks."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Iterator, List, Optional

from .duration import (
    DEFAULT_INTERVAL,
    DurationLike,
    TimeFn,
    microseconds,
    milliseconds,
    monotonic_us,
    non_negative,
    seconds,
)
from .errors import DuplicateTaskError, TaskNotFoundError
from .executor import Body, ErrorHandler, ExecutionMode, InlineExecutor, TaskWorker
from .task import Executor, Task

logger = logging.getLogger(__name__)


class DuplicatePolicy(str, Enum):
    """What ``Metro.add`` does when the name is already registered."""

    KEEP = "keep"
    REPLACE = "replace"
    RAISE = "raise"


class Metro:
    """Registry of periodic tasks driven by the host's own loop.

    Call :meth:`tick` (or :meth:`poll_all` with an explicit timestamp)
    repeatedly; every enabled task whose interval has elapsed fires once per
    call. The registry holds no lock: adding, removing, toggling and polling
    must all happen on the same thread. In ``THREADED`` mode only the task
    bodies leave that thread.
    """

    def __init__(
        self,
        mode: ExecutionMode = ExecutionMode.INLINE,
        *,
        time_fn: Optional[TimeFn] = None,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.KEEP,
        default_interval: DurationLike = DEFAULT_INTERVAL,
        max_pending: int = 1,
        on_error: Optional[ErrorHandler] = None,
    ) -> None:
        if max_pending < 1:
            raise ValueError("max_pending must be at least 1")
        self.mode = ExecutionMode(mode)
        self.duplicate_policy = DuplicatePolicy(duplicate_policy)
        self._time_fn = time_fn or monotonic_us
        self._default_interval = non_negative(default_interval, "default_interval")
        self._max_pending = max_pending
        self.on_error = on_error
        self._tasks: Dict[str, Task] = {}
        self._counter = 0
        self._closed = False

    @property
    def threaded(self) -> bool:
        return self.mode is ExecutionMode.THREADED

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def add(
        self,
        body: Body,
        interval: Optional[DurationLike] = None,
        *,
        name: Optional[str] = None,
        delay: DurationLike = 0,
        catch_up: bool = True,
    ) -> Task:
        """Register ``body`` to run every ``interval`` microseconds.

        Returns the stored task so interval and delay can be chained. When
        ``name`` is omitted a ``func<N>`` name is generated from a counter
        that never reuses a name still in the registry.
        """

        if self._closed:
            raise RuntimeError("metro is closed")
        if interval is None:
            interval = self._default_interval
        if name is None:
            name = self._generate_name()

        existing = self._tasks.get(name)
        if existing is not None:
            if self.duplicate_policy is DuplicatePolicy.RAISE:
                raise DuplicateTaskError(name)
            if self.duplicate_policy is DuplicatePolicy.KEEP:
                logger.warning("task %s already registered; keeping the existing task", name)
                return existing
            logger.info("replacing task %s", name)
            del self._tasks[name]
            existing.close()

        task = Task(
            name,
            body,
            interval,
            delay=delay,
            catch_up=catch_up,
            executor=self._make_executor(name),
            time_fn=self._time_fn,
        )
        self._tasks[name] = task
        logger.debug("registered task %s (interval=%sus, delay=%sus)", name, task.interval, task.delay)
        return task

    def add_us(self, interval: int, body: Body, **kwargs) -> Task:
        return self.add(body, microseconds(interval), **kwargs)

    def add_ms(self, interval: int, body: Body, **kwargs) -> Task:
        return self.add(body, milliseconds(interval), **kwargs)

    def add_sec(self, interval: int, body: Body, **kwargs) -> Task:
        return self.add(body, seconds(interval), **kwargs)

    def remove(self, name: str) -> None:
        task = self._tasks.pop(name, None)
        if task is None:
            return
        task.close()
        logger.debug("removed task %s", name)

    # ------------------------------------------------------------------
    # Gate and clock
    # ------------------------------------------------------------------
    def enable(self, name: str, reset_time_point: bool = False) -> None:
        self[name].enable(reset_time_point=reset_time_point, now=self._time_fn())

    def disable(self, name: str) -> None:
        self[name].disable()

    def reset_all(self, now: Optional[int] = None) -> None:
        if now is None:
            now = self._time_fn()
        for task in self._tasks.values():
            task.reset(now)

    reset = reset_all

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------
    def poll_all(self, now: Optional[int] = None) -> int:
        """Poll every task once at ``now``. Returns the number that fired.

        In inline mode an exception raised by a task body propagates and the
        rest of the pass is skipped.
        """

        if now is None:
            now = self._time_fn()
        fired = 0
        for name, task in list(self._tasks.items()):
            # a body earlier in this pass may have removed or replaced it
            if self._tasks.get(name) is not task:
                continue
            if task.poll(now):
                fired += 1
        return fired

    def tick(self) -> int:
        return self.poll_all()

    __call__ = tick

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def get(self, name: str) -> Optional[Task]:
        return self._tasks.get(name)

    def names(self) -> List[str]:
        return list(self._tasks)

    def snapshot(self) -> Dict[str, Dict[str, object]]:
        return {name: task.describe() for name, task in self._tasks.items()}

    def __getitem__(self, name: str) -> Task:
        try:
            return self._tasks[name]
        except KeyError:
            raise TaskNotFoundError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks.values()))

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------
    def close(self, wait: bool = True) -> None:
        """Close every task's executor and empty the registry."""

        self._closed = True
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.close(wait=wait)
        if tasks:
            logger.info("metro closed (%s tasks)", len(tasks))

    def __enter__(self) -> "Metro":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    def _generate_name(self) -> str:
        while True:
            name = f"func{self._counter}"
            self._counter += 1
            if name not in self._tasks:
                return name

    def _make_executor(self, name: str) -> Executor:
        if self.mode is ExecutionMode.THREADED:
            return TaskWorker(name, max_pending=self._max_pending, on_error=self._report_error)
        return InlineExecutor()

    def _report_error(self, name: str, exc: BaseException) -> None:
        if self.on_error is not None:
            self.on_error(name, exc)


__all__ = ["DuplicatePolicy", "Metro"]
