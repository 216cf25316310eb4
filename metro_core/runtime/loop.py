"""Reference host loop that keeps ticking a :class:`Metro`."""

from __future__ import annotations

import logging
from typing import Optional

from .guard import RuntimeGuard
from .scheduler import Metro

logger = logging.getLogger(__name__)


class MetroLoop:
    """Cooperative loop: tick, and sleep ``idle_sleep`` seconds when idle.

    Polling resolution is bounded by ``idle_sleep``; the loop never sleeps
    after a tick that fired something.
    """

    def __init__(self, metro: Metro, guard: RuntimeGuard, *, idle_sleep: float = 0.01) -> None:
        if idle_sleep < 0:
            raise ValueError("idle_sleep must not be negative")
        self.metro = metro
        self.guard = guard
        self._idle_sleep = idle_sleep
        self.ticks = 0
        if metro.on_error is None:
            metro.on_error = guard.record_error

    def run(self, *, max_ticks: Optional[int] = None) -> int:
        """Run until the guard stops or ``max_ticks`` ticks have passed.

        Returns the number of ticks performed.
        """

        while not self.guard.should_stop:
            fired = self.guard.execute_job("metro-tick", self.metro.tick) or 0
            self.guard.record_tick(fired)
            self.ticks += 1
            if max_ticks is not None and self.ticks >= max_ticks:
                logger.debug("metro loop reached max_ticks=%s", max_ticks)
                break
            if not fired:
                self.guard.sleep(self._idle_sleep)

        logger.info("metro loop exiting after %s ticks (errors=%s)", self.ticks, self.guard.errors)
        return self.ticks


__all__ = ["MetroLoop"]
