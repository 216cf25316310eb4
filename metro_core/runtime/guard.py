"""Shutdown and fault bookkeeping for a metro host loop."""

from __future__ import annotations

import logging
import signal
import threading
import time
from collections import Counter
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


class RuntimeGuard:
    """Tracks ticks, firings, task faults and shutdown for the host loop.

    Faults arrive from two places: an inline task body raising out of a tick
    (caught by :meth:`execute_job`) and a threaded task body failing on its
    worker (delivered through :meth:`record_error`, which is meant to be
    passed to ``Metro(on_error=...)``). Either one requests shutdown unless
    ``stop_on_error`` is off.

    Notifiers receive ``kind:detail`` strings:
    ``shutdown:<reason>``, ``error:<task>:<count>`` and
    ``heartbeat:<source>:ticks=<n>:fired=<n>``.
    """

    def __init__(
        self,
        *,
        stop_on_error: bool = True,
        sleep_fn: Optional[Callable[[float], None]] = None,
        time_fn: Optional[Callable[[], float]] = None,
    ) -> None:
        self.stop_on_error = stop_on_error
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._errors: List[str] = []
        self._faults: Counter = Counter()
        self._notifiers: List[Notifier] = []
        self._sleep_fn = sleep_fn or time.sleep
        self._time_fn = time_fn or time.time
        self._ticks = 0
        self._fired = 0
        self._last_heartbeat: Optional[float] = None
        self._shutdown_reason: Optional[str] = None
        self._signals_installed = False

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------
    def install_signal_handlers(self) -> None:
        """Turn SIGINT/SIGTERM into a shutdown request for the loop."""

        if self._signals_installed:
            return
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                signal.signal(sig, self._on_signal)
            except ValueError:  # pragma: no cover - not on the main thread
                logger.debug("cannot install handler for %s outside the main thread", sig)
        self._signals_installed = True

    def _on_signal(self, signum: int, _frame) -> None:  # noqa: ANN001
        self.request_shutdown(f"signal:{signum}")

    def request_shutdown(self, reason: Optional[str] = None) -> None:
        reason = reason or "requested"
        if self._shutdown_reason is None:
            self._shutdown_reason = reason
        self._stop.set()
        logger.info("metro shutdown requested: %s (ticks=%s, fired=%s)", reason, self._ticks, self._fired)
        self._notify(f"shutdown:{reason}")

    @property
    def should_stop(self) -> bool:
        return self._stop.is_set()

    @property
    def shutdown_reason(self) -> Optional[str]:
        return self._shutdown_reason

    def sleep(self, duration: float) -> None:
        """Idle between ticks; returns at once when stopping."""

        if duration > 0 and not self.should_stop:
            self._sleep_fn(duration)

    # ------------------------------------------------------------------
    # Tick accounting
    # ------------------------------------------------------------------
    def execute_job(self, name: str, handler: Callable[[], object]) -> object:
        """Run ``handler`` and record any exception it raises under ``name``."""

        try:
            return handler()
        except Exception as exc:  # noqa: BLE001
            logger.exception("%s failed", name)
            self.record_error(name, exc)
            return None

    def record_tick(self, fired: int) -> None:
        self._ticks += 1
        self._fired += fired

    def record_error(self, name: str, exc: BaseException) -> None:
        with self._lock:
            self._errors.append(f"{name}: {exc}")
            self._faults[name] += 1
            count = self._faults[name]
        self._notify(f"error:{name}:{count}")
        if self.stop_on_error:
            self.request_shutdown(f"job:{name}")

    def heartbeat(self, source: str = "metro") -> None:
        self._last_heartbeat = self._time_fn()
        self._notify(f"heartbeat:{source}:ticks={self._ticks}:fired={self._fired}")

    # ------------------------------------------------------------------
    # Notifiers
    # ------------------------------------------------------------------
    def add_notifier(self, callback: Notifier) -> None:
        self._notifiers.append(callback)

    def _notify(self, message: str) -> None:
        for callback in list(self._notifiers):
            try:
                callback(message)
            except Exception:  # noqa: BLE001
                logger.debug("notifier %r rejected %s", callback, message, exc_info=True)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def last_heartbeat(self) -> Optional[float]:
        return self._last_heartbeat

    @property
    def has_errors(self) -> bool:
        with self._lock:
            return bool(self._errors)

    @property
    def errors(self) -> List[str]:
        with self._lock:
            return list(self._errors)

    def faults(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._faults)

    @property
    def status(self) -> Dict[str, object]:
        return {
            "ticks": self._ticks,
            "fired": self._fired,
            "last_heartbeat": self._last_heartbeat,
            "shutdown": self.should_stop,
            "faults": self.faults(),
        }


__all__ = ["Notifier", "RuntimeGuard"]
