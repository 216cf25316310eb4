"""Execution policies for firing task bodies."""

from __future__ import annotations

import logging
import queue
import threading
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)

Body = Callable[[], None]
ErrorHandler = Callable[[str, BaseException], None]


class ExecutionMode(str, Enum):
    """Where a fired body runs."""

    INLINE = "inline"
    THREADED = "threaded"


class InlineExecutor:
    """Run the body on the polling thread. Exceptions propagate to the poller."""

    def __init__(self) -> None:
        self._closed = False

    def submit(self, body: Body) -> bool:
        if self._closed:
            return False
        body()
        return True

    @property
    def busy(self) -> bool:
        return False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self, wait: bool = True) -> None:  # noqa: ARG002
        self._closed = True


class TaskWorker:
    """Dedicated worker thread for a single task.

    Firings are queued and executed one at a time, so a task never has two
    executions of its body in flight. At most ``max_pending`` firings wait
    behind the running one; further firings are coalesced into the pending
    ones and counted in :attr:`dropped`.
    """

    _STOP = object()

    def __init__(
        self,
        name: str,
        *,
        max_pending: int = 1,
        on_error: Optional[ErrorHandler] = None,
    ) -> None:
        if max_pending < 1:
            raise ValueError("max_pending must be at least 1")
        self.name = name
        self._max_pending = max_pending
        self._on_error = on_error
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._running = threading.Event()
        self._closed = False
        self.dropped = 0
        self.completed = 0
        self.failed = 0
        self._thread = threading.Thread(target=self._run, name=f"metro-{name}", daemon=True)
        self._thread.start()

    # ------------------------------------------------------------------
    def submit(self, body: Body) -> bool:
        """Queue one firing. Returns ``False`` if it was coalesced or refused."""

        if self._closed:
            logger.debug("worker %s closed; firing ignored", self.name)
            return False
        if self._queue.qsize() >= self._max_pending:
            self.dropped += 1
            logger.debug("worker %s saturated; firing coalesced (dropped=%s)", self.name, self.dropped)
            return False
        self._queue.put(body)
        return True

    @property
    def busy(self) -> bool:
        return self._running.is_set()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def close(self, wait: bool = True) -> None:
        """Stop the worker.

        With ``wait`` the queued firings are drained and the thread joined.
        Without it the queued firings are discarded and the call returns
        immediately; a body already running is never interrupted.
        """

        if not self._closed:
            self._closed = True
            if not wait:
                self._discard_pending()
            self._queue.put(self._STOP)
        if wait and self._thread is not threading.current_thread():
            self._thread.join()

    # ------------------------------------------------------------------
    def _discard_pending(self) -> None:
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                return

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is self._STOP:
                return
            self._running.set()
            try:
                item()  # type: ignore[operator]
                self.completed += 1
            except Exception as exc:  # noqa: BLE001
                self.failed += 1
                logger.exception("task %s failed on worker thread", self.name)
                self._report(exc)
            finally:
                self._running.clear()

    def _report(self, exc: BaseException) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(self.name, exc)
        except Exception:  # noqa: BLE001
            logger.exception("error handler for task %s failed", self.name)


__all__ = ["Body", "ErrorHandler", "ExecutionMode", "InlineExecutor", "TaskWorker"]
