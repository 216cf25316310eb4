"""Process-wide convenience registries with an explicit lifecycle.

Nothing is created at import time. :func:`get_instance` builds the inline or
threaded registry on first use and :func:`shutdown_instances` closes both;
after shutdown the next :func:`get_instance` call starts a fresh registry.
Applications that can pass a :class:`Metro` around should do that instead.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict

from .executor import ExecutionMode
from .scheduler import Metro

logger = logging.getLogger(__name__)

_INSTANCES: Dict[ExecutionMode, Metro] = {}
_LOCK = threading.Lock()


def get_instance(threaded: bool = False) -> Metro:
    mode = ExecutionMode.THREADED if threaded else ExecutionMode.INLINE
    with _LOCK:
        metro = _INSTANCES.get(mode)
        if metro is None:
            metro = Metro(mode)
            _INSTANCES[mode] = metro
            logger.debug("created process-wide %s metro", mode.value)
        return metro


def shutdown_instances(wait: bool = True) -> None:
    with _LOCK:
        instances = list(_INSTANCES.values())
        _INSTANCES.clear()
    for metro in instances:
        metro.close(wait=wait)


__all__ = ["get_instance", "shutdown_instances"]
