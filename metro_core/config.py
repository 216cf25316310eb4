"""Environment-driven configuration for the metro runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .runtime.duration import milliseconds
from .runtime.executor import ExecutionMode
from .runtime.scheduler import DuplicatePolicy

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def load_env(env_file: Optional[str] = None) -> bool:
    """Load ``.env`` (or ``METRO_ENV_FILE``) into ``os.environ``."""

    env_file = env_file or os.environ.get("METRO_ENV_FILE")
    if env_file:
        return load_dotenv(env_file)
    return load_dotenv()


def _bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{key} must be a boolean, got {raw!r}")


def _number(env: Mapping[str, str], key: str, default: float, cast=float):  # noqa: ANN001
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class MetroConfig:
    """Settings for building a :class:`~metro_core.runtime.scheduler.Metro` and its loop."""

    threaded: bool = False
    default_interval_ms: int = 1000
    idle_sleep: float = 0.01
    max_pending: int = 1
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.KEEP
    heartbeat_interval: float = 5.0

    def __post_init__(self) -> None:
        if self.default_interval_ms < 0:
            raise ValueError("default_interval_ms must not be negative")
        if self.idle_sleep < 0:
            raise ValueError("idle_sleep must not be negative")
        if self.max_pending < 1:
            raise ValueError("max_pending must be at least 1")
        if self.heartbeat_interval <= 0:
            raise ValueError("heartbeat_interval must be positive")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "MetroConfig":
        env = os.environ if env is None else env
        policy_raw = env.get("METRO_DUPLICATE_POLICY", DuplicatePolicy.KEEP.value).strip().lower()
        try:
            policy = DuplicatePolicy(policy_raw)
        except ValueError:
            raise ValueError(f"METRO_DUPLICATE_POLICY must be one of keep/replace/raise, got {policy_raw!r}") from None
        return cls(
            threaded=_bool(env, "METRO_THREADED", False),
            default_interval_ms=_number(env, "METRO_DEFAULT_INTERVAL_MS", 1000, int),
            idle_sleep=_number(env, "METRO_IDLE_SLEEP", 0.01),
            max_pending=_number(env, "METRO_MAX_PENDING", 1, int),
            duplicate_policy=policy,
            heartbeat_interval=_number(env, "METRO_HEARTBEAT_INTERVAL", 5.0),
        )

    @property
    def mode(self) -> ExecutionMode:
        return ExecutionMode.THREADED if self.threaded else ExecutionMode.INLINE

    @property
    def default_interval(self) -> int:
        return milliseconds(self.default_interval_ms)


__all__ = ["MetroConfig", "load_env"]
