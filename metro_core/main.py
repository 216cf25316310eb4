"""Demo runner for metro_core.

The library is driven through :class:`~metro_core.runtime.scheduler.Metro`;
this entrypoint only exercises it with a guard heartbeat task.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional

if __package__ in {None, ''}:
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from metro_core.config import MetroConfig, load_env
from metro_core.runtime.duration import milliseconds
from metro_core.runtime.guard import RuntimeGuard
from metro_core.runtime.loop import MetroLoop
from metro_core.runtime.scheduler import Metro


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def _parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="metro_core demo runner: ticks a registry holding a guard heartbeat task")
    parser.add_argument("--dry-run", action="store_true", help="Run a limited number of ticks and exit")
    parser.add_argument("--ticks", type=int, default=3, help="Number of ticks when running in dry-run mode")
    parser.add_argument("--threaded", action="store_true", default=None, help="Run task bodies on worker threads")
    parser.add_argument("--heartbeat-interval", type=float, default=None, help="Seconds between guard heartbeats")
    parser.add_argument("--env-file", default=None, help="Explicit .env file to load")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(list(argv) if argv is not None else None)


def _register_jobs(metro: Metro, guard: RuntimeGuard, heartbeat_interval: float) -> None:
    interval = milliseconds(int(max(heartbeat_interval, 0.001) * 1000))
    metro.add(lambda: guard.heartbeat("metro"), interval, name="guard-heartbeat")


def build(config: MetroConfig, guard: RuntimeGuard) -> MetroLoop:
    metro = Metro(
        config.mode,
        duplicate_policy=config.duplicate_policy,
        default_interval=config.default_interval,
        max_pending=config.max_pending,
        on_error=guard.record_error,
    )
    _register_jobs(metro, guard, config.heartbeat_interval)
    return MetroLoop(metro, guard, idle_sleep=config.idle_sleep)


def run(argv: Optional[Iterable[str]] = None) -> int:
    args = _parse_args(argv)
    _setup_logging(args.verbose)
    load_env(args.env_file)

    config = MetroConfig.from_env()
    overrides = {}
    if args.threaded is not None:
        overrides["threaded"] = args.threaded
    if args.heartbeat_interval is not None:
        overrides["heartbeat_interval"] = args.heartbeat_interval
    if overrides:
        config = dataclasses.replace(config, **overrides)

    guard = RuntimeGuard()
    guard.install_signal_handlers()
    loop = build(config, guard)

    guard.heartbeat("boot")
    logging.info("metro starting (mode=%s, tasks=%s)", config.mode.value, loop.metro.names())

    max_ticks = args.ticks if args.dry_run else None
    try:
        loop.run(max_ticks=max_ticks)
    finally:
        loop.metro.close()

    if args.dry_run and not guard.should_stop:
        guard.request_shutdown("dry-run")

    return 0 if not guard.has_errors else 1


def main() -> int:
    return run()


if __name__ == "__main__":
    sys.exit(main())
