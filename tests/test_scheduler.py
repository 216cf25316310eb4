from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import FakeClock
from metro_core.runtime.duration import DEFAULT_INTERVAL, milliseconds, seconds
from metro_core.runtime.errors import DuplicateTaskError, TaskNotFoundError
from metro_core.runtime.executor import ExecutionMode
from metro_core.runtime.scheduler import DuplicatePolicy, Metro


def test_beat_scenario_fires_once_per_due_poll(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)
    counter: list[int] = []
    metro.add(lambda: counter.append(1), milliseconds(100), name="beat")

    assert metro.poll_all(0) == 0
    assert metro.poll_all(milliseconds(150)) == 1
    assert metro["beat"].last_triggered == milliseconds(150)
    assert metro.poll_all(milliseconds(160)) == 0
    assert metro.poll_all(milliseconds(400)) == 1

    assert len(counter) == 2
    assert metro["beat"].last_triggered == milliseconds(400)


def test_disable_then_enable_with_reset_waits_full_interval(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)
    counter: list[int] = []
    metro.add(lambda: counter.append(1), milliseconds(100), name="beat")

    metro.disable("beat")
    for step in range(0, 1001, 50):
        metro.poll_all(milliseconds(step))
    assert counter == []
    assert metro["beat"].last_triggered == 0

    clock.now = milliseconds(1400)
    metro.enable("beat", reset_time_point=True)
    assert metro.poll_all(milliseconds(1450)) == 0
    assert metro.poll_all(milliseconds(1500)) == 0
    assert metro.poll_all(milliseconds(1500) + 1) == 1
    assert counter == [1]


def test_tick_reads_the_clock(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)
    counter: list[int] = []
    metro.add_ms(10, lambda: counter.append(1), name="fast")

    clock.now = milliseconds(5)
    assert metro.tick() == 0
    clock.now = milliseconds(11)
    assert metro() == 1
    assert counter == [1]


def test_delay_is_applied_on_reset_all(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)
    task = metro.add(lambda: None, milliseconds(100), name="late", delay=milliseconds(200))

    metro.reset_all(seconds(1))
    assert task.last_triggered == seconds(1) + milliseconds(200)
    assert metro.poll_all(seconds(1) + milliseconds(300)) == 0
    assert metro.poll_all(seconds(1) + milliseconds(300) + 1) == 1


def test_reset_defaults_to_clock(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)
    first = metro.add(lambda: None, milliseconds(10))
    second = metro.add(lambda: None, milliseconds(10), delay=milliseconds(3))

    clock.now = seconds(2)
    metro.reset()
    assert first.last_triggered == seconds(2)
    assert second.last_triggered == seconds(2) + milliseconds(3)


def test_generated_names_do_not_collide_after_remove(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)
    names = [metro.add(lambda: None).name for _ in range(3)]
    assert names == ["func0", "func1", "func2"]

    metro.remove("func0")
    assert metro.add(lambda: None).name == "func3"

    metro.add(lambda: None, name="func4")
    assert metro.add(lambda: None).name == "func5"
    assert len(metro) == 5


def test_default_interval_and_unit_helpers(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)

    assert metro.add(lambda: None).interval == DEFAULT_INTERVAL == seconds(1)
    assert metro.add_us(700, lambda: None).interval == 700
    assert metro.add_ms(7, lambda: None).interval == 7_000
    assert metro.add_sec(7, lambda: None).interval == 7_000_000
    assert metro.add(lambda: None, timedelta(milliseconds=250)).interval == 250_000


def test_add_returns_handle_for_chaining(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)
    metro.add(lambda: None, name="cfg").set_interval_ms(20).set_delay_ms(5)

    assert metro["cfg"].interval == milliseconds(20)
    assert metro["cfg"].delay == milliseconds(5)


def test_duplicate_keep_returns_existing(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)
    calls: list[str] = []
    first = metro.add(lambda: calls.append("first"), milliseconds(10), name="job")
    second = metro.add(lambda: calls.append("second"), milliseconds(10), name="job")

    assert second is first
    metro.poll_all(milliseconds(20))
    assert calls == ["first"]


def test_duplicate_replace_swaps_task(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock, duplicate_policy=DuplicatePolicy.REPLACE)
    calls: list[str] = []
    first = metro.add(lambda: calls.append("first"), milliseconds(10), name="job")
    second = metro.add(lambda: calls.append("second"), milliseconds(10), name="job")

    assert second is not first
    assert metro["job"] is second
    metro.poll_all(milliseconds(20))
    assert calls == ["second"]


def test_duplicate_raise(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock, duplicate_policy="raise")
    metro.add(lambda: None, name="job")

    with pytest.raises(DuplicateTaskError):
        metro.add(lambda: None, name="job")
    with pytest.raises(ValueError):
        metro.add(lambda: None, name="job")


def test_remove_missing_is_noop(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)
    metro.remove("ghost")
    metro.add(lambda: None, name="real")
    metro.remove("real")
    metro.remove("real")

    assert "real" not in metro
    assert len(metro) == 0


def test_enable_disable_unknown_name_raise_lookup_error(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)

    with pytest.raises(TaskNotFoundError):
        metro.enable("ghost")
    with pytest.raises(LookupError):
        metro.disable("ghost")
    with pytest.raises(KeyError):
        metro["ghost"]
    assert metro.get("ghost") is None


def test_inline_failure_aborts_rest_of_pass(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)
    calls: list[str] = []

    def boom() -> None:
        raise RuntimeError("boom")

    metro.add(boom, milliseconds(10), name="boom")
    metro.add(lambda: calls.append("after"), milliseconds(10), name="after")

    with pytest.raises(RuntimeError, match="boom"):
        metro.poll_all(milliseconds(20))
    assert calls == []
    assert metro["boom"].last_triggered == 0


def test_task_removed_mid_pass_does_not_fire(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)
    calls: list[str] = []
    metro.add(lambda: metro.remove("other"), milliseconds(10), name="reaper")
    other = metro.add(lambda: calls.append("other"), milliseconds(10), name="other")

    assert metro.poll_all(milliseconds(20)) == 1
    assert calls == []
    assert other.fired == 0
    assert metro.names() == ["reaper"]


def test_task_replaced_mid_pass_waits_for_next_pass(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock, duplicate_policy=DuplicatePolicy.REPLACE)
    calls: list[str] = []

    def swap() -> None:
        metro.add(lambda: calls.append("new"), milliseconds(10), name="other")
        metro.remove("swapper")

    metro.add(swap, milliseconds(10), name="swapper")
    metro.add(lambda: calls.append("old"), milliseconds(10), name="other")

    metro.poll_all(milliseconds(20))
    assert calls == []
    metro.poll_all(milliseconds(40))
    assert calls == ["new"]


def test_snapshot_and_iteration(clock: FakeClock) -> None:
    metro = Metro(time_fn=clock)
    metro.add(lambda: None, milliseconds(10), name="a")
    metro.add(lambda: None, milliseconds(20), name="b")
    metro.disable("b")

    snap = metro.snapshot()
    assert set(snap) == {"a", "b"}
    assert snap["b"]["enabled"] is False
    assert sorted(task.name for task in metro) == ["a", "b"]


def test_closed_metro_refuses_new_tasks(clock: FakeClock) -> None:
    with Metro(time_fn=clock) as metro:
        metro.add(lambda: None, name="a")
    assert len(metro) == 0
    with pytest.raises(RuntimeError):
        metro.add(lambda: None)


def test_invalid_construction_arguments() -> None:
    with pytest.raises(ValueError):
        Metro(max_pending=0)
    with pytest.raises(ValueError):
        Metro(mode="bogus")
    assert Metro("threaded").mode is ExecutionMode.THREADED
