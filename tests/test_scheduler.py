from __future__ import annotations

from text_converter.engine.scheduler import AutoRunScheduler, DebounceTimer


def test_burst_of_changes_runs_once_on_latest_state(fake_timer) -> None:
    state = {"input": ""}
    seen: list[str] = []
    sched = AutoRunScheduler(lambda: seen.append(state["input"]), lambda: True, timer=fake_timer, delay_ms=250)

    for text in ("h", "he", "hel", "hello"):
        state["input"] = text
        sched.notify_changed()

    assert fake_timer.delay_ms == 250
    assert seen == []
    fake_timer.fire()
    assert seen == ["hello"]
    assert not sched.is_pending()


def test_auto_run_disabled_cancels_pending(fake_timer) -> None:
    enabled = {"value": True}
    runs: list[int] = []
    sched = AutoRunScheduler(lambda: runs.append(1), lambda: enabled["value"], timer=fake_timer)

    sched.notify_changed()
    assert sched.is_pending()
    enabled["value"] = False
    sched.notify_changed()
    assert not sched.is_pending()
    fake_timer.fire()
    assert runs == []


def test_trigger_runs_now_and_supersedes_pending(fake_timer) -> None:
    runs: list[int] = []
    sched = AutoRunScheduler(lambda: runs.append(1), lambda: False, timer=fake_timer)
    fake_timer.schedule(lambda: runs.append(99), 250)

    sched.trigger()
    assert runs == [1]
    fake_timer.fire()
    assert runs == [1]


def test_execute_exceptions_are_contained(fake_timer) -> None:
    def boom() -> None:
        raise RuntimeError("boom")

    sched = AutoRunScheduler(boom, lambda: True, timer=fake_timer)
    sched.notify_changed()
    fake_timer.fire()
    sched.trigger()
    assert sched.runs == 2


def test_debounce_timer_fires_once_after_quiescence(qtbot) -> None:
    timer = DebounceTimer()
    fired: list[str] = []

    timer.schedule(lambda: fired.append("first"), 30)
    qtbot.wait(10)
    timer.schedule(lambda: fired.append("second"), 30)
    assert timer.is_pending()

    qtbot.waitUntil(lambda: fired == ["second"], timeout=1000)
    assert not timer.is_pending()
    qtbot.wait(60)
    assert fired == ["second"]


def test_debounce_timer_cancel(qtbot) -> None:
    timer = DebounceTimer()
    fired: list[int] = []
    timer.schedule(lambda: fired.append(1), 10)
    timer.cancel_pending()
    qtbot.wait(60)
    assert fired == []
    assert not timer.is_pending()
