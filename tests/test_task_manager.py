import threading
import time
from datetime import datetime, timedelta

from blinky.core.models import utc_now
from blinky.core.task import TaskType, compute_next_run, upsert_task_schedule
from blinky.core.task_manager import TaskManager


def test_overlapping_run_is_skipped():
    manager = TaskManager()
    started = threading.Event()
    release = threading.Event()
    calls = []

    def slow():
        calls.append("run")
        started.set()
        release.wait(5)
        return "done"

    worker = threading.Thread(target=manager.run_single_flight, args=("slow", slow))
    worker.start()
    assert started.wait(5)

    assert manager.run_single_flight("slow", slow) is False
    release.set()
    worker.join(5)

    assert calls == ["run"]
    assert manager.last_results["slow"] == "done"
    assert manager.run_single_flight("slow", slow) is True


def test_failing_run_releases_lock():
    manager = TaskManager()

    def boom():
        raise RuntimeError("tick failed")

    assert manager.run_single_flight("boom", boom) is True
    assert manager.run_single_flight("boom", boom) is True


def test_run_task_now_unknown_task():
    assert TaskManager().run_task_now("missing") is False


def test_registered_task_runs_immediately_on_fresh_db(db):
    manager = TaskManager()
    ran = threading.Event()
    manager.register_task("tick", ran.set, interval_seconds=3600)
    manager.start()
    try:
        assert ran.wait(5)
        timers = manager.get_active_timers()
        assert [t["name"] for t in timers] == ["tick"]
    finally:
        manager.stop()


def test_first_tick_waits_for_persisted_next_run(db):
    upsert_task_schedule(
        "tick",
        TaskType.INTERVAL_SECONDS,
        {"interval_seconds": 3600},
        next_run_at=utc_now() + timedelta(minutes=10),
    )
    manager = TaskManager()
    ran = threading.Event()
    manager.register_task("tick", ran.set, interval_seconds=3600)
    manager.start()
    try:
        assert not ran.wait(0.3)
    finally:
        manager.stop()


def test_stopped_manager_schedules_nothing():
    manager = TaskManager()
    manager.stop()
    manager.schedule_task("late", lambda: None, delay=0)
    assert manager.get_active_timers() == []


def test_compute_next_run():
    last = datetime(2024, 10, 21, 8, 30)
    assert compute_next_run({"interval_seconds": 90}, last) == datetime(2024, 10, 21, 8, 31, 30)
    assert compute_next_run({}, last) == datetime(2024, 10, 21, 8, 31)


def test_failing_tick_does_not_stop_the_schedule(db):
    manager = TaskManager()
    calls = []

    def failing():
        calls.append(time.time())
        raise RuntimeError("tick failed")

    manager.register_task("flaky", failing, interval_seconds=1)
    manager.start()
    try:
        time.sleep(3.5)
    finally:
        manager.stop()
    assert len(calls) >= 3
