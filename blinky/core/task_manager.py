"""
Single place for scheduling: in-memory timers and DB-backed registered tasks.

Periodic tasks run at a fixed rate: the next tick is armed from the current tick's
scheduled time before the callback runs. Ticks are single-flight per task name, so a
tick that fires while the previous one is still running is skipped.
"""
import logging
import threading
import time
from datetime import datetime, timezone
from threading import Timer
from typing import Any, Callable, Dict, List, Optional

from blinky.core.models import utc_now
from blinky.core.task import get_next_run_from_db


class TaskManager:
    def __init__(self):
        self.tasks: Dict[str, Timer] = {}
        self.last_results: Dict[str, Any] = {}
        self.logger = logging.getLogger("TaskManager")
        self._registered_tasks: Dict[str, Callable[[], Any]] = {}
        self._intervals: Dict[str, int] = {}
        self._running: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()
        self._stopped = False

    def _run_lock(self, name: str) -> threading.Lock:
        with self._guard:
            if name not in self._running:
                self._running[name] = threading.Lock()
            return self._running[name]

    def schedule_task(self, name: str, callback: Callable, delay: float, interval: Optional[float] = None) -> None:
        """Schedule a task to run after delay seconds; with interval, repeat at a fixed rate."""
        if self._stopped:
            return
        try:
            self.logger.debug(f"Scheduling task {name} with delay {delay:.1f} seconds")
            if name in self.tasks:
                self.tasks[name].cancel()

            scheduled_time = time.time() + delay
            timer = Timer(delay, self._run_task, args=(name, callback, interval, scheduled_time))
            timer.daemon = True
            timer.scheduled_time = scheduled_time

            self.tasks[name] = timer
            timer.start()
        except Exception as e:
            self.logger.error(f"Error scheduling task {name}: {e}")

    def _run_task(self, name: str, callback: Callable, interval: Optional[float], scheduled_time: float) -> None:
        """Arm the next tick, then run the task unless the previous tick is still running."""
        if interval:
            next_time = scheduled_time + interval
            now = time.time()
            while next_time <= now:
                next_time += interval
            self.schedule_task(name, callback, next_time - now, interval)
        self.run_single_flight(name, callback)

    def run_single_flight(self, name: str, callback: Callable) -> bool:
        """Run callback unless another run of the same task is in progress. Returns False if skipped."""
        lock = self._run_lock(name)
        if not lock.acquire(blocking=False):
            self.logger.warning(f"Task {name} is still running; skipping this tick")
            return False
        try:
            self.last_results[name] = callback()
        except Exception as e:
            self.logger.exception(f"Error running task {name}: {e}")
        finally:
            lock.release()
        return True

    def register_task(self, component_name: str, runnable: Callable[[], Any], interval_seconds: int) -> None:
        """Register a periodic runnable. runnable() does the work and updates next_run in DB."""
        self._registered_tasks[component_name] = runnable
        self._intervals[component_name] = interval_seconds
        self.logger.debug(f"Registered task for component: {component_name}")

    def schedule_registered_task(self, component_name: str) -> None:
        """
        Start a registered task: first tick at next_run from DB (immediately if null or past due,
        never later than one interval), then every interval_seconds.
        """
        if component_name not in self._registered_tasks:
            self.logger.warning(f"No task registered for component: {component_name}")
            return
        interval = self._intervals[component_name]
        next_run = get_next_run_from_db(component_name)
        if next_run is None:
            delay = 0
        else:
            delta = (next_run - utc_now()).total_seconds()
            delay = min(max(0, delta), interval)
        self.logger.info(f"Task {component_name} runs every {interval}s, first run in {delay:.0f}s")
        self.schedule_task(component_name, self._registered_tasks[component_name], delay, interval)

    def start(self) -> None:
        """Schedule every registered task."""
        for name in list(self._registered_tasks):
            self.schedule_registered_task(name)

    def run_task_now(self, component_name: str) -> bool:
        """Run a registered task once immediately (e.g. manual trigger). Returns False if skipped."""
        runnable = self._registered_tasks.get(component_name)
        if not runnable:
            self.logger.warning(f"No task registered for component: {component_name}")
            return False
        return self.run_single_flight(component_name, runnable)

    def get_active_timers(self) -> List[Dict[str, Any]]:
        """Return list of active timer names and their next run time (for API)."""
        result = []
        for name, timer in self.tasks.items():
            if getattr(timer, "scheduled_time", None) is not None:
                next_run = datetime.fromtimestamp(timer.scheduled_time, tz=timezone.utc)
                result.append({"name": name, "next_run_at": next_run})
        return result

    def stop(self) -> None:
        """Stop all scheduled tasks."""
        self._stopped = True
        for task in self.tasks.values():
            task.cancel()
