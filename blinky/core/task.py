"""
Background task base and the task_schedules bookkeeping that lets a periodic task
resume its cadence after a restart.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from blinky.core.db import session_scope
from blinky.core.models import TaskSchedule, utc_now

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60


class TaskType:
    """Schedule kind stored in task_schedules.schedule_type."""
    INTERVAL_SECONDS = "interval_seconds"


def interval_from_config(schedule_config: Optional[Dict[str, Any]]) -> int:
    return int((schedule_config or {}).get("interval_seconds") or DEFAULT_INTERVAL_SECONDS)


def compute_next_run(schedule_config: Optional[Dict[str, Any]], last_run: Optional[datetime] = None) -> datetime:
    """last_run (default now) plus the configured interval."""
    return (last_run or utc_now()) + timedelta(seconds=interval_from_config(schedule_config))


def _schedule_row(session: Session, component_name: str) -> Optional[TaskSchedule]:
    return session.execute(
        select(TaskSchedule).where(TaskSchedule.component_name == component_name)
    ).scalars().first()


def get_next_run_from_db(component_name: str) -> Optional[datetime]:
    """Persisted next_run_at, or None when the task has never run (first tick is immediate)."""
    try:
        with session_scope() as session:
            row = _schedule_row(session, component_name)
            return row.next_run_at if row else None
    except Exception as e:
        logger.warning(f"Could not read schedule for {component_name}, running immediately: {e}")
        return None


def upsert_task_schedule(
    component_name: str,
    schedule_type: str,
    schedule_config: Optional[Dict[str, Any]],
    next_run_at: Optional[datetime] = None,
) -> None:
    """Create or update the schedule row. An existing next_run_at is kept unless a new one is given."""
    with session_scope() as session:
        row = _schedule_row(session, component_name)
        now = utc_now()
        if row is None:
            row = TaskSchedule(component_name=component_name, created_at=now)
            session.add(row)
        row.schedule_type = schedule_type
        row.schedule_config = schedule_config
        if next_run_at is not None:
            row.next_run_at = next_run_at
        row.updated_at = now


def _finish_run(component_name: str, error: Optional[str]) -> None:
    with session_scope() as session:
        row = _schedule_row(session, component_name)
        if row is None:
            return
        now = utc_now()
        if error is None:
            row.last_run_at = now
        row.last_error = error
        row.next_run_at = compute_next_run(row.schedule_config, now)
        row.updated_at = now


def update_after_run(component_name: str) -> None:
    """Successful tick: stamp last_run_at, clear last_error, advance next_run_at."""
    _finish_run(component_name, None)


def record_task_error(component_name: str, error: str) -> None:
    """Failed tick: keep the error; next_run_at still advances so the cadence is kept."""
    _finish_run(component_name, error)


class BaseTask(ABC):
    """
    Abstract base for periodic tasks. Subclasses implement run() and report back with
    update_after_run / record_task_error.
    """

    schedule_type = TaskType.INTERVAL_SECONDS

    def __init__(self, component_name: str, schedule_config: Optional[Dict[str, Any]] = None):
        self.component_name = component_name
        self.schedule_config = schedule_config or {}
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def interval_seconds(self) -> int:
        return interval_from_config(self.schedule_config)

    def ensure_scheduled(self, next_run_at: Optional[datetime] = None) -> None:
        """Make sure the schedule row exists so the next run survives restarts."""
        upsert_task_schedule(self.component_name, self.schedule_type, self.schedule_config, next_run_at)

    @abstractmethod
    def run(self, **kwargs: Any) -> Any:
        """Do one tick of work and return a summary."""
        pass
