"""
Core DB models: per-task schedule state for the periodic reminder loop.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import JSON, Column, DateTime, String, Text, select

from blinky.core.db import Base, session_scope


def utc_now() -> datetime:
    """UTC now as naive datetime for DateTime(timezone=False) columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TaskSchedule(Base):
    """next_run_at / last_run_at survive restarts; last_error holds the most recent failed tick."""
    __tablename__ = "task_schedules"

    component_name = Column(String(255), primary_key=True)
    schedule_type = Column(String(64), nullable=False)  # "interval_seconds"
    schedule_config = Column(JSON, nullable=True)  # {"interval_seconds": 60}
    next_run_at = Column(DateTime(timezone=False), nullable=True)  # null until the first tick finishes
    last_run_at = Column(DateTime(timezone=False), nullable=True)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=False), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=False), default=utc_now, onupdate=utc_now, nullable=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component_name": self.component_name,
            "schedule_type": self.schedule_type,
            "schedule_config": self.schedule_config,
            "next_run_at": self.next_run_at,
            "last_run_at": self.last_run_at,
            "last_error": self.last_error,
        }


def get_all_task_schedules() -> List[Dict[str, Any]]:
    """Every schedule row as a dict (naive UTC datetimes), ordered by task name."""
    with session_scope() as session:
        rows = session.execute(select(TaskSchedule).order_by(TaskSchedule.component_name)).scalars().all()
        return [row.to_dict() for row in rows]
