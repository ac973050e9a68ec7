"""
Service layer: append and read screen-time snapshots.
"""
import logging
from collections import namedtuple
from datetime import date as date_cls
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import func, select

from blinky.core.db import session_scope
from blinky.core.models import utc_now
from blinky.plugins.screentime.models import ScreenTimeSnapshot
from blinky.plugins.users.service import require_email, upsert_user

logger = logging.getLogger(__name__)

AppUsage = namedtuple("AppUsage", ["app_name", "usage_minutes"], defaults=(None, None))

Minutes = Union[int, float]


def whole_minutes(value: Optional[Minutes]) -> Minutes:
    """0 for missing values; integral floats come back as int."""
    if value is None:
        return 0
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def total_minutes(app_usage: Iterable[AppUsage]) -> Minutes:
    return whole_minutes(sum((a.usage_minutes or 0) for a in app_usage))


def usage_to_json(app_usage: Iterable[AppUsage]) -> List[Dict[str, Any]]:
    return [{"appName": a.app_name, "usageMinutes": a.usage_minutes} for a in app_usage]


def store_screentime(email: str, app_usage: List[AppUsage], day: Optional[str] = None) -> Dict[str, Any]:
    """Append a snapshot for email (creating the identity if needed). day defaults to today's local date."""
    require_email(email)
    upsert_user(email)
    total = total_minutes(app_usage)
    day = day or date_cls.today().isoformat()
    with session_scope() as session:
        session.add(
            ScreenTimeSnapshot(
                email=email,
                app_usage=usage_to_json(app_usage),
                total_usage_minutes=total,
                date=day,
                created_at=utc_now(),
            )
        )
    logger.info(f"Stored screen time for {email}: {len(app_usage)} apps, {total} minutes on {day}")
    return {"total_usage_minutes": total, "total_apps": len(app_usage), "date": day}


def get_latest_screentime(email: str) -> Optional[ScreenTimeSnapshot]:
    """Most recent snapshot for email, or None."""
    with session_scope() as session:
        return (
            session.execute(
                select(ScreenTimeSnapshot)
                .where(ScreenTimeSnapshot.email == email)
                .order_by(ScreenTimeSnapshot.created_at.desc(), ScreenTimeSnapshot.id.desc())
                .limit(1)
            )
            .scalars().first()
        )


def get_distinct_emails() -> List[str]:
    """Every identity that ever submitted a snapshot, in order of first submission."""
    with session_scope() as session:
        stmt = (
            select(ScreenTimeSnapshot.email)
            .group_by(ScreenTimeSnapshot.email)
            .order_by(func.min(ScreenTimeSnapshot.id))
        )
        return list(session.execute(stmt).scalars().all())
