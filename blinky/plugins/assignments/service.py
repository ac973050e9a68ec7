"""
Service layer: replace and load an identity's assignments.
A sync is not additive: the previous set is deleted and the new batch inserted in one transaction.
"""
import logging
import time
import uuid
from collections import namedtuple
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import delete, select

from blinky.core.db import session_scope
from blinky.core.models import utc_now
from blinky.plugins.assignments.models import Assignment
from blinky.plugins.users.service import require_email, upsert_user

logger = logging.getLogger(__name__)

# One inbound item from the scraper. Every field is optional and defaults to None.
AssignmentItem = namedtuple(
    "AssignmentItem",
    [
        "id",           # source id from the calendar page, may be absent or reused
        "course_id",
        "title",
        "course",
        "date",
        "time",
        "description",
        "action_url",
        "type",
        "component",    # which page component the scraper read it from
    ],
    defaults=(None,) * 10,
)


def make_assignment_id(email: str, source_id: Optional[str] = None) -> str:
    """Synthetic primary key; the random suffix keeps it unique when source ids repeat."""
    stem = source_id or str(int(time.time() * 1000))
    return f"{email}-{stem}-{uuid.uuid4().hex}"


def _naive_utc(dt: Optional[datetime]) -> datetime:
    if dt is None:
        return utc_now()
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def replace_assignments(email: str, items: Iterable[AssignmentItem], extracted_at: Optional[datetime] = None) -> int:
    """Replace this identity's assignments with items. The identity must already exist."""
    require_email(email)
    items = list(items)
    extracted = _naive_utc(extracted_at)
    created = utc_now()
    with session_scope() as session:
        session.execute(delete(Assignment).where(Assignment.email == email))
        for item in items:
            session.add(
                Assignment(
                    id=make_assignment_id(email, item.id),
                    email=email,
                    course_id=item.course_id or None,
                    title=item.title or None,
                    course=item.course or None,
                    date=item.date or None,
                    time=item.time or None,
                    description=item.description or None,
                    action_url=item.action_url or None,
                    type=item.type or None,
                    component=item.component or None,
                    extracted_at=extracted,
                    created_at=created,
                )
            )
    return len(items)


def sync_assignments(email: str, items: Iterable[AssignmentItem], extracted_at: Optional[datetime] = None) -> int:
    """Sync entry point: upsert the identity (bumps last_seen), then replace its assignments."""
    upsert_user(email)
    count = replace_assignments(email, items, extracted_at)
    logger.info(f"Received {count} assignments for {email}")
    return count


def get_assignments_by_email(email: str) -> List[Assignment]:
    """Assignments for one identity, newest first."""
    with session_scope() as session:
        stmt = (
            select(Assignment)
            .where(Assignment.email == email)
            .order_by(Assignment.created_at.desc())
        )
        return list(session.execute(stmt).scalars().all())


def get_all_assignments() -> List[Assignment]:
    """Every stored assignment, newest first (admin view)."""
    with session_scope() as session:
        return list(session.execute(select(Assignment).order_by(Assignment.created_at.desc())).scalars().all())
