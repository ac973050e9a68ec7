"""
Service layer: friendships and the leaderboard projection over screen-time snapshots.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, delete, or_, select

from blinky.core.db import session_scope
from blinky.core.errors import NotFoundError, ValidationError
from blinky.core.models import utc_now
from blinky.plugins.friends.models import Friendship
from blinky.plugins.screentime.service import get_distinct_emails, get_latest_screentime, whole_minutes
from blinky.plugins.users.models import User

logger = logging.getLogger(__name__)


def _require_pair(user_email: Optional[str], friend_email: Optional[str]) -> None:
    if not user_email or not friend_email:
        raise ValidationError("Both userEmail and friendEmail are required")


def add_friend(user_email: str, friend_email: str) -> Dict[str, Any]:
    """Create user->friend and friend->user. The friend must already be a known identity."""
    _require_pair(user_email, friend_email)
    if user_email == friend_email:
        raise ValidationError("Cannot add yourself as a friend")
    with session_scope() as session:
        if session.get(User, friend_email) is None:
            raise NotFoundError("Friend email not found in system")
        existing = set(
            session.execute(
                select(Friendship.user_email, Friendship.friend_email).where(
                    or_(
                        and_(Friendship.user_email == user_email, Friendship.friend_email == friend_email),
                        and_(Friendship.user_email == friend_email, Friendship.friend_email == user_email),
                    )
                )
            ).all()
        )
        now = utc_now()
        for pair in ((user_email, friend_email), (friend_email, user_email)):
            if pair not in existing:
                session.add(Friendship(user_email=pair[0], friend_email=pair[1], created_at=now))
    logger.info(f"{user_email} and {friend_email} are now friends")
    return {"success": True, "message": f"Added {friend_email} as a friend"}


def remove_friend(user_email: str, friend_email: str) -> Dict[str, Any]:
    """Delete both directions; succeeds when there was nothing to delete."""
    _require_pair(user_email, friend_email)
    with session_scope() as session:
        session.execute(
            delete(Friendship).where(
                or_(
                    and_(Friendship.user_email == user_email, Friendship.friend_email == friend_email),
                    and_(Friendship.user_email == friend_email, Friendship.friend_email == user_email),
                )
            )
        )
    return {"success": True, "message": f"Removed {friend_email} from friends"}


def get_friends(user_email: str) -> List[Dict[str, Any]]:
    """Friends of user_email, most recent friendship first."""
    with session_scope() as session:
        rows = session.execute(
            select(Friendship)
            .where(Friendship.user_email == user_email)
            .order_by(Friendship.created_at.desc(), Friendship.id.desc())
        ).scalars().all()
        return [{"email": r.friend_email, "since": r.created_at} for r in rows]


def _leaderboard_entry(email: str, user_email: str) -> Dict[str, Any]:
    snapshot = get_latest_screentime(email)
    if snapshot is None:
        return {"email": email, "totalMinutes": 0, "topApp": None, "date": None, "isCurrentUser": email == user_email}
    app_usage = snapshot.app_usage or []
    top = app_usage[0] if app_usage else None
    return {
        "email": email,
        "totalMinutes": whole_minutes(snapshot.total_usage_minutes),
        "topApp": {"name": top.get("appName"), "minutes": top.get("usageMinutes")} if top else None,
        "date": snapshot.date,
        "isCurrentUser": email == user_email,
    }


def get_leaderboard(user_email: str) -> List[Dict[str, Any]]:
    """
    Everyone who ever reported screen time, ranked by their latest total (most usage first).
    Ranks follow list position; ties keep first-submission order.
    """
    entries = [_leaderboard_entry(email, user_email) for email in get_distinct_emails()]
    entries.sort(key=lambda e: e["totalMinutes"], reverse=True)
    for rank, entry in enumerate(entries, start=1):
        entry["rank"] = rank
    return entries
