"""
Service layer: identity upsert, notification preference, and lookups used by the scheduler and dispatcher.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from blinky.core.db import session_scope
from blinky.core.errors import NotFoundError, StoreError, ValidationError
from blinky.core.models import utc_now
from blinky.plugins.users.models import User

logger = logging.getLogger(__name__)


def require_email(email: Optional[str]) -> str:
    """Return the email or raise ValidationError when it is missing/blank."""
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("Email is required")
    return email


def _apply_upsert(email: str, push_token: Optional[str]) -> None:
    with session_scope() as session:
        row = session.get(User, email)
        now = utc_now()
        if row is None:
            session.add(User(email=email, push_token=push_token, created_at=now, last_seen=now))
            return
        if push_token is not None:
            row.push_token = push_token
        row.last_seen = now


def upsert_user(email: str, push_token: Optional[str] = None) -> None:
    """
    Create the identity if absent. An existing push token is only replaced by a non-null one;
    last_seen is always refreshed.
    """
    require_email(email)
    try:
        _apply_upsert(email, push_token)
    except StoreError as e:
        # A concurrent first contact inserted the same email; the row exists now.
        if not isinstance(e.__cause__, IntegrityError):
            raise
        _apply_upsert(email, push_token)


def register_user(email: str, push_token: Optional[str] = None, notifications_enabled: Optional[bool] = None) -> Dict[str, Any]:
    upsert_user(email, push_token)
    if notifications_enabled is not None:
        set_notifications_enabled(email, notifications_enabled)
    logger.info(f"Registered {email} (push token {'set' if push_token else 'unchanged'})")
    return {"email": email, "success": True}


def set_notifications_enabled(email: str, enabled: bool) -> Dict[str, Any]:
    """Toggle reminders for an identity. Raises NotFoundError for unknown emails."""
    require_email(email)
    with session_scope() as session:
        row = session.get(User, email)
        if row is None:
            raise NotFoundError(f"User {email} not found")
        row.notifications_enabled = enabled
    return {"email": email, "enabled": enabled, "success": True}


def user_exists(email: str) -> bool:
    with session_scope() as session:
        return session.get(User, email) is not None


def list_users() -> List[User]:
    with session_scope() as session:
        return list(session.execute(select(User).order_by(User.created_at)).scalars().all())


def list_notifiable() -> List[User]:
    """Identities with a push token and notifications enabled (scheduler input)."""
    with session_scope() as session:
        stmt = (
            select(User)
            .where(User.push_token.isnot(None), User.notifications_enabled.is_(True))
            .order_by(User.created_at)
        )
        return list(session.execute(stmt).scalars().all())


def get_push_tokens(email: Optional[str] = None) -> List[str]:
    """Non-null push tokens for one identity, or for every identity when email is None."""
    with session_scope() as session:
        stmt = select(User.push_token).where(User.push_token.isnot(None))
        if email:
            stmt = stmt.where(User.email == email)
        return [token for token in session.execute(stmt).scalars().all()]
