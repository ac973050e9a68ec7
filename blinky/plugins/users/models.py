"""
SQLAlchemy model for identities. Email is a bare identifier, not a verified principal.
"""
from sqlalchemy import Column, String, Boolean, DateTime

from blinky.core.db import Base
from blinky.core.models import utc_now


class User(Base):
    """One identity. At most one push token; the last registered one wins."""
    __tablename__ = "users"

    email = Column(String(320), primary_key=True)
    push_token = Column(String(255), nullable=True)
    notifications_enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=False), default=utc_now, nullable=False)
    last_seen = Column(DateTime(timezone=False), default=utc_now, nullable=False)
