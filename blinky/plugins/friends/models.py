"""
SQLAlchemy model for friendships. Each relation is stored as a directed pair plus its mirror.
"""
from sqlalchemy import Column, String, DateTime, Integer, UniqueConstraint

from blinky.core.db import Base
from blinky.core.models import utc_now


class Friendship(Base):
    """user_email -> friend_email. The mirrored row is written and deleted in the same transaction."""
    __tablename__ = "friendships"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_email = Column(String(320), nullable=False, index=True)
    friend_email = Column(String(320), nullable=False)
    created_at = Column(DateTime(timezone=False), default=utc_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_email", "friend_email"),
    )
