"""
SQLAlchemy model for screen-time snapshots. Append-only; "latest" is the newest created_at.
"""
from sqlalchemy import Column, String, DateTime, Integer, Float, JSON, ForeignKey

from blinky.core.db import Base
from blinky.core.models import utc_now


class ScreenTimeSnapshot(Base):
    """One usage report from the mobile app. app_usage is a JSON array of {appName, usageMinutes}."""
    __tablename__ = "screentime"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(320), ForeignKey("users.email"), nullable=False, index=True)
    app_usage = Column(JSON, nullable=False)
    total_usage_minutes = Column(Float, nullable=False, default=0)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD, server local date when not supplied
    created_at = Column(DateTime(timezone=False), default=utc_now, nullable=False, index=True)
