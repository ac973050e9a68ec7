"""
SQLAlchemy model for synced assignments. Rows for one email are replaced wholesale on each sync.
"""
from sqlalchemy import Column, String, DateTime, Text, ForeignKey

from blinky.core.db import Base
from blinky.core.models import utc_now


class Assignment(Base):
    """One scraped due item. date/time are free text exactly as the calendar page shows them."""
    __tablename__ = "assignments"

    id = Column(String(512), primary_key=True)  # "<email>-<source id or ms timestamp>-<random hex>"
    email = Column(String(320), ForeignKey("users.email"), nullable=False, index=True)
    course_id = Column(Text, nullable=True)
    title = Column(Text, nullable=True)
    course = Column(Text, nullable=True)
    date = Column(Text, nullable=True)  # e.g. "October 21"
    time = Column(Text, nullable=True)  # e.g. "11:59 PM"
    description = Column(Text, nullable=True)
    action_url = Column(Text, nullable=True)
    type = Column(Text, nullable=True)
    component = Column(Text, nullable=True)
    extracted_at = Column(DateTime(timezone=False), nullable=True)
    created_at = Column(DateTime(timezone=False), default=utc_now, nullable=False, index=True)
