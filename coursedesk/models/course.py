"""Course model definitions."""

from sqlalchemy import Column, DateTime, Integer, String, Text

from coursedesk.database import Base
from coursedesk.models.user import utcnow


class Course(Base):
    """Represents a course students can be enrolled in."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text)
    duration = Column(String(100))
    instructor = Column(String(255))
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
