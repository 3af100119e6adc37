"""User model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, Integer, String

from coursedesk.core.enums import UserRole
from coursedesk.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Represents a login account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.student)
    created_at = Column(DateTime, nullable=False, default=utcnow)
