"""Student model definitions."""

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from coursedesk.core.enums import StudentStatus
from coursedesk.database import Base
from coursedesk.models.user import utcnow


class Student(Base):
    """Represents a student record backed by exactly one user account."""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(50))
    date_of_birth = Column(Date)
    # No delete action: courses with students are protected by the delete handler.
    course_id = Column(Integer, ForeignKey("courses.id"), index=True)
    status = Column(Enum(StudentStatus, name="student_status"), nullable=False, default=StudentStatus.active)
    enrollment_date = Column(DateTime, nullable=False, default=utcnow)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User")
    course = relationship("Course")
