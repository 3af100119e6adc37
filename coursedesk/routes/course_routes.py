import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy import and_, case, desc, func
from sqlalchemy.orm import Session

from coursedesk.auth.dependencies import admin_only, student_or_admin
from coursedesk.core.enums import StudentStatus
from coursedesk.core.errors import ConflictError, DependencyError, NotFoundError, ValidationError
from coursedesk.database import get_db, storage_guard
from coursedesk.models.course import Course
from coursedesk.models.student import Student
from coursedesk.models.user import utcnow
from coursedesk.serializers import serialize_course, serialize_roster_entry

router = APIRouter(tags=['courses'])

logger = logging.getLogger(__name__)


class CourseRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    duration: str | None = None
    instructor: str | None = None

    @field_validator('duration', mode='before')
    @classmethod
    def coerce_duration(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator('name', 'description', 'duration', 'instructor')
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None


def courses_with_active_count(db: Session):
    active_count = func.count(Student.id)
    return (
        db.query(Course, active_count)
        .outerjoin(
            Student,
            and_(Student.course_id == Course.id, Student.status == StudentStatus.active),
        )
        .group_by(Course.id)
    )


def get_course_or_404(db: Session, course_id: int) -> Course:
    course = db.get(Course, course_id)
    if course is None:
        raise NotFoundError('Course not found')
    return course


def get_course_with_count(db: Session, course_id: int) -> dict:
    row = courses_with_active_count(db).filter(Course.id == course_id).first()
    if row is None:
        raise NotFoundError('Course not found')
    course, student_count = row
    return serialize_course(course, student_count)


def name_taken(db: Session, name: str, exclude_id: int | None = None) -> bool:
    query = db.query(Course.id).filter(Course.name == name)
    if exclude_id is not None:
        query = query.filter(Course.id != exclude_id)
    return query.first() is not None


@router.get('/admin/stats')
def get_course_stats(db: Session = Depends(get_db), _admin=Depends(admin_only)):
    with storage_guard(db, 'Error fetching course statistics'):
        total_courses = db.query(func.count(Course.id)).scalar() or 0
        by_status = dict(
            db.query(Student.status, func.count(Student.id)).group_by(Student.status).all()
        )

        student_count = func.count(Student.id).label('student_count')
        active_count = func.count(case((Student.status == StudentStatus.active, 1))).label('active_count')
        distribution = (
            db.query(Course.id, Course.name, student_count, active_count)
            .outerjoin(Student, Student.course_id == Course.id)
            .group_by(Course.id, Course.name)
            .order_by(desc('student_count'), Course.id)
            .all()
        )

    statistics = {
        'total_courses': total_courses,
        'total_students': sum(by_status.values()),
        'active_students': by_status.get(StudentStatus.active, 0),
        'graduated_students': by_status.get(StudentStatus.graduated, 0),
        'inactive_students': by_status.get(StudentStatus.inactive, 0),
    }
    return {
        'success': True,
        'statistics': statistics,
        'courseDistribution': [
            {
                'id': row.id,
                'name': row.name,
                'student_count': row.student_count,
                'active_count': row.active_count,
            }
            for row in distribution
        ],
    }


@router.get('')
def list_courses(db: Session = Depends(get_db), _user=Depends(student_or_admin)):
    with storage_guard(db, 'Error fetching courses'):
        rows = (
            courses_with_active_count(db)
            .order_by(Course.created_at.desc(), Course.id.desc())
            .all()
        )

    courses = [serialize_course(course, student_count) for course, student_count in rows]
    return {'success': True, 'count': len(courses), 'courses': courses}


@router.get('/{course_id}')
def get_course(course_id: int, db: Session = Depends(get_db), _user=Depends(student_or_admin)):
    with storage_guard(db, 'Error fetching course'):
        course = get_course_with_count(db, course_id)
    return {'success': True, 'course': course}


@router.post('', status_code=status.HTTP_201_CREATED)
def create_course(payload: CourseRequest, db: Session = Depends(get_db), _admin=Depends(admin_only)):
    if not payload.name:
        raise ValidationError('Course name is required')

    with storage_guard(db, 'Error creating course'):
        if name_taken(db, payload.name):
            raise ConflictError('Course with this name already exists')

        course = Course(
            name=payload.name,
            description=payload.description,
            duration=payload.duration,
            instructor=payload.instructor,
        )
        db.add(course)
        db.commit()
        db.refresh(course)

    logger.info('Created course %s (%s)', course.id, course.name)
    return {
        'success': True,
        'message': 'Course created successfully',
        'course': serialize_course(course),
    }


@router.put('/{course_id}')
def update_course(
    course_id: int,
    payload: CourseRequest,
    db: Session = Depends(get_db),
    _admin=Depends(admin_only),
):
    changes = payload.model_dump(exclude_unset=True)
    if 'name' in changes and not changes['name']:
        raise ValidationError('Course name cannot be empty')

    with storage_guard(db, 'Error updating course'):
        course = get_course_or_404(db, course_id)

        if changes.get('name') and changes['name'] != course.name:
            if name_taken(db, changes['name'], exclude_id=course_id):
                raise ConflictError('Another course with this name already exists')

        for field, value in changes.items():
            setattr(course, field, value)
        course.updated_at = utcnow()
        db.commit()

        updated = get_course_with_count(db, course_id)

    return {'success': True, 'message': 'Course updated successfully', 'course': updated}


@router.delete('/{course_id}')
def delete_course(course_id: int, db: Session = Depends(get_db), _admin=Depends(admin_only)):
    with storage_guard(db, 'Error deleting course'):
        course = get_course_or_404(db, course_id)

        enrolled = db.query(func.count(Student.id)).filter(Student.course_id == course_id).scalar() or 0
        if enrolled > 0:
            raise DependencyError(
                f'Cannot delete course. {enrolled} student(s) are enrolled. '
                'Please reassign or remove students first.'
            )

        db.delete(course)
        db.commit()

    logger.info('Deleted course %s', course_id)
    return {'success': True, 'message': 'Course deleted successfully'}


@router.get('/{course_id}/students')
def list_students_in_course(course_id: int, db: Session = Depends(get_db), _admin=Depends(admin_only)):
    with storage_guard(db, 'Error fetching students in course'):
        course = get_course_or_404(db, course_id)
        students = (
            db.query(Student)
            .filter(Student.course_id == course_id)
            .order_by(Student.first_name, Student.last_name)
            .all()
        )

    return {
        'success': True,
        'course': serialize_course(course),
        'studentCount': len(students),
        'students': [serialize_roster_entry(student) for student in students],
    }
