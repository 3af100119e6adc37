import logging
from datetime import date

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session, joinedload

from coursedesk.auth.dependencies import admin_only, student_or_admin
from coursedesk.auth.passwords import get_password_hash
from coursedesk.core import config
from coursedesk.core.enums import StudentStatus, UserRole
from coursedesk.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from coursedesk.database import get_db, storage_guard
from coursedesk.models.course import Course
from coursedesk.models.student import Student
from coursedesk.models.user import User, utcnow
from coursedesk.serializers import (
    STUDENT_COURSE_DETAIL,
    STUDENT_COURSE_LISTING,
    serialize_student,
)

router = APIRouter(tags=['students'])

logger = logging.getLogger(__name__)

# Create and reset echo the plaintext password to the admin once. Only the hash is stored.


class StudentRequest(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    date_of_birth: date | None = None
    course_id: int | None = None
    status: StudentStatus | None = None
    password: str | None = None

    @field_validator('first_name', 'last_name', 'phone')
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.strip().lower() if value is not None else None

    @field_validator('date_of_birth', 'course_id', mode='before')
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ResetPasswordRequest(BaseModel):
    newPassword: str | None = None


def student_query(db: Session):
    return db.query(Student).options(joinedload(Student.course))


def get_student_or_404(db: Session, student_id: int) -> Student:
    student = student_query(db).filter(Student.id == student_id).first()
    if student is None:
        raise NotFoundError('Student not found')
    return student


def email_in_use(db: Session, email: str, exclude_user_id: int | None = None) -> bool:
    user_query = db.query(User.id).filter(User.email == email)
    student_query_ = db.query(Student.id).filter(Student.email == email)
    if exclude_user_id is not None:
        user_query = user_query.filter(User.id != exclude_user_id)
        student_query_ = student_query_.filter(Student.user_id != exclude_user_id)
    return user_query.first() is not None or student_query_.first() is not None


def ensure_course_exists(db: Session, course_id: int | None) -> None:
    if course_id is not None and db.get(Course, course_id) is None:
        raise ValidationError('Selected course does not exist')


def validate_password(password: str) -> None:
    if len(password) < config.MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f'Password must be at least {config.MIN_PASSWORD_LENGTH} characters long'
        )


@router.get('/course/{course_id}')
def list_students_by_course(course_id: int, db: Session = Depends(get_db), _admin=Depends(admin_only)):
    with storage_guard(db, 'Error fetching students by course'):
        students = (
            student_query(db)
            .filter(Student.course_id == course_id)
            .order_by(Student.first_name, Student.last_name)
            .all()
        )

    return {
        'success': True,
        'count': len(students),
        'students': [serialize_student(student) for student in students],
    }


@router.get('')
def list_students(db: Session = Depends(get_db), _admin=Depends(admin_only)):
    with storage_guard(db, 'Error fetching students'):
        students = (
            student_query(db)
            .order_by(Student.created_at.desc(), Student.id.desc())
            .all()
        )

    return {
        'success': True,
        'count': len(students),
        'students': [serialize_student(student, STUDENT_COURSE_LISTING) for student in students],
    }


@router.get('/{student_id}')
def get_student(
    student_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(student_or_admin),
):
    with storage_guard(db, 'Error fetching student'):
        student = get_student_or_404(db, student_id)

    if current_user.role == UserRole.student and student.user_id != current_user.id:
        raise AuthorizationError('Access denied. Students may only view their own record')

    return {'success': True, 'student': serialize_student(student, STUDENT_COURSE_DETAIL)}


@router.post('', status_code=status.HTTP_201_CREATED)
def create_student(payload: StudentRequest, db: Session = Depends(get_db), _admin=Depends(admin_only)):
    if not payload.first_name or not payload.last_name or not payload.email:
        raise ValidationError('First name, last name, and email are required')

    password = payload.password or config.DEFAULT_STUDENT_PASSWORD
    validate_password(password)

    with storage_guard(db, 'Error creating student'):
        if email_in_use(db, payload.email):
            raise ConflictError('Student with this email already exists')
        ensure_course_exists(db, payload.course_id)

        # User and student are written in a single transaction.
        user = User(
            email=payload.email,
            hashed_password=get_password_hash(password),
            role=UserRole.student,
        )
        db.add(user)
        db.flush()

        student = Student(
            user_id=user.id,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            phone=payload.phone or None,
            date_of_birth=payload.date_of_birth,
            course_id=payload.course_id,
            status=StudentStatus.active,
            enrollment_date=utcnow(),
        )
        db.add(student)
        db.commit()

        created = get_student_or_404(db, student.id)

    logger.info('Created student %s with user %s', created.id, created.user_id)
    return {
        'success': True,
        'message': 'Student created successfully',
        'student': serialize_student(created),
        'defaultPassword': password,
    }


@router.put('/{student_id}/reset-password')
def reset_student_password(
    student_id: int,
    payload: ResetPasswordRequest | None = None,
    db: Session = Depends(get_db),
    _admin=Depends(admin_only),
):
    requested = payload.newPassword if payload is not None else None
    new_password = requested or config.DEFAULT_STUDENT_PASSWORD
    validate_password(new_password)

    with storage_guard(db, 'Error resetting student password'):
        student = get_student_or_404(db, student_id)
        user = db.get(User, student.user_id)
        if user is None:
            raise NotFoundError('User account for student not found')

        user.hashed_password = get_password_hash(new_password)
        db.commit()

    logger.info('Reset password for student %s', student_id)
    return {
        'success': True,
        'message': 'Student password reset successfully',
        'email': student.email,
        'newPassword': new_password,
    }


@router.put('/{student_id}')
def update_student(
    student_id: int,
    payload: StudentRequest,
    db: Session = Depends(get_db),
    _admin=Depends(admin_only),
):
    changes = payload.model_dump(exclude_unset=True, exclude={'password'})
    for field in ('first_name', 'last_name', 'email'):
        if field in changes and not changes[field]:
            raise ValidationError('First name, last name, and email cannot be empty')
    if 'status' in changes and changes['status'] is None:
        raise ValidationError('Status cannot be empty')

    with storage_guard(db, 'Error updating student'):
        student = get_student_or_404(db, student_id)

        new_email = changes.get('email')
        email_changed = new_email is not None and new_email != student.email
        if email_changed and email_in_use(db, new_email, exclude_user_id=student.user_id):
            raise ConflictError('Another account with this email already exists')
        if 'course_id' in changes:
            ensure_course_exists(db, changes['course_id'])

        for field, value in changes.items():
            setattr(student, field, value)
        student.updated_at = utcnow()

        # The login email follows the student email within the same commit.
        if email_changed:
            user = db.get(User, student.user_id)
            if user is not None:
                user.email = new_email

        db.commit()
        updated = get_student_or_404(db, student_id)

    return {
        'success': True,
        'message': 'Student updated successfully',
        'student': serialize_student(updated),
    }


@router.delete('/{student_id}')
def delete_student(student_id: int, db: Session = Depends(get_db), _admin=Depends(admin_only)):
    with storage_guard(db, 'Error deleting student'):
        student = get_student_or_404(db, student_id)
        user = db.get(User, student.user_id)

        db.delete(student)
        if user is not None:
            db.delete(user)
        db.commit()

    logger.info('Deleted student %s', student_id)
    return {'success': True, 'message': 'Student deleted successfully'}
