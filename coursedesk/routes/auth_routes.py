import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session, joinedload

from coursedesk.auth import jwt_handler
from coursedesk.auth.dependencies import admin_only, get_current_user
from coursedesk.auth.passwords import get_password_hash, verify_password
from coursedesk.core import config
from coursedesk.core.enums import UserRole
from coursedesk.core.errors import AuthenticationError, ConflictError, ValidationError
from coursedesk.database import get_db, storage_guard
from coursedesk.models.student import Student
from coursedesk.models.user import User
from coursedesk.serializers import serialize_student, serialize_user

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid email or password'


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.strip().lower() if value is not None else None


class RegisterRequest(LoginRequest):
    role: UserRole = UserRole.student


def load_student_info(db: Session, user_id: int, course_fields: tuple[str, ...]) -> dict | None:
    student = (
        db.query(Student)
        .options(joinedload(Student.course))
        .filter(Student.user_id == user_id)
        .first()
    )
    if student is None:
        return None
    return serialize_student(student, course_fields)


@router.post('/login')
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    if not payload.email or not payload.password:
        raise ValidationError('Email and password are required')

    with storage_guard(db, 'Internal server error during login'):
        user = db.query(User).filter(User.email == payload.email).first()
        # Same message for unknown email and wrong password.
        if user is None or not verify_password(payload.password, user.hashed_password):
            logger.info('Failed login attempt')
            raise AuthenticationError(INVALID_CREDENTIALS)

        user_data = {'id': user.id, 'email': user.email, 'role': user.role.value}
        if user.role == UserRole.student:
            student_info = load_student_info(db, user.id, ('name',))
            if student_info is not None:
                user_data['studentInfo'] = student_info

    token = jwt_handler.create_access_token(user.id, user.email, user.role)
    return {
        'success': True,
        'message': 'Login successful',
        'token': token,
        'user': user_data,
    }


@router.post('/register', status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db), _admin=Depends(admin_only)):
    if not payload.email or not payload.password:
        raise ValidationError('Email and password are required')
    if len(payload.password) < config.MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f'Password must be at least {config.MIN_PASSWORD_LENGTH} characters long'
        )

    with storage_guard(db, 'Internal server error during registration'):
        if db.query(User.id).filter(User.email == payload.email).first() is not None:
            raise ConflictError('User with this email already exists')

        user = User(
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
            role=payload.role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

    logger.info('Registered %s account %s', user.role.value, user.id)
    return {'success': True, 'message': 'User created successfully', 'userId': user.id}


@router.get('/profile')
def get_profile(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    with storage_guard(db, 'Error fetching user profile'):
        profile = serialize_user(current_user)
        if current_user.role == UserRole.student:
            student_info = load_student_info(db, current_user.id, ('name', 'description'))
            if student_info is not None:
                profile['studentInfo'] = student_info

    return {'success': True, 'user': profile}
