import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from coursedesk.auth.jwt_handler import create_access_token  # noqa: E402
from coursedesk.auth.passwords import get_password_hash  # noqa: E402
from coursedesk.core.enums import UserRole  # noqa: E402
from coursedesk.database import Base, enable_sqlite_foreign_keys, get_db, init_db  # noqa: E402
from coursedesk.main import app  # noqa: E402
from coursedesk.models.user import User  # noqa: E402

ADMIN_EMAIL = 'admin@example.edu'
ADMIN_PASSWORD = 'admin-pass'


@pytest.fixture
def engine():
    test_engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine)
    init_db(test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(session_factory):
    def _make_user(email: str, password: str = 'secret123', role: UserRole = UserRole.student) -> User:
        db = session_factory()
        try:
            user = User(email=email, hashed_password=get_password_hash(password), role=role)
            db.add(user)
            db.commit()
            db.refresh(user)
            db.expunge(user)
            return user
        finally:
            db.close()

    return _make_user


def bearer(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.email, user.role)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_user(make_user) -> User:
    return make_user(ADMIN_EMAIL, ADMIN_PASSWORD, UserRole.admin)


@pytest.fixture
def admin_headers(admin_user) -> dict[str, str]:
    return bearer(admin_user)


@pytest.fixture
def student_headers(make_user) -> dict[str, str]:
    return bearer(make_user('lone.student@example.edu'))


@pytest.fixture
def headers_for():
    return bearer


@pytest.fixture
def create_course(client, admin_headers):
    def _create_course(**fields):
        response = client.post('/api/courses', headers=admin_headers, json=fields)
        assert response.status_code == 201, response.json()
        return response.json()['course']

    return _create_course


@pytest.fixture
def create_student(client, admin_headers):
    def _create_student(email: str, **fields):
        payload = {'first_name': 'Test', 'last_name': 'Student', 'email': email, **fields}
        response = client.post('/api/students', headers=admin_headers, json=payload)
        assert response.status_code == 201, response.json()
        return response.json()['student']

    return _create_student
