"""Shape ORM rows into the JSON bodies the API returns."""

from typing import Any, Iterable

from coursedesk.models.course import Course
from coursedesk.models.student import Student
from coursedesk.models.user import User

STUDENT_COURSE_SUMMARY = ("name",)
STUDENT_COURSE_LISTING = ("name", "instructor")
STUDENT_COURSE_DETAIL = ("name", "description", "instructor", "duration")


def serialize_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role.value,
        "created_at": user.created_at,
    }


def serialize_course(course: Course, student_count: int | None = None) -> dict[str, Any]:
    data = {
        "id": course.id,
        "name": course.name,
        "description": course.description,
        "duration": course.duration,
        "instructor": course.instructor,
        "created_at": course.created_at,
        "updated_at": course.updated_at,
    }
    if student_count is not None:
        data["student_count"] = int(student_count)
    return data


def serialize_student(
    student: Student,
    course_fields: Iterable[str] = STUDENT_COURSE_SUMMARY,
) -> dict[str, Any]:
    data = {
        "id": student.id,
        "user_id": student.user_id,
        "first_name": student.first_name,
        "last_name": student.last_name,
        "email": student.email,
        "phone": student.phone,
        "date_of_birth": student.date_of_birth,
        "course_id": student.course_id,
        "status": student.status.value,
        "enrollment_date": student.enrollment_date,
        "created_at": student.created_at,
        "updated_at": student.updated_at,
    }
    course = student.course
    for field in course_fields:
        data[f"course_{field}"] = getattr(course, field) if course is not None else None
    return data


def serialize_roster_entry(student: Student) -> dict[str, Any]:
    return {
        "id": student.id,
        "first_name": student.first_name,
        "last_name": student.last_name,
        "email": student.email,
        "phone": student.phone,
        "enrollment_date": student.enrollment_date,
        "status": student.status.value,
    }
