from enum import Enum


class UserRole(str, Enum):
    admin = "admin"
    student = "student"


class StudentStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    graduated = "graduated"
