"""Create the first administrator account.

Registration is admin-only, so a fresh database needs one admin created
out of band.

Usage:
    python -m coursedesk.create_admin --email admin@example.com
"""
import argparse
import getpass
import sys

from coursedesk.auth.passwords import get_password_hash
from coursedesk.core import config
from coursedesk.core.enums import UserRole
from coursedesk.database import SessionLocal, init_db
from coursedesk.models.user import User


def create_admin(db, email: str, password: str) -> User:
    email = email.strip().lower()
    if db.query(User.id).filter(User.email == email).first() is not None:
        raise ValueError(f"User with email {email} already exists")
    if len(password) < config.MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {config.MIN_PASSWORD_LENGTH} characters long")

    user = User(email=email, hashed_password=get_password_hash(password), role=UserRole.admin)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a CourseDesk administrator")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", help="prompted for when omitted")
    args = parser.parse_args(argv)

    password = args.password or getpass.getpass("Password: ")

    init_db()
    db = SessionLocal()
    try:
        user = create_admin(db, args.email, password)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1
    finally:
        db.close()

    print(f"Created admin {user.email} (id {user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
