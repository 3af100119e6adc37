import logging
from typing import Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from coursedesk.auth import jwt_handler
from coursedesk.core.enums import UserRole
from coursedesk.core.errors import AuthenticationError, AuthorizationError
from coursedesk.database import get_db, storage_guard
from coursedesk.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required")

    try:
        payload = jwt_handler.decode_access_token(credentials.credentials)
    except jwt_handler.InvalidTokenError as exc:
        logger.warning("Token verification failed: %s", exc)
        raise AuthorizationError("Invalid or expired token") from exc

    with storage_guard(db, "Error verifying user"):
        user = db.get(User, payload["userId"])
    if user is None:
        raise AuthenticationError("User not found")
    return user


def require_roles(*roles: UserRole) -> Callable[..., User]:
    allowed = frozenset(roles)
    required = " or ".join(role.value for role in roles)

    def role_gate(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise AuthorizationError(f"Access denied. Required role: {required}")
        return current_user

    return role_gate


admin_only = require_roles(UserRole.admin)
student_or_admin = require_roles(UserRole.student, UserRole.admin)
