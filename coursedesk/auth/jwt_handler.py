from datetime import datetime, timedelta, timezone

import jwt

from coursedesk.core import config
from coursedesk.core.enums import UserRole


class InvalidTokenError(Exception):
    """Raised when a token's signature, shape or expiry does not check out."""


def create_access_token(
    user_id: int,
    email: str,
    role: UserRole | str,
    expires_days: int | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(days=expires_days or config.JWT_EXPIRES_DAYS)
    payload = {
        "userId": user_id,
        "email": email,
        "role": UserRole(role).value,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(
            token,
            config.JWT_SECRET_KEY,
            algorithms=[config.JWT_ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(str(exc)) from exc

    if not isinstance(payload.get("userId"), int):
        raise InvalidTokenError("Token is missing the userId claim")
    return payload
