import logging
from typing import Any, Iterable

from coursedesk.client.api import ApiClient, ApiError, NetworkError
from coursedesk.client.session_store import SessionStore
from coursedesk.core.enums import UserRole

logger = logging.getLogger(__name__)


class AuthContext:
    """Client-side login state for one mounted application.

    Create it when the application mounts, call ``init()`` to restore a saved
    session and ``teardown()`` on unmount. Role helpers read the cached role
    only; the server re-checks roles on every request.
    """

    def __init__(self, api: ApiClient, store: SessionStore) -> None:
        self.api = api
        self.store = store
        self.token: str | None = None
        self.user: dict[str, Any] | None = None
        self.loading = True

    def init(self) -> None:
        self.api.on_unauthorized = self._forget
        stored_token, stored_user = self.store.load()

        if stored_token and stored_user:
            self.token = stored_token
            self.user = stored_user
            try:
                self.api.auth.get_profile()
            except ApiError as exc:
                logger.warning("Stored session rejected: %s", exc.message)
                self.logout()
        self.loading = False

    def teardown(self) -> None:
        if self.api.on_unauthorized == self._forget:
            self.api.on_unauthorized = None
        self._forget()
        self.loading = True

    def __enter__(self) -> "AuthContext":
        self.init()
        return self

    def __exit__(self, *exc_info) -> None:
        self.teardown()

    def login(self, email: str, password: str) -> dict[str, Any]:
        if not email or not password:
            return {"success": False, "message": "Please provide both email and password"}

        try:
            data = self.api.auth.login(email, password)
        except NetworkError:
            return {"success": False, "message": "Unable to connect to the server. Please try again."}
        except ApiError as exc:
            return {"success": False, "message": exc.message}

        if data.get("token") and data.get("user"):
            self.store.save(data["token"], data["user"])
            self.token = data["token"]
            self.user = data["user"]
            return {"success": True}

        if data.get("message"):
            return {"success": False, "message": data["message"]}
        return {"success": False, "message": "Login failed. Unexpected server response."}

    def logout(self) -> None:
        self.store.clear()
        self._forget()

    def _forget(self) -> None:
        self.token = None
        self.user = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and bool(self.user)

    @property
    def role(self) -> UserRole | None:
        if not self.user:
            return None
        try:
            return UserRole(self.user.get("role"))
        except ValueError:
            return None

    def has_role(self, roles: UserRole | Iterable[UserRole]) -> bool:
        if self.role is None:
            return False
        if isinstance(roles, UserRole):
            return self.role == roles
        return self.role in set(roles)

    def is_admin(self) -> bool:
        return self.has_role(UserRole.admin)

    def is_student(self) -> bool:
        return self.has_role(UserRole.student)
