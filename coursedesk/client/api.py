"""HTTP client for the CourseDesk API.

Every request carries the stored bearer token. A 401 from the server wipes the
stored session and notifies ``on_unauthorized`` so the caller can send the
user back to the login screen.
"""
import logging
import time
from typing import Any, Callable

import httpx

from coursedesk.client.session_store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000/api"

FALLBACK_MESSAGES = {
    401: "Session expired. Please login again.",
    403: "You do not have permission to perform this action.",
    404: "The requested resource was not found.",
    429: "Too many requests. Please try again later.",
}


class ApiError(Exception):
    def __init__(self, message: str, status_code: int | None = None, payload: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class SessionExpiredError(ApiError):
    pass


class NetworkError(ApiError):
    pass


class ApiClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        store: SessionStore | None = None,
        http: httpx.Client | None = None,
        retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 10.0,
        on_unauthorized: Callable[[], None] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.store = store
        self.retries = retries
        self.retry_delay = retry_delay
        self.on_unauthorized = on_unauthorized
        self._sleep = sleep
        self._owns_http = http is None
        self._http = http or httpx.Client(timeout=timeout)

        self.auth = AuthAPI(self)
        self.students = StudentsAPI(self)
        self.courses = CoursesAPI(self)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.store.token if self.store is not None else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(self, method: str, path: str, json: Any = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        attempt = 0
        while True:
            try:
                response = self._http.request(method, url, json=json, headers=self._headers())
                break
            except httpx.TransportError as exc:
                attempt += 1
                if attempt > self.retries:
                    raise NetworkError("Network Error. Please check your internet connection.") from exc
                delay = attempt * self.retry_delay
                logger.warning("%s %s failed (%s); retry %d in %.1fs", method, path, exc, attempt, delay)
                self._sleep(delay)

        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.is_success:
            return payload

        status = response.status_code
        message = payload.get("message") if isinstance(payload, dict) else None

        if status == 401:
            if self.store is not None:
                self.store.clear()
            if self.on_unauthorized is not None:
                self.on_unauthorized()
            raise SessionExpiredError(message or FALLBACK_MESSAGES[401], status, payload)

        if not message:
            if status >= 500:
                message = "Server error. Please try again later."
            else:
                message = FALLBACK_MESSAGES.get(status, f"Request failed with status {status}")
        raise ApiError(message, status, payload)

    def get(self, path: str) -> dict[str, Any]:
        return self.request("GET", path)

    def post(self, path: str, json: Any = None) -> dict[str, Any]:
        return self.request("POST", path, json=json)

    def put(self, path: str, json: Any = None) -> dict[str, Any]:
        return self.request("PUT", path, json=json)

    def delete(self, path: str) -> dict[str, Any]:
        return self.request("DELETE", path)


class AuthAPI:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def login(self, email: str, password: str) -> dict[str, Any]:
        return self._client.post("/auth/login", {"email": email, "password": password})

    def register(self, email: str, password: str, role: str = "student") -> dict[str, Any]:
        return self._client.post("/auth/register", {"email": email, "password": password, "role": role})

    def get_profile(self) -> dict[str, Any]:
        return self._client.get("/auth/profile")


class StudentsAPI:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def list(self) -> dict[str, Any]:
        return self._client.get("/students")

    def get(self, student_id: int) -> dict[str, Any]:
        return self._client.get(f"/students/{student_id}")

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.post("/students", data)

    def update(self, student_id: int, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.put(f"/students/{student_id}", data)

    def delete(self, student_id: int) -> dict[str, Any]:
        return self._client.delete(f"/students/{student_id}")

    def by_course(self, course_id: int) -> dict[str, Any]:
        return self._client.get(f"/students/course/{course_id}")

    def reset_password(self, student_id: int, new_password: str | None = None) -> dict[str, Any]:
        body = {"newPassword": new_password} if new_password else {}
        return self._client.put(f"/students/{student_id}/reset-password", body)


class CoursesAPI:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def list(self) -> dict[str, Any]:
        return self._client.get("/courses")

    def get(self, course_id: int) -> dict[str, Any]:
        return self._client.get(f"/courses/{course_id}")

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.post("/courses", data)

    def update(self, course_id: int, data: dict[str, Any]) -> dict[str, Any]:
        return self._client.put(f"/courses/{course_id}", data)

    def delete(self, course_id: int) -> dict[str, Any]:
        return self._client.delete(f"/courses/{course_id}")

    def students(self, course_id: int) -> dict[str, Any]:
        return self._client.get(f"/courses/{course_id}/students")

    def stats(self) -> dict[str, Any]:
        return self._client.get("/courses/admin/stats")
