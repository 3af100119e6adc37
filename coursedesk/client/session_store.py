import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class SessionStore:
    """Persists the bearer token and cached user between client runs."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> tuple[str | None, dict[str, Any] | None]:
        if not self.path.exists():
            return None, None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Discarding unreadable session file %s", self.path)
            return None, None
        if not isinstance(data, dict):
            return None, None
        return data.get("token"), data.get("user")

    @property
    def token(self) -> str | None:
        return self.load()[0]

    def save(self, token: str, user: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token, "user": user}), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
