"""
Persisted client session: the auth token and the signed-in user's profile.

Stored as a small JSON file (PHARMACY_SESSION_FILE) so a restarted client
stays logged in until the token expires.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from app.core.config import settings

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
USER_KEY = "user"
SESSION_FILE_MODE = 0o600


class SessionStore:
    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.PHARMACY_SESSION_FILE).expanduser()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"[Session] Ignoring unreadable session file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]) -> None:
        # Holds a bearer token: owner read/write only.
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, SESSION_FILE_MODE)
        if hasattr(os, "fchmod"):
            os.fchmod(fd, SESSION_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp, self.path)

    def get(self, key: str) -> Any:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    @property
    def token(self) -> Optional[str]:
        return self.get(TOKEN_KEY)

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self.get(USER_KEY)

    def save_login(self, token: str, user: Dict[str, Any]) -> None:
        data = self._load()
        data[TOKEN_KEY] = token
        data[USER_KEY] = user
        self._save(data)

    def clear(self) -> None:
        data = self._load()
        data.pop(TOKEN_KEY, None)
        data.pop(USER_KEY, None)
        self._save(data)


class MemorySessionStore(SessionStore):
    """Session kept in memory only. Used by tests and one-off scripts."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data = dict(data or {})
        self.path = None

    def _load(self) -> Dict[str, Any]:
        return dict(self._data)

    def _save(self, data: Dict[str, Any]) -> None:
        self._data = dict(data)
