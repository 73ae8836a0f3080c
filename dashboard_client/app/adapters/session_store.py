"""
Persisted session state: the bearer token and the signed-in user.

Two string values live under fixed keys, the same shape a browser keeps in
local storage. The file-backed store lets a session survive restarts.
"""

import json
import os
from abc import ABC, abstractmethod
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import ValidationError

from shared.logging import get_logger
from ..domain.models import User


TOKEN_KEY = "auth_token"
USER_KEY = "user"


class SessionStore(ABC):
    """Key/value store for the session; subclasses provide the storage."""

    def __init__(self):
        self.logger = get_logger("session.store")

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    def get_token(self) -> Optional[str]:
        return self.get_item(TOKEN_KEY)

    def set_token(self, token: str) -> None:
        self.set_item(TOKEN_KEY, token)

    def get_user(self) -> Optional[User]:
        raw = self.get_item(USER_KEY)
        if not raw:
            return None
        try:
            return User.model_validate_json(raw)
        except ValidationError as exc:
            self.logger.warning("Discarding unreadable stored user", error=str(exc))
            self.remove_item(USER_KEY)
            return None

    def set_user(self, user: User) -> None:
        self.set_item(USER_KEY, user.model_dump_json(by_alias=True, exclude_none=True))

    def save(self, token: str, user: User) -> None:
        self.set_token(token)
        self.set_user(user)

    def clear(self) -> None:
        self.remove_item(TOKEN_KEY)
        self.remove_item(USER_KEY)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.get_token()) and self.get_user() is not None


class MemorySessionStore(SessionStore):
    """In-process store, used when no session file is configured."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        super().__init__()
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class FileSessionStore(SessionStore):
    """Store backed by a small JSON file."""

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            self.logger.warning("Session file unreadable, starting signed out",
                                path=str(self.path), error=str(exc))
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _write(self, items: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".session-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(items, handle)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._load()
        if key in items:
            del items[key]
            self._write(items)


def get_session_store(session_file: Optional[str] = None) -> SessionStore:
    """File store when a path is configured, memory store otherwise."""
    if session_file:
        return FileSessionStore(session_file)
    return MemorySessionStore()
