"""Browser-style local persistent storage"""

import json
import logging
import os
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Fixed keys
CART_KEY = "avangard_cart"
AUTH_KEY = "avangard_auth"
ADMIN_ACCESS_KEY = "accessToken"
ADMIN_REFRESH_KEY = "refreshToken"


class LocalStore:
    """
    Key/value store holding JSON values, like a browser's localStorage.

    In-memory unless a path is given, in which case the whole document is
    rewritten on every change.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._data: dict[str, Any] = {}
        if path:
            self._data = self._read()

    def _read(self) -> dict[str, Any]:
        if not self.path or not os.path.exists(self.path):
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed store {self.path}")
            return {}
        return data

    def _write(self) -> None:
        if not self.path:
            return

        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._write()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._write()

    def clear(self) -> None:
        self._data = {}
        self._write()

    def __contains__(self, key: str) -> bool:
        return key in self._data
