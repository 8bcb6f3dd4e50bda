"""
A JSON file standing in for browser local storage.

Each top-level key is one named entry. The whole file is rewritten on every
`set_item`/`remove_item`, through a temp file so a crash never leaves it half written.
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from happytrails.core.errors import StoreError
from happytrails.core.logger import logger

BOOKINGS_KEY = "happytrails.bookings"
PROFILES_KEY = "happytrails.profiles"


class LocalStorage:
    def __init__(self, path: str):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"❌ Local storage unreadable ({self.path}): {e}")
            raise StoreError("Local storage could not be read.") from e
        if not isinstance(data, dict):
            raise StoreError("Local storage is corrupt.")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        tmp = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"❌ Local storage write failed ({self.path}): {e}")
            if tmp is not None and os.path.exists(tmp):
                os.unlink(tmp)
            raise StoreError("Local storage could not be written.") from e

    def get_item(self, key: str) -> Optional[Any]:
        return self._read().get(key)

    def set_item(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)
