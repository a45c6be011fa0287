import json
import os
from typing import Any, Dict, Optional

from app.utils.logger import logger

CART_STORAGE_KEY = "cimplico_cart"
LANGUAGE_STORAGE_KEY = "cimplico_language"


class LocalStore:
    """Browser-style local storage persisted as one JSON file.

    Values are JSON-encoded strings keyed by name, the same shape
    ``window.localStorage`` holds. A missing or unreadable file behaves like
    empty storage.
    """

    def __init__(self, path: str):
        self.path = path
        self._data: Dict[str, str] = self._read()

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            logger.warning(f"Failed to load local store {self.path}: {exc}")
            return {}
        return data if isinstance(data, dict) else {}

    def _flush(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump(self._data, fh, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Discarding corrupt local store value for {key}")
            return default

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value, ensure_ascii=False)
        self._flush()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()
