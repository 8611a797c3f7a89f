"""
Local Persistence Port

A small key/value store with browser local-storage semantics: string values
under fixed keys, load on init, save on change. InMemoryStore is used in
tests; JsonFileStore keeps every key in one JSON file on disk.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CHAT_HISTORY_KEY = "chatbot-history"
PROGRESS_KEY = "codegym-progress"


class KeyValueStore(ABC):
    """Interface for the persistence port."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    def load_json(self, key: str) -> Any:
        """
        Read and decode a JSON value.

        Returns None when the key is absent or the stored text is corrupt;
        a corrupt entry is logged, not raised, so a bad value never blocks
        the session from starting.
        """
        raw = self.get_item(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse stored value for {key}: {e}")
            return None

    def save_json(self, key: str, value: Any) -> None:
        self.set_item(key, json.dumps(value))


class InMemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key):
        return self._items.get(key)

    def set_item(self, key, value):
        self._items[key] = value

    def remove_item(self, key):
        self._items.pop(key, None)

    def keys(self):
        return list(self._items)


class JsonFileStore(KeyValueStore):
    """All keys in a single JSON object file, rewritten on every change."""

    def __init__(self, path: str):
        self.path = path
        self._items: Dict[str, str] = self._read()

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read storage file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._items, f, indent=2)
        os.replace(tmp_path, self.path)

    def get_item(self, key):
        return self._items.get(key)

    def set_item(self, key, value):
        self._items[key] = value
        self._write()

    def remove_item(self, key):
        if key in self._items:
            del self._items[key]
            self._write()
