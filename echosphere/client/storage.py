"""Client-local key/value store.

Values are JSON-serializable. ``JsonFileStore`` persists to a single JSON
file; ``MemoryStore`` is for tests and throwaway sessions.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class LocalStore(ABC):
    """Abstract key/value store. ``get`` may raise on unreadable storage."""

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the stored value or None."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class MemoryStore(LocalStore):
    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(LocalStore):
    """All keys live in one JSON object on disk, rewritten on every change."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, key: str) -> Any:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        try:
            data = self._read()
        except ValueError:
            logger.warning("Replacing unreadable client store at %s", self.path)
            data = {}
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        try:
            data = self._read()
        except ValueError:
            logger.warning("Discarding unreadable client store at %s", self.path)
            self._write({})
            return
        if key in data:
            del data[key]
            self._write(data)
