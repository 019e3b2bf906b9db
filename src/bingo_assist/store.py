"""Key-value storage for cards and session state."""

from __future__ import annotations

import abc
import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    pass


class KeyValueStore(abc.ABC):
    """Minimal key-value contract used by the card and session layers.

    Values must be JSON-compatible.
    """

    @abc.abstractmethod
    def get(self, key: str, default: Any = None) -> Any: ...

    @abc.abstractmethod
    def set(self, key: str, value: Any) -> None: ...

    @abc.abstractmethod
    def delete(self, key: str) -> None: ...


class MemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


def ensure_parent(path: Path, *, mkdirs: bool) -> None:
    parent = path.parent
    if not parent.exists() and mkdirs:
        parent.mkdir(parents=True, exist_ok=True)


class JsonFileStore(KeyValueStore):
    """All keys live in one JSON document, rewritten on every mutation."""

    def __init__(self, path: Path | str, *, mkdirs: bool = True):
        self.path = Path(path)
        self.mkdirs = mkdirs

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise StoreError(f"Store file is not valid JSON: {self.path}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"Top-level store document must be a mapping: {self.path}")
        return data

    def _dump(self, data: Dict[str, Any]) -> None:
        ensure_parent(self.path, mkdirs=self.mkdirs)
        text = json.dumps(data, ensure_ascii=True, sort_keys=True, indent=2)
        self.path.write_text(text + "\n", encoding="utf-8")
        logger.debug("Wrote store %s (%d keys)", self.path, len(data))

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)
