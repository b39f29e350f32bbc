"""Key-value persistence for questions, attempts and shared quizzes.

Every collection lives under a single string key and is stored as a
JSON-serializable value. Reads never raise: a missing or corrupt store behaves
like an empty one so a damaged data file degrades to default state instead of
stopping the application.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Synchronous string-keyed store holding JSON-serializable values."""

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class InMemoryStore:
    """Process-local store; values are round-tripped through JSON on write."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as exc:
            logger.warning("Stored value for %r is not valid JSON, using default: %s", key, exc)
            return default

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def set_raw(self, key: str, raw: str) -> None:
        """Store an already-encoded value, e.g. to simulate corruption."""
        self._data[key] = raw


class JsonFileStore:
    """Store backed by one JSON document on disk.

    Each ``set`` rewrites the whole document. Two processes writing the same
    file race on the full document and the last writer wins.
    """

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path.resolve()
        self._lock = Lock()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            document = self._read_document()
        return document.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            document = self._read_document()
            document[key] = value
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
            tmp_path.replace(self._file_path)

    def _read_document(self) -> dict[str, Any]:
        if not self._file_path.exists():
            return {}
        try:
            document = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read %s, using empty state: %s", self._file_path, exc)
            return {}
        if not isinstance(document, dict):
            logger.warning("Ignoring malformed store document in %s", self._file_path)
            return {}
        return document
