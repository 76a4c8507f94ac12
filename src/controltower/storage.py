"""Persistent client-side key-value storage.

The dashboard keeps two JSON blobs (settings and session) in a flat
string-to-string store, the same shape as a browser's ``localStorage``.
Components receive a :class:`KeyValueStore` instead of reaching for
ambient storage, so tests can use :class:`MemoryKeyValueStore`.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

_logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Structural storage interface used by the settings and session stores."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def clear(self) -> None:
        ...


class MemoryKeyValueStore:
    """Process-local store. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class JsonFileKeyValueStore:
    """Store backed by a single JSON object on disk.

    Every mutation rewrites the file atomically (temp file + rename). An
    unreadable file is treated as empty and replaced on the next write.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._data: dict[str, str] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError:
            _logger.warning("Cannot read storage file %s", self._path, exc_info=True)
            return {}
        try:
            raw = json.loads(text)
        except json.JSONDecodeError:
            _logger.warning("Storage file %s is not valid JSON; starting empty", self._path)
            return {}
        if not isinstance(raw, dict):
            _logger.warning("Storage file %s does not hold an object; starting empty", self._path)
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".kv-", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._data, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()

    def clear(self) -> None:
        self._data.clear()
        self._flush()
