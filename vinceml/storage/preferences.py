"""Key-value preference stores (holds the selected-model pointer).

The JSON store serialises read-modify-write cycles across processes with a
``portalocker`` lock on a sidecar file.  Concurrent writers are still
last-writer-wins, but the file is never left half written.
"""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import portalocker

logger = logging.getLogger("vinceml.storage")


class PreferenceStore(ABC):
    """Minimal key-value store."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete *key*; no-op when absent."""


class MemoryPreferenceStore(PreferenceStore):
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JSONPreferenceStore(PreferenceStore):
    """Preferences persisted as a single JSON object.

    Parameters
    ----------
    path : Path
        JSON file.  Created (with its parent directory) on first write.
    lock_timeout : float
        Seconds to wait for the inter-process lock.
    """

    def __init__(self, path: Path, lock_timeout: float = 10.0) -> None:
        self.path = Path(path)
        self.lock_timeout = lock_timeout
        self._lock_path = self.path.with_name(self.path.name + ".lock")

    def _lock(self) -> portalocker.Lock:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return portalocker.Lock(str(self._lock_path), timeout=self.lock_timeout)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring preferences file %s: not a JSON object", self.path)
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True))
        os.replace(tmp, self.path)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock():
            return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock():
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        with self._lock():
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def __repr__(self) -> str:
        return f"JSONPreferenceStore({str(self.path)!r})"
