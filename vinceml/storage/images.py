"""Label-keyed image blob stores.

A store maps label -> ordered image blobs.  The filesystem backend is the
real training tree (one directory per label, handed to the trainer as is);
the memory backend satisfies the same contract without touching disk.
"""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Iterable

from vinceml.exceptions import ImageNotFoundError

logger = logging.getLogger("vinceml.storage")


def _check_component(kind: str, value: str) -> str:
    """Reject names that would escape their directory."""
    if not value or value in (".", "..") or "/" in value or "\\" in value:
        raise ValueError(f"Invalid {kind} name: {value!r}")
    return value


class ImageStore(ABC):
    """Abstract label -> image blob store."""

    @property
    @abstractmethod
    def exists(self) -> bool:
        """True once the store has been created (fails open when False)."""

    @property
    def root(self) -> Path | None:
        """Directory backing the store, or ``None`` when not on disk."""
        return None

    @abstractmethod
    def labels(self) -> list[str]:
        """Sorted label names."""

    @abstractmethod
    def add_label(self, label: str) -> None:
        """Create *label* if missing."""

    @abstractmethod
    def remove_label(self, label: str) -> bool:
        """Drop *label* and its images.  Returns False if it was absent."""

    @abstractmethod
    def names(self, label: str) -> list[str]:
        """Sorted image names under *label* (empty if the label is absent)."""

    @abstractmethod
    def write(self, label: str, name: str, data: bytes) -> None:
        """Store *data* as *name* under *label*, creating the label."""

    @abstractmethod
    def read(self, label: str, name: str) -> bytes:
        ...

    @abstractmethod
    def remove(self, label: str, name: str) -> None:
        """Delete one image; raise :class:`ImageNotFoundError` if absent."""

    @abstractmethod
    def created(self, label: str, name: str) -> datetime:
        ...

    def has_label(self, label: str) -> bool:
        return label in self.labels()

    def count(self, label: str, extensions: Iterable[str] | None = None) -> int:
        """Number of images under *label*, optionally filtered by extension."""
        names = self.names(label)
        if extensions is None:
            return len(names)
        exts = {e.lower() for e in extensions}
        return sum(1 for n in names if Path(n).suffix.lower() in exts)


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------

class FileSystemImageStore(ImageStore):
    """``<root>/<label>/<name>`` on local disk."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def exists(self) -> bool:
        return self._root.is_dir()

    def path(self, label: str, name: str) -> Path:
        return self._root / _check_component("label", label) / _check_component("image", name)

    def labels(self) -> list[str]:
        if not self.exists:
            return []
        return sorted(p.name for p in self._root.iterdir() if p.is_dir())

    def add_label(self, label: str) -> None:
        (self._root / _check_component("label", label)).mkdir(parents=True, exist_ok=True)

    def remove_label(self, label: str) -> bool:
        label_dir = self._root / _check_component("label", label)
        if not label_dir.exists():
            return False
        shutil.rmtree(label_dir)
        logger.debug("Removed label directory %s", label_dir)
        return True

    def names(self, label: str) -> list[str]:
        label_dir = self._root / _check_component("label", label)
        if not label_dir.is_dir():
            return []
        return sorted(p.name for p in label_dir.iterdir() if p.is_file())

    def write(self, label: str, name: str, data: bytes) -> None:
        self.add_label(label)
        self.path(label, name).write_bytes(data)

    def read(self, label: str, name: str) -> bytes:
        p = self.path(label, name)
        if not p.is_file():
            raise ImageNotFoundError(f"{label}/{name}")
        return p.read_bytes()

    def remove(self, label: str, name: str) -> None:
        p = self.path(label, name)
        if not p.is_file():
            raise ImageNotFoundError(f"{label}/{name}")
        p.unlink()

    def created(self, label: str, name: str) -> datetime:
        st = self.path(label, name).stat()
        # st_birthtime only exists on macOS/BSD (and recent Windows builds)
        ts = getattr(st, "st_birthtime", None) or st.st_mtime
        return datetime.fromtimestamp(ts)

    def __repr__(self) -> str:
        return f"FileSystemImageStore({str(self._root)!r})"


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------

class MemoryImageStore(ImageStore):
    """In-process store with the same contract as :class:`FileSystemImageStore`."""

    def __init__(self) -> None:
        self._labels: dict[str, dict[str, tuple[bytes, datetime]]] = {}

    @property
    def exists(self) -> bool:
        return True

    def labels(self) -> list[str]:
        return sorted(self._labels)

    def add_label(self, label: str) -> None:
        self._labels.setdefault(_check_component("label", label), {})

    def remove_label(self, label: str) -> bool:
        return self._labels.pop(label, None) is not None

    def names(self, label: str) -> list[str]:
        return sorted(self._labels.get(label, {}))

    def write(self, label: str, name: str, data: bytes) -> None:
        self.add_label(label)
        self._labels[label][_check_component("image", name)] = (bytes(data), datetime.now())

    def _entry(self, label: str, name: str) -> tuple[bytes, datetime]:
        try:
            return self._labels[label][name]
        except KeyError:
            raise ImageNotFoundError(f"{label}/{name}") from None

    def read(self, label: str, name: str) -> bytes:
        return self._entry(label, name)[0]

    def remove(self, label: str, name: str) -> None:
        self._entry(label, name)
        del self._labels[label][name]

    def created(self, label: str, name: str) -> datetime:
        return self._entry(label, name)[1]
