"""vinceml.storage -- path layout, image blob stores and preferences."""

from vinceml.storage.images import FileSystemImageStore, ImageStore, MemoryImageStore
from vinceml.storage.layout import StorageLayout
from vinceml.storage.preferences import (
    JSONPreferenceStore,
    MemoryPreferenceStore,
    PreferenceStore,
)

__all__ = [
    "FileSystemImageStore",
    "ImageStore",
    "MemoryImageStore",
    "StorageLayout",
    "JSONPreferenceStore",
    "MemoryPreferenceStore",
    "PreferenceStore",
]
