"""Tests for vinceml.storage.images.

Both backends run through the same contract tests.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from vinceml.exceptions import ImageNotFoundError
from vinceml.storage.images import FileSystemImageStore, ImageStore, MemoryImageStore


@pytest.fixture(params=["fs", "memory"])
def store(request, tmp_path: Path) -> ImageStore:
    if request.param == "fs":
        s = FileSystemImageStore(tmp_path / "Images")
        (tmp_path / "Images").mkdir()
        return s
    return MemoryImageStore()


class TestImageStoreContract:
    def test_empty(self, store: ImageStore):
        assert store.exists
        assert store.labels() == []
        assert store.names("cat") == []

    def test_add_label(self, store: ImageStore):
        store.add_label("cat")
        store.add_label("cat")
        assert store.labels() == ["cat"]
        assert store.has_label("cat")
        assert store.names("cat") == []

    def test_write_creates_label(self, store: ImageStore):
        store.write("dog", "b.jpg", b"2")
        store.write("dog", "a.jpg", b"1")
        assert store.labels() == ["dog"]
        assert store.names("dog") == ["a.jpg", "b.jpg"]
        assert store.read("dog", "a.jpg") == b"1"

    def test_created(self, store: ImageStore):
        store.write("dog", "a.jpg", b"1")
        assert isinstance(store.created("dog", "a.jpg"), datetime)

    def test_remove(self, store: ImageStore):
        store.write("dog", "a.jpg", b"1")
        store.remove("dog", "a.jpg")
        assert store.names("dog") == []
        assert store.labels() == ["dog"]

    def test_remove_missing(self, store: ImageStore):
        with pytest.raises(ImageNotFoundError):
            store.remove("dog", "nope.jpg")

    def test_read_missing(self, store: ImageStore):
        with pytest.raises(ImageNotFoundError):
            store.read("dog", "nope.jpg")

    def test_remove_label(self, store: ImageStore):
        store.write("dog", "a.jpg", b"1")
        assert store.remove_label("dog") is True
        assert store.labels() == []
        assert store.remove_label("dog") is False

    def test_count_filters_extensions(self, store: ImageStore):
        store.write("cat", "a.jpg", b"")
        store.write("cat", "b.PNG", b"")
        store.write("cat", "notes.txt", b"")
        assert store.count("cat") == 3
        assert store.count("cat", [".jpg", ".png"]) == 2

    @pytest.mark.parametrize("bad", ["", ".", "..", "a/b", "a\\b"])
    def test_rejects_escaping_labels(self, store: ImageStore, bad: str):
        with pytest.raises(ValueError, match="Invalid label"):
            store.add_label(bad)


class TestFileSystemImageStore:
    def test_missing_root(self, tmp_path: Path):
        s = FileSystemImageStore(tmp_path / "nope")
        assert not s.exists
        assert s.labels() == []
        assert s.root == tmp_path / "nope"

    def test_layout_on_disk(self, tmp_path: Path):
        s = FileSystemImageStore(tmp_path / "Images")
        s.write("cat", "X.jpg", b"data")
        assert (tmp_path / "Images" / "cat" / "X.jpg").read_bytes() == b"data"
        assert s.path("cat", "X.jpg") == tmp_path / "Images" / "cat" / "X.jpg"

    def test_files_at_root_are_not_labels(self, tmp_path: Path):
        root = tmp_path / "Images"
        root.mkdir()
        (root / "stray.jpg").write_bytes(b"")
        (root / "cat").mkdir()
        assert FileSystemImageStore(root).labels() == ["cat"]

    def test_subdirs_are_not_images(self, tmp_path: Path):
        s = FileSystemImageStore(tmp_path / "Images")
        s.add_label("cat")
        (tmp_path / "Images" / "cat" / "nested").mkdir()
        assert s.names("cat") == []


class TestMemoryImageStore:
    def test_root_is_none(self):
        assert MemoryImageStore().root is None

    def test_write_copies_bytes(self):
        s = MemoryImageStore()
        buf = bytearray(b"abc")
        s.write("cat", "a.jpg", buf)
        buf[0] = ord("z")
        assert s.read("cat", "a.jpg") == b"abc"
