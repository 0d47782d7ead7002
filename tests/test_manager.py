"""Tests for vinceml.manager."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from vinceml.exceptions import ModelAlreadyExistsError, NotFoundError
from vinceml.manager import ModelManager
from vinceml.models.records import ModelStatus


@pytest.fixture
def manager(workspace) -> ModelManager:
    return workspace.models


def _train_output(manager: ModelManager, name: str, data: bytes = b"weights") -> Path:
    """Weights as the trainer leaves them, inside the model directory."""
    path = manager.training_path(name)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


# ---------------------------------------------------------------------------
# create_empty / listing
# ---------------------------------------------------------------------------

class TestCreateEmpty:
    def test_skeleton(self, manager: ModelManager):
        model_dir = manager.create_empty("A")
        assert model_dir == manager.layout.model_dir("A")
        assert (model_dir / "Images").is_dir()
        text = (model_dir / "A.txt").read_text()
        assert "A" in text
        assert "Images/" in text
        assert "A.onnx" in text

    def test_listed_as_placeholder(self, manager: ModelManager):
        manager.create_empty("A")
        assert manager.list_models() == ["A"]
        assert manager.status("A") == ModelStatus.PLACEHOLDER
        assert manager.load_model("A") is None

    def test_duplicate_leaves_directory_untouched(self, manager: ModelManager):
        model_dir = manager.create_empty("A")
        (model_dir / "Images" / "cat").mkdir()
        before = sorted(p.relative_to(model_dir) for p in model_dir.rglob("*"))

        with pytest.raises(ModelAlreadyExistsError):
            manager.create_empty("A")

        assert sorted(p.relative_to(model_dir) for p in model_dir.rglob("*")) == before

    @pytest.mark.parametrize("bad", ["", ".", "..", ".hidden", "a/b"])
    def test_invalid_names(self, manager: ModelManager, bad: str):
        with pytest.raises(ValueError):
            manager.create_empty(bad)

    def test_list_sorted_and_skips_scratch(self, manager: ModelManager):
        manager.create_empty("b")
        manager.create_empty("a")
        (manager.layout.root_dir / ".work").mkdir()
        (manager.layout.root_dir / "preferences.json").write_text("{}")
        assert manager.list_models() == ["a", "b"]

    def test_list_entries(self, manager: ModelManager):
        manager.create_empty("A")
        manager.create_empty("B")
        _train_output(manager, "B")
        manager.save_trained(manager.training_path("B"), "B")

        entries = {e.name: e for e in manager.list_entries()}
        assert entries["A"].status == ModelStatus.PLACEHOLDER
        assert entries["B"].is_trained
        assert entries["B"].selected and not entries["A"].selected


# ---------------------------------------------------------------------------
# save_trained / save_from_external
# ---------------------------------------------------------------------------

class TestSaveTrained:
    def test_compiles_and_installs(self, manager: ModelManager):
        manager.create_empty("A")
        src = _train_output(manager, "A")

        final = manager.save_trained(src, "A")

        assert final == manager.model_path("A")
        assert final.read_bytes() == b"compiled:weights"
        assert not manager.layout.placeholder_path("A").exists()
        assert not src.exists()
        assert manager.status("A") == ModelStatus.TRAINED
        assert manager.selected_model_name() == "A"

    def test_compiled_input_copied(self, tmp_path: Path, manager: ModelManager):
        src = tmp_path / "elsewhere.onnx"
        src.write_bytes(b"ready")
        final = manager.save_trained(src, "A")
        assert final.read_bytes() == b"ready"
        assert src.exists()

    def test_replaces_existing(self, manager: ModelManager):
        manager.create_empty("A")
        manager.save_trained(_train_output(manager, "A", b"v1"), "A")
        manager.save_trained(_train_output(manager, "A", b"v2"), "A")
        assert manager.model_path("A").read_bytes() == b"compiled:v2"

    def test_external_pt_is_kept(self, tmp_path: Path, manager: ModelManager):
        src = tmp_path / "run" / "best.pt"
        src.parent.mkdir()
        src.write_bytes(b"w")
        manager.save_trained(src, "A")
        assert src.exists()
        assert manager.model_path("A").exists()

    def test_missing_source(self, tmp_path: Path, manager: ModelManager):
        with pytest.raises(NotFoundError):
            manager.save_trained(tmp_path / "nope.pt", "A")


class TestSaveFromExternal:
    def test_import(self, tmp_path: Path, manager: ModelManager):
        manager.create_empty("A")
        src = tmp_path / "shared.onnx"
        src.write_bytes(b"shared")

        final = manager.save_from_external(src, "A")

        assert final.read_bytes() == b"shared"
        assert not manager.layout.placeholder_path("A").exists()
        assert manager.selected_model_name() == "A"

    def test_import_directory_artifact(self, tmp_path: Path, manager: ModelManager):
        src = tmp_path / "bundle"
        src.mkdir()
        (src / "weights.bin").write_bytes(b"x")
        final = manager.save_from_external(src, "A")
        assert (final / "weights.bin").exists()

    def test_missing_source(self, tmp_path: Path, manager: ModelManager):
        with pytest.raises(NotFoundError):
            manager.save_from_external(tmp_path / "nope.onnx", "A")


# ---------------------------------------------------------------------------
# Loading / selection
# ---------------------------------------------------------------------------

class TestGetCurrent:
    def test_empty_store(self, manager: ModelManager):
        assert manager.get_current() is None

    def test_selected_model(self, manager: ModelManager, mock_yolo):
        manager.save_trained(_train_output(manager, "A"), "A")
        manager.save_trained(_train_output(manager, "B"), "B")
        manager.set_selected_model("A")

        current = manager.get_current()

        assert current is not None
        assert current.name == "A"
        assert current.artifact_path == manager.model_path("A")

    def test_falls_back_to_first(self, manager: ModelManager, mock_yolo):
        manager.save_trained(_train_output(manager, "B"), "B")
        manager.save_trained(_train_output(manager, "C"), "C")
        manager.set_selected_model("gone")

        current = manager.get_current()

        assert current.name == "B"
        assert manager.selected_model_name() == "B"

    def test_fallback_persisted_even_if_untrained(self, manager: ModelManager, mock_yolo):
        manager.create_empty("A")
        manager.save_trained(_train_output(manager, "B"), "B")
        manager.set_selected_model("gone")

        assert manager.get_current() is None
        assert manager.selected_model_name() == "A"

    def test_load_failure_is_none(self, manager: ModelManager, mock_yolo):
        manager.save_trained(_train_output(manager, "A"), "A")
        mock_yolo.side_effect = RuntimeError("corrupt")
        assert manager.get_current() is None

    def test_missing_ultralytics_is_none(self, manager: ModelManager):
        manager.save_trained(_train_output(manager, "A"), "A")
        with patch.dict("sys.modules", {"ultralytics": None}):
            assert manager.get_current() is None
        assert manager.selected_model_name() == "A"


class TestDelete:
    def test_delete_selected_then_fallback(self, manager: ModelManager, mock_yolo):
        manager.save_trained(_train_output(manager, "A"), "A")
        manager.save_trained(_train_output(manager, "B"), "B")
        assert manager.selected_model_name() == "B"

        assert manager.delete("B") is True

        assert not manager.layout.model_dir("B").exists()
        assert manager.selected_model_name() is None
        assert manager.get_current().name == "A"

    def test_delete_other_keeps_selection(self, manager: ModelManager):
        manager.create_empty("A")
        manager.create_empty("B")
        manager.set_selected_model("A")
        manager.delete("B")
        assert manager.selected_model_name() == "A"

    def test_delete_missing(self, manager: ModelManager):
        assert manager.delete("ghost") is False


# ---------------------------------------------------------------------------
# cleanup_legacy
# ---------------------------------------------------------------------------

class TestCleanupLegacy:
    def test_removes_labels_json(self, manager: ModelManager):
        manager.create_empty("A")
        manager.create_empty("B")
        legacy = manager.layout.model_dir("A") / "labels.json"
        legacy.write_text("[]")

        report = manager.cleanup_legacy()

        assert report.removed == [legacy]
        assert report.clean
        assert not legacy.exists()
        assert manager.layout.placeholder_path("A").exists()

    def test_failures_reported(self, manager: ModelManager):
        manager.create_empty("A")
        legacy = manager.layout.model_dir("A") / "labels.json"
        legacy.write_text("[]")

        with patch.object(Path, "unlink", side_effect=PermissionError("read-only")):
            report = manager.cleanup_legacy()

        assert not report.clean
        assert "read-only" in report.failed[legacy]
        assert legacy.exists()
