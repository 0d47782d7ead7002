"""Shared test fixtures for vinceml test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from vinceml.models.config import StorageConfig, TrainingConfig, VinceMLConfig
from vinceml.storage.preferences import MemoryPreferenceStore
from vinceml.workspace import Workspace


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

def make_image(color: tuple[int, int, int] = (200, 30, 30), size: int = 16) -> Image.Image:
    return Image.new("RGB", (size, size), color)


def write_label_tree(root: Path, counts: dict[str, int], ext: str = ".jpg") -> Path:
    """Create ``root/<label>/img_<i><ext>`` files (content is not decoded)."""
    for label, n in counts.items():
        d = root / label
        d.mkdir(parents=True, exist_ok=True)
        for i in range(n):
            (d / f"img_{i:03d}{ext}").write_bytes(b"\xff\xd8\xff\xe0" + b"\x00" * 32)
    return root


@pytest.fixture
def rgb_image() -> Image.Image:
    return make_image()


@pytest.fixture
def image_factory():
    return make_image


@pytest.fixture
def label_tree():
    return write_label_tree


# ---------------------------------------------------------------------------
# Config / workspace
# ---------------------------------------------------------------------------

@pytest.fixture
def config(tmp_path: Path) -> VinceMLConfig:
    return VinceMLConfig(
        storage=StorageConfig(root_dir=tmp_path / "models"),
        training=TrainingConfig(epochs=1, batch=4, device="cpu"),
    )


def fake_compiler(path: Path) -> Path:
    """Stand-in for ONNX export: writes ``<stem>.onnx`` next to the input."""
    out = Path(path).with_suffix(".onnx")
    out.write_bytes(b"compiled:" + Path(path).read_bytes())
    return out


@pytest.fixture
def compiler():
    return fake_compiler


@pytest.fixture
def workspace(config: VinceMLConfig) -> Workspace:
    return Workspace(config, preferences=MemoryPreferenceStore(), compiler=fake_compiler)


# ---------------------------------------------------------------------------
# Ultralytics
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_yolo():
    """Replace the ``ultralytics`` module with a mock exposing ``YOLO``."""
    yolo = MagicMock()
    with patch.dict("sys.modules", {"ultralytics": MagicMock(YOLO=yolo)}):
        yield yolo


@pytest.fixture
def trainable_yolo(mock_yolo) -> MagicMock:
    """Mocked YOLO model whose ``train`` writes ``best.pt`` and reports each epoch."""
    model = MagicMock()
    callbacks: list = []
    model.add_callback.side_effect = lambda event, fn: callbacks.append(fn)

    def _train(**kwargs):
        weights = Path(kwargs["project"]) / kwargs["name"] / "weights"
        weights.mkdir(parents=True, exist_ok=True)
        (weights / "best.pt").write_bytes(b"trained weights")
        for epoch in range(kwargs["epochs"]):
            for fn in callbacks:
                fn(MagicMock(epoch=epoch, metrics={"metrics/accuracy_top1": 0.9}, tloss=0.1))

    model.train.side_effect = _train
    mock_yolo.return_value = model
    return model
