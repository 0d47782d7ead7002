"""Canonical paths inside the model store.

Directory layout::

    <root_dir>/
    ├── preferences.json
    └── <model>/
        ├── <model>.onnx        compiled artifact (trained models only)
        ├── <model>.pt          training output, removed once installed
        ├── <model>.txt         placeholder (untrained models only)
        └── Images/
            └── <label>/<ID>.jpg
"""

from __future__ import annotations

from pathlib import Path

from vinceml.models.config import StorageConfig


class StorageLayout:
    """Pure path computations for a model store rooted at ``config.root_dir``."""

    def __init__(self, config: StorageConfig | None = None) -> None:
        self.config = config or StorageConfig()
        self.root_dir = Path(self.config.root_dir)

    def ensure_root(self) -> Path:
        self.root_dir.mkdir(parents=True, exist_ok=True)
        return self.root_dir

    def model_dir(self, name: str) -> Path:
        return self.root_dir / name

    def compiled_path(self, name: str) -> Path:
        return self.model_dir(name) / f"{name}{self.config.compiled_ext}"

    def training_artifact_path(self, name: str) -> Path:
        return self.model_dir(name) / f"{name}{self.config.training_ext}"

    def placeholder_path(self, name: str) -> Path:
        return self.model_dir(name) / f"{name}{self.config.placeholder_ext}"

    def images_dir(self, name: str) -> Path:
        return self.model_dir(name) / self.config.images_dir_name

    def label_dir(self, name: str, label: str) -> Path:
        return self.images_dir(name) / label

    def __repr__(self) -> str:
        return f"StorageLayout(root_dir={str(self.root_dir)!r})"
