"""Typed configuration models for vinceml.

All configuration is expressed as Pydantic models with sensible defaults.
Typos in field names cause immediate validation errors instead of silent failures.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger("vinceml")

_DEFAULT_ROOT = Path.home() / ".vinceml" / "models"

# Stands in for blur/crop/exposure/flip/noise/rotation.  Ultralytics applies
# its own blur and noise through albumentations when that package is present.
DEFAULT_AUGMENTATION: dict[str, float] = {
    "fliplr": 0.5,       # flip
    "degrees": 15.0,     # rotation
    "hsv_v": 0.4,        # exposure
    "scale": 0.5,        # crop / zoom
    "translate": 0.1,
    "erasing": 0.4,
}


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

class StorageConfig(_Section):
    """Where models live and how their files are named."""
    root_dir: Path = _DEFAULT_ROOT
    images_dir_name: str = "Images"
    compiled_ext: str = ".onnx"
    training_ext: str = ".pt"
    placeholder_ext: str = ".txt"
    legacy_files: list[str] = Field(default_factory=lambda: ["labels.json"])
    preferences_file: Path | None = None

    @field_validator("root_dir", "preferences_file", mode="before")
    @classmethod
    def _expand_user(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @field_validator("compiled_ext", "training_ext", "placeholder_ext")
    @classmethod
    def _dotted(cls, v: str) -> str:
        return v if v.startswith(".") else f".{v}"

    @property
    def preferences_path(self) -> Path:
        return self.preferences_file or (self.root_dir / "preferences.json")


class DataConfig(_Section):
    """Training-data rules.

    Only files whose extension is in ``image_extensions`` count toward the
    per-label minimum.  HEIC is not in the default list because Pillow
    cannot decode it without a plugin, so a label holding only ``.heic``
    files fails validation unless ``.heic`` is added here.
    """
    image_extensions: list[str] = Field(
        default_factory=lambda: [".jpg", ".jpeg", ".png", ".bmp", ".webp"],
    )
    jpeg_quality: int = Field(default=80, ge=1, le=100)
    min_categories: int = Field(default=2, ge=1)
    min_images_per_category: int = Field(default=5, ge=1)

    @field_validator("image_extensions")
    @classmethod
    def _normalise_exts(cls, v: list[str]) -> list[str]:
        return [e.lower() if e.startswith(".") else f".{e.lower()}" for e in v]

    def is_image(self, name: str) -> bool:
        return Path(name).suffix.lower() in self.image_extensions


class TrainingConfig(_Section):
    """Parameters passed to the external trainer."""
    base_model: str = "yolo11n-cls"
    epochs: int = Field(default=25, ge=1)
    imgsz: int = Field(default=224, ge=32)
    # None = pick from detected hardware
    batch: int | None = None
    device: str = "auto"
    val_ratio: float = Field(default=0.2, gt=0.0, lt=1.0)
    seed: int = 42
    augmentation: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_AUGMENTATION),
    )


class ClassifierConfig(_Section):
    """Inference settings."""
    # Ultralytics only reports the five best classes
    top_k: int = Field(default=3, ge=1, le=5)


# ---------------------------------------------------------------------------
# Top level
# ---------------------------------------------------------------------------

class VinceMLConfig(_Section):
    """Top-level configuration for a :class:`vinceml.workspace.Workspace`."""
    storage: StorageConfig = Field(default_factory=StorageConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    training: TrainingConfig = Field(default_factory=TrainingConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    selected_model_key: str = "vinceml_selected_model_name"

    @classmethod
    def from_yaml(cls, path: str | Path) -> VinceMLConfig:
        """Load a configuration from a YAML file.

        An empty file gives the defaults.
        """
        import yaml  # lazy

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(config_path) as fh:
            raw = yaml.safe_load(fh)

        if raw is None:
            raw = {}

        logger.debug("Loaded configuration from %s", config_path)
        return cls.model_validate(raw)
