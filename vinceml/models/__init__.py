"""vinceml.models -- typed configuration and record objects."""

from vinceml.models.config import (
    ClassifierConfig,
    DataConfig,
    StorageConfig,
    TrainingConfig,
    VinceMLConfig,
)
from vinceml.models.records import (
    ClassificationResult,
    CleanupReport,
    ModelEntry,
    ModelStatus,
    Prediction,
    TrainingImage,
    deterministic_id,
)

__all__ = [
    "ClassifierConfig",
    "DataConfig",
    "StorageConfig",
    "TrainingConfig",
    "VinceMLConfig",
    "ClassificationResult",
    "CleanupReport",
    "ModelEntry",
    "ModelStatus",
    "Prediction",
    "TrainingImage",
    "deterministic_id",
]
