"""vinceml -- image-classifier model management and training data handling.

Organises training images into label folders, trains a classifier on them
with Ultralytics, installs the compiled ONNX artifact and classifies images
with the selected model.
"""

__version__ = "1.0.0"
VERSION = __version__

from vinceml.exceptions import VinceMLError
from vinceml.manager import ModelManager
from vinceml.ml.classifier import ImageClassifier
from vinceml.ml.service import MLModelService
from vinceml.models.config import VinceMLConfig
from vinceml.models.records import (
    ClassificationResult,
    ModelEntry,
    ModelStatus,
    Prediction,
    TrainingImage,
)
from vinceml.train.dataset import TrainingDataService
from vinceml.workspace import Workspace

__all__ = [
    "Workspace",
    "ModelManager",
    "TrainingDataService",
    "MLModelService",
    "ImageClassifier",
    "VinceMLConfig",
    "VinceMLError",
    "ClassificationResult",
    "ModelEntry",
    "ModelStatus",
    "Prediction",
    "TrainingImage",
]
