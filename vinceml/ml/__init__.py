"""vinceml.ml -- inference and the training/inference facade."""

from vinceml.ml.classifier import ImageClassifier
from vinceml.ml.service import MLModelService

__all__ = ["ImageClassifier", "MLModelService"]
