"""Training and inference facade."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from vinceml.models.config import VinceMLConfig
from vinceml.models.records import ClassificationResult
from vinceml.ml.classifier import ImageClassifier
from vinceml.train.trainer import ClassifierTrainer, TrainProgress, TrainResult
from vinceml.train.validation import validate_training_data
from vinceml.utils.image import ImageInput

logger = logging.getLogger("vinceml.ml")


class MLModelService:
    """Validate training data, train classifiers and run classification.

    Each call is a single request into the ML framework: no retries, no
    timeouts beyond the framework's own.
    """

    def __init__(self, config: VinceMLConfig | None = None) -> None:
        self.config = config or VinceMLConfig()

    def validate(self, training_root: Path) -> dict[str, int]:
        """Raise a :class:`~vinceml.exceptions.VinceMLError` if *training_root* can't be trained on."""
        return validate_training_data(Path(training_root), self.config.data)

    def trainer(self, work_dir: Path) -> ClassifierTrainer:
        return ClassifierTrainer(work_dir, self.config.training, self.config.data)

    def train(
        self,
        training_root: Path,
        destination: Path,
        progress_callback: Callable[[TrainProgress], None] | None = None,
        work_dir: Path | None = None,
    ) -> TrainResult:
        """Train on the label folders in *training_root*, writing weights to *destination*.

        *work_dir* defaults to a ``.training`` directory beside *destination*.
        """
        destination = Path(destination)
        work = Path(work_dir) if work_dir else destination.parent / ".training"
        return self.trainer(work).train(training_root, destination, progress_callback)

    def classify(self, image: ImageInput, model: ImageClassifier | Path | str) -> ClassificationResult:
        if not isinstance(model, ImageClassifier):
            model = ImageClassifier(Path(model), self.config.classifier)
        return model.classify(image)
