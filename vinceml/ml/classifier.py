"""Inference on a trained classifier artifact via Ultralytics."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from vinceml.exceptions import (
    ConversionFailedError,
    ExternalOperationFailedError,
    ModelNotFoundError,
)
from vinceml.models.config import ClassifierConfig
from vinceml.models.records import ClassificationResult, Prediction
from vinceml.utils.image import ImageInput, to_pil

logger = logging.getLogger("vinceml.ml")


class ImageClassifier:
    """A loaded (or loadable) classifier artifact.

    The Ultralytics model is created lazily on the first :meth:`load` or
    :meth:`classify` call.
    """

    def __init__(
        self,
        artifact_path: Path,
        config: ClassifierConfig | None = None,
        name: str | None = None,
    ) -> None:
        self.artifact_path = Path(artifact_path)
        self.config = config or ClassifierConfig()
        self._name = name
        self._model: Any = None

    @property
    def name(self) -> str:
        return self._name or self.artifact_path.stem

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def load(self) -> None:
        if self._model is not None:
            return
        if not self.artifact_path.exists():
            raise ModelNotFoundError(self.name)

        try:
            from ultralytics import YOLO  # lazy import
        except ImportError as exc:
            logger.error(
                "%s: ultralytics is not installed (pip install vinceml[train])", self.name,
            )
            raise ExternalOperationFailedError("load", exc) from exc

        logger.info("%s: loading classifier from %s", self.name, self.artifact_path)
        try:
            self._model = YOLO(str(self.artifact_path), task="classify")
        except Exception as exc:
            raise ExternalOperationFailedError("load", exc) from exc

    def classify(self, image: ImageInput) -> ClassificationResult:
        """Return the ``top_k`` predictions for *image*, best first.

        Never raises for bad input or inference errors; the failure is
        carried in :attr:`ClassificationResult.error` instead.
        """
        try:
            pil_image = to_pil(image)
        except ConversionFailedError as exc:
            logger.debug("%s: image conversion failed: %s", self.name, exc)
            return ClassificationResult.failure(exc, self.name)

        try:
            self.load()
        except (ModelNotFoundError, ExternalOperationFailedError) as exc:
            return ClassificationResult.failure(exc, self.name)

        try:
            results = self._model(pil_image, verbose=False)
            predictions = self._parse(results)
        except Exception as exc:
            logger.warning("%s: classification failed: %s", self.name, exc)
            return ClassificationResult.failure(
                ExternalOperationFailedError("classify", exc), self.name,
            )

        predictions.sort(key=lambda p: p.confidence, reverse=True)
        return ClassificationResult(
            predictions=predictions[: self.config.top_k],
            model_name=self.name,
        )

    @staticmethod
    def _parse(results: Any) -> list[Prediction]:
        predictions: list[Prediction] = []
        for r in results:
            probs = getattr(r, "probs", None)
            if probs is None:
                continue
            names = r.names
            for idx, conf in zip(probs.top5, probs.top5conf.tolist()):
                idx = int(idx)
                label = names[idx] if idx in names else str(idx)
                predictions.append(Prediction(label=label, confidence=float(conf)))
        return predictions

    def __repr__(self) -> str:
        return f"ImageClassifier({str(self.artifact_path)!r})"
