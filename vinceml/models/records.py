"""Record types derived from the model store.

None of these are persisted.  Every listing re-derives them from the
directory tree, so a record is only a view of what was on disk when it
was built.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from vinceml.exceptions import VinceMLError

# Fixed namespace so identifiers are stable across processes and installs.
IMAGE_ID_NAMESPACE = uuid.UUID("6b1f3c52-9d0e-5a7b-8c34-2f61e0d9a4b7")


def deterministic_id(label: str, file_name: str) -> uuid.UUID:
    """Return the stable identifier of ``label/file_name``.

    This is a UUIDv5 (SHA-1 based) over the relative path.  It is meant for
    addressing files, not for security: anyone who knows the path can
    compute the identifier.  The same label and filename always give the
    same identifier.
    """
    return uuid.uuid5(IMAGE_ID_NAMESPACE, f"{label}/{file_name}")


# ---------------------------------------------------------------------------
# Training images
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TrainingImage:
    """A training image in a label folder."""
    id: uuid.UUID
    label: str
    file_name: str
    date_created: datetime

    @classmethod
    def create(
        cls,
        label: str,
        file_name: str,
        date_created: datetime | None = None,
    ) -> TrainingImage:
        return cls(
            id=deterministic_id(label, file_name),
            label=label,
            file_name=file_name,
            date_created=date_created or datetime.now(),
        )

    @property
    def relative_path(self) -> str:
        return f"{self.label}/{self.file_name}"


# ---------------------------------------------------------------------------
# Model entries
# ---------------------------------------------------------------------------

class ModelStatus(str, Enum):
    """Lifecycle status, inferred from which files exist in the model dir."""
    PLACEHOLDER = "placeholder"
    TRAINED = "trained"


@dataclass
class ModelEntry:
    name: str
    status: ModelStatus = ModelStatus.PLACEHOLDER
    selected: bool = False

    @property
    def is_trained(self) -> bool:
        return self.status == ModelStatus.TRAINED


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Prediction:
    """One ranked label with its confidence in ``[0, 1]``."""
    label: str
    confidence: float

    @property
    def display(self) -> str:
        return f"{self.label}: {self.confidence * 100:.2f}%"


@dataclass
class ClassificationResult:
    """Outcome of a classification call.

    Exactly one of ``predictions`` and ``error`` is meaningful: when
    ``error`` is set the prediction list is empty.  An empty list with no
    error means the model ran but produced nothing.
    """
    predictions: list[Prediction] = field(default_factory=list)
    error: VinceMLError | None = None
    model_name: str = ""

    @classmethod
    def failure(cls, error: VinceMLError, model_name: str = "") -> ClassificationResult:
        return cls(predictions=[], error=error, model_name=model_name)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def labels(self) -> list[str]:
        return [p.label for p in self.predictions]

    @property
    def top(self) -> Prediction | None:
        return self.predictions[0] if self.predictions else None

    def display_lines(self) -> list[str]:
        """Formatted ``"label: pp.pp%"`` strings, best first."""
        return [p.display for p in self.predictions]

    def unwrap(self) -> list[Prediction]:
        """Return the predictions, raising the stored error if there is one."""
        if self.error is not None:
            raise self.error
        return self.predictions


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------

@dataclass
class CleanupReport:
    """Files removed (or not) by :meth:`ModelManager.cleanup_legacy`."""
    removed: list[Path] = field(default_factory=list)
    failed: dict[Path, str] = field(default_factory=dict)

    @property
    def clean(self) -> bool:
        return not self.failed
