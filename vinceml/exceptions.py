"""Exception hierarchy for vinceml.

Storage and lifecycle operations raise these directly.  Classification
does not raise; it hands the same exception objects back inside a
:class:`~vinceml.models.records.ClassificationResult`.
"""

from __future__ import annotations


class VinceMLError(Exception):
    """Base class for every error raised by vinceml."""


# ---------------------------------------------------------------------------
# NotFound
# ---------------------------------------------------------------------------

class NotFoundError(VinceMLError):
    """A model, image or directory does not exist."""


class ModelNotFoundError(NotFoundError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Model not found: {name}")


class ImageNotFoundError(NotFoundError):
    def __init__(self, ref: object) -> None:
        self.ref = ref
        super().__init__(f"Training image not found: {ref}")


class TrainingDataNotFoundError(NotFoundError):
    def __init__(self, path: object) -> None:
        self.path = path
        super().__init__(f"Training data directory not found: {path}")


# ---------------------------------------------------------------------------
# AlreadyExists
# ---------------------------------------------------------------------------

class AlreadyExistsError(VinceMLError):
    """The target of a create operation is already present."""


class ModelAlreadyExistsError(AlreadyExistsError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"A model with this name already exists: {name}")


# ---------------------------------------------------------------------------
# ValidationFailed
# ---------------------------------------------------------------------------

class ValidationFailedError(VinceMLError):
    """Training data does not have the shape required for training."""


class InsufficientCategoriesError(ValidationFailedError):
    def __init__(self, found: int, required: int) -> None:
        self.found = found
        self.required = required
        super().__init__(
            f"Need at least {required} categories for training, found {found}"
        )


class InsufficientImagesError(ValidationFailedError):
    def __init__(self, category: str, found: int, required: int) -> None:
        self.category = category
        self.found = found
        self.required = required
        super().__init__(
            f"Category '{category}' needs at least {required} images, found {found}"
        )


# ---------------------------------------------------------------------------
# Conversion / external
# ---------------------------------------------------------------------------

class ConversionFailedError(VinceMLError):
    """An image could not be decoded or encoded."""


class ExternalOperationFailedError(VinceMLError):
    """The ML framework failed while compiling, training, loading or classifying.

    ``operation`` names the step; ``cause`` keeps the original exception.
    """

    def __init__(self, operation: str, cause: BaseException | str) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")
