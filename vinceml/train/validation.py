"""Training-data shape checks run before every training call."""

from __future__ import annotations

import logging
from pathlib import Path

from vinceml.exceptions import (
    InsufficientCategoriesError,
    InsufficientImagesError,
    TrainingDataNotFoundError,
)
from vinceml.models.config import DataConfig
from vinceml.storage.images import FileSystemImageStore, ImageStore

logger = logging.getLogger("vinceml.train")


def validate_store(store: ImageStore, data_config: DataConfig | None = None) -> dict[str, int]:
    """Check that *store* can be trained on.

    Requires at least ``min_categories`` labels, each holding at least
    ``min_images_per_category`` images with a supported extension.  Labels
    are checked in sorted order, so the first failing label is reported.

    Returns ``{label: image_count}`` on success.
    """
    cfg = data_config or DataConfig()
    if not store.exists:
        raise TrainingDataNotFoundError(store.root)

    labels = store.labels()
    if len(labels) < cfg.min_categories:
        raise InsufficientCategoriesError(len(labels), cfg.min_categories)

    counts: dict[str, int] = {}
    for label in labels:
        n = store.count(label, cfg.image_extensions)
        if n < cfg.min_images_per_category:
            raise InsufficientImagesError(label, n, cfg.min_images_per_category)
        counts[label] = n

    logger.debug(
        "Training data OK: %d categories, %d images",
        len(counts), sum(counts.values()),
    )
    return counts


def validate_training_data(root: Path, data_config: DataConfig | None = None) -> dict[str, int]:
    """:func:`validate_store` for a label-folder tree at *root*."""
    return validate_store(FileSystemImageStore(Path(root)), data_config)
