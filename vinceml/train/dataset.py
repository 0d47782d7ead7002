"""Label-folder training data management.

Handles image storage per label, label bookkeeping, and staging a
train/val split for the trainer.

Directory layout::

    <model>/Images/
    ├── <label_a>/
    │   ├── 3F2A...C1.jpg
    │   └── ...
    └── <label_b>/
        └── ...

The tree is the only record of the data: every listing re-scans it, and an
image's identifier is recomputed from its label and filename each time.
"""

from __future__ import annotations

import logging
import os
import random
import shutil
import uuid
from pathlib import Path
from typing import Callable, Iterable

from vinceml.exceptions import ImageNotFoundError
from vinceml.models.config import DataConfig
from vinceml.models.records import TrainingImage
from vinceml.storage.images import FileSystemImageStore, ImageStore
from vinceml.storage.layout import StorageLayout
from vinceml.utils.image import ImageInput, encode_jpeg

logger = logging.getLogger("vinceml.train")

StoreFactory = Callable[[str], ImageStore]


def _link_or_copy(src: Path, dst: Path) -> None:
    """Hard-link *src* to *dst*, falling back to copy if linking fails."""
    try:
        os.link(src, dst)
    except OSError:
        shutil.copy2(src, dst)


class TrainingDataService:
    """Manage the labelled training images of every model in a store.

    Parameters
    ----------
    layout : StorageLayout
        Path layout of the model store.
    data_config : DataConfig
        Extensions, JPEG quality and validation thresholds.
    store_factory : callable
        ``model_name -> ImageStore``.  Defaults to a
        :class:`FileSystemImageStore` at the model's ``Images`` directory.
        Stores are created once per model name and reused.
    """

    def __init__(
        self,
        layout: StorageLayout,
        data_config: DataConfig | None = None,
        store_factory: StoreFactory | None = None,
    ) -> None:
        self.layout = layout
        self.data_config = data_config or DataConfig()
        self._store_factory = store_factory or self._default_store
        self._stores: dict[str, ImageStore] = {}

    def _default_store(self, model: str) -> ImageStore:
        return FileSystemImageStore(self.layout.images_dir(model))

    def store(self, model: str) -> ImageStore:
        """Image store backing *model*."""
        if model not in self._stores:
            self._stores[model] = self._store_factory(model)
        return self._stores[model]

    def forget(self, model: str) -> None:
        """Drop the cached store for *model* (after the model is deleted)."""
        self._stores.pop(model, None)

    def training_images_dir(self, model: str) -> Path:
        return self.layout.images_dir(model)

    # ------------------------------------------------------------------
    # Adding data
    # ------------------------------------------------------------------

    def save_image(self, image: ImageInput, label: str, model: str) -> TrainingImage:
        """Encode *image* as JPEG and store it under *label* with a random name."""
        if not label:
            raise ValueError("label must not be empty")
        store = self.store(model)
        data = encode_jpeg(image, quality=self.data_config.jpeg_quality)
        file_name = f"{uuid.uuid4().hex.upper()}.jpg"
        store.write(label, file_name, data)
        logger.debug("Saved %s/%s for model %s (%d bytes)", label, file_name, model, len(data))
        return TrainingImage.create(label, file_name, store.created(label, file_name))

    def add_label(self, label: str, model: str) -> None:
        """Create an empty label folder.  Empty labels are ignored."""
        if not label:
            return
        self.store(model).add_label(label)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_images(self, model: str) -> list[TrainingImage]:
        """All supported images of *model*, sorted by label then filename.

        Returns an empty list when the model has no image directory yet.
        """
        store = self.store(model)
        if not store.exists:
            return []
        images: list[TrainingImage] = []
        for label in store.labels():
            for name in store.names(label):
                if not self.data_config.is_image(name):
                    continue
                images.append(TrainingImage.create(label, name, store.created(label, name)))
        return images

    def list_labels(self, model: str) -> set[str]:
        """Labels currently present as folders (with or without images)."""
        store = self.store(model)
        if not store.exists:
            return set()
        return set(store.labels())

    def all_labels(self, model: str) -> set[str]:
        # Labels only exist as folders, so this is the same set.
        return self.list_labels(model)

    def label_counts(self, model: str) -> dict[str, int]:
        """``{label: supported image count}`` in label order."""
        store = self.store(model)
        return {
            label: store.count(label, self.data_config.image_extensions)
            for label in store.labels()
        }

    # ------------------------------------------------------------------
    # Deleting
    # ------------------------------------------------------------------

    def delete_image(self, image_id: uuid.UUID | str, model: str) -> TrainingImage:
        """Delete the image whose identifier is *image_id* and return its record.

        Resolving an identifier needs a full scan of the model's images.
        """
        try:
            wanted = image_id if isinstance(image_id, uuid.UUID) else uuid.UUID(str(image_id))
        except ValueError:
            raise ImageNotFoundError(image_id) from None

        for img in self.list_images(model):
            if img.id == wanted:
                self.store(model).remove(img.label, img.file_name)
                logger.debug("Deleted %s from model %s", img.relative_path, model)
                return img
        raise ImageNotFoundError(image_id)

    def delete_label(self, label: str, model: str) -> bool:
        """Remove *label* and every image in it.  False if it did not exist."""
        removed = self.store(model).remove_label(label)
        if removed:
            logger.info("Deleted label '%s' from model %s", label, model)
        return removed


# ----------------------------------------------------------------------
# Train / val staging
# ----------------------------------------------------------------------

def stage_split(
    store: ImageStore,
    dest_root: Path,
    val_ratio: float = 0.2,
    seed: int = 42,
    extensions: Iterable[str] | None = None,
) -> dict[str, tuple[int, int]]:
    """Lay out *store* as ``dest_root/{train,val}/<label>/`` for the trainer.

    Clears any previous staging, then hard-links (with copy fallback) each
    image into one of the two splits.  Each label keeps at least one image
    on each side when it has two or more.

    Returns ``{label: (n_train, n_val)}``.
    """
    if not 0.0 < val_ratio < 1.0:
        raise ValueError("val_ratio must be between 0 and 1 (exclusive)")

    dest_root = Path(dest_root)
    for split in ("train", "val"):
        d = dest_root / split
        if d.exists():
            shutil.rmtree(d)
        d.mkdir(parents=True)

    exts = {e.lower() for e in extensions} if extensions is not None else None
    rng = random.Random(seed)
    summary: dict[str, tuple[int, int]] = {}

    for label in store.labels():
        names = [
            n for n in store.names(label)
            if exts is None or Path(n).suffix.lower() in exts
        ]
        rng.shuffle(names)
        n_val = max(1, int(len(names) * val_ratio)) if len(names) > 1 else 0
        val_names = set(names[:n_val])

        for split in ("train", "val"):
            (dest_root / split / label).mkdir(parents=True, exist_ok=True)

        for name in names:
            split = "val" if name in val_names else "train"
            dst = dest_root / split / label / name
            if isinstance(store, FileSystemImageStore):
                _link_or_copy(store.path(label, name), dst)
            else:
                dst.write_bytes(store.read(label, name))

        summary[label] = (len(names) - n_val, n_val)

    logger.info(
        "Split: %d train, %d val across %d labels (ratio=%.2f)",
        sum(t for t, _ in summary.values()),
        sum(v for _, v in summary.values()),
        len(summary), val_ratio,
    )
    return summary
