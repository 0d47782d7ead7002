"""One object wiring layout, preferences and the three services together.

Pass a :class:`Workspace` (or its members) to whatever needs model state
instead of relying on process-wide preferences.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Callable

from vinceml.manager import Compiler, ModelManager
from vinceml.ml.service import MLModelService
from vinceml.models.config import VinceMLConfig
from vinceml.storage.layout import StorageLayout
from vinceml.storage.preferences import JSONPreferenceStore, PreferenceStore
from vinceml.train.dataset import StoreFactory, TrainingDataService
from vinceml.train.trainer import TrainProgress, TrainResult

logger = logging.getLogger("vinceml")


class Workspace:
    """A model store and the services operating on it.

    Parameters
    ----------
    config : VinceMLConfig
        Defaults to ``VinceMLConfig()`` (store under ``~/.vinceml/models``).
    preferences : PreferenceStore
        Defaults to a :class:`JSONPreferenceStore` at
        ``config.storage.preferences_path``.
    store_factory : callable
        Image-store factory handed to :class:`TrainingDataService`.
    compiler : callable
        Artifact compiler handed to :class:`ModelManager`.
    cleanup : bool
        Run :meth:`ModelManager.cleanup_legacy` on construction.
    """

    def __init__(
        self,
        config: VinceMLConfig | None = None,
        preferences: PreferenceStore | None = None,
        store_factory: StoreFactory | None = None,
        compiler: Compiler | None = None,
        cleanup: bool = True,
    ) -> None:
        self.config = config or VinceMLConfig()
        self.layout = StorageLayout(self.config.storage)
        self.preferences = preferences or JSONPreferenceStore(
            self.config.storage.preferences_path,
        )
        self.models = ModelManager(self.layout, self.preferences, self.config, compiler)
        self.data = TrainingDataService(self.layout, self.config.data, store_factory)
        self.ml = MLModelService(self.config)
        if cleanup:
            report = self.models.cleanup_legacy()
            if report.removed:
                logger.info("Removed %d legacy metadata file(s)", len(report.removed))

    @classmethod
    def from_yaml(cls, path: str | Path, **kwargs) -> Workspace:
        return cls(VinceMLConfig.from_yaml(path), **kwargs)

    @property
    def root_dir(self) -> Path:
        return self.layout.root_dir

    def work_dir(self, name: str) -> Path:
        """Scratch directory used while training *name*."""
        return self.layout.root_dir / ".work" / name

    def delete_model(self, name: str) -> bool:
        """Delete *name* and forget its cached image store."""
        self.data.forget(name)
        return self.models.delete(name)

    def train_model(
        self,
        name: str,
        progress_callback: Callable[[TrainProgress], None] | None = None,
    ) -> TrainResult:
        """Validate, train and install *name* from its own training images.

        The scratch directory is removed once the model is installed and
        kept for inspection if anything fails.
        """
        images_dir = self.data.training_images_dir(name)
        destination = self.models.training_path(name)
        work = self.work_dir(name)

        result = self.ml.train(images_dir, destination, progress_callback, work_dir=work)
        result.artifact = self.models.save_trained(destination, name)
        shutil.rmtree(work, ignore_errors=True)
        return result
