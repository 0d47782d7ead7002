"""Model lifecycle management: create, install, select, load, delete.

A model is a directory under the store root.  Its status is read from the
files present: a compiled artifact means trained, otherwise the model is a
placeholder waiting for training.  The selected model is a single name in
an injected :class:`~vinceml.storage.preferences.PreferenceStore`; nothing
guarantees it still exists, so :meth:`ModelManager.get_current` re-checks
on every read.

None of the multi-file operations here are transactional.  A crash
between copying an artifact and removing the placeholder leaves both.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable

from vinceml.exceptions import ModelAlreadyExistsError, NotFoundError, VinceMLError
from vinceml.ml.classifier import ImageClassifier
from vinceml.models.config import VinceMLConfig
from vinceml.models.records import CleanupReport, ModelEntry, ModelStatus
from vinceml.storage.layout import StorageLayout
from vinceml.storage.preferences import PreferenceStore
from vinceml.train.trainer import compile_model

logger = logging.getLogger("vinceml")

Compiler = Callable[[Path], Path]

_PLACEHOLDER_TEMPLATE = """\
vinceml model: {name}
Created: {created}
Status: Empty - Ready for Training
Type: Image Classifier
Package Version: {version}

Directory Structure:
- {compiled} (will be created after training)
- {images}/ (training images organized by label folders)

Training Process:
1. Add training images organized by label in {images}/ directory
2. Ensure minimum {min_images} images per label category
3. Train the model (python -m vinceml train {name})
4. The trained model replaces this placeholder file
"""


def _check_name(name: str) -> str:
    # dot-directories are scratch space and never listed
    if not name or name.startswith(".") or "/" in name or "\\" in name:
        raise ValueError(f"Invalid model name: {name!r}")
    return name


def _replace(src: Path, dst: Path) -> None:
    """Copy *src* over *dst*, removing whatever *dst* was."""
    if dst.is_dir():
        shutil.rmtree(dst)
    elif dst.exists():
        dst.unlink()
    if src.is_dir():
        shutil.copytree(src, dst)
    else:
        shutil.copy2(src, dst)


class ModelManager:
    """Storage and selection of trained classifier models.

    Parameters
    ----------
    layout : StorageLayout
        Path layout of the model store.
    preferences : PreferenceStore
        Holds the selected-model name.
    config : VinceMLConfig
        Full configuration (classifier settings, selection key).
    compiler : callable
        ``training_artifact -> compiled_artifact``.  Defaults to
        :func:`vinceml.train.trainer.compile_model`.
    """

    def __init__(
        self,
        layout: StorageLayout,
        preferences: PreferenceStore,
        config: VinceMLConfig | None = None,
        compiler: Compiler | None = None,
    ) -> None:
        self.layout = layout
        self.preferences = preferences
        self.config = config or VinceMLConfig()
        self._compiler = compiler or compile_model
        self._selected_key = self.config.selected_model_key
        self.layout.ensure_root()

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def model_path(self, name: str) -> Path:
        """Compiled artifact of *name*."""
        return self.layout.compiled_path(name)

    def training_path(self, name: str) -> Path:
        """Where training writes *name*'s weights before installation."""
        return self.layout.training_artifact_path(name)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def selected_model_name(self) -> str | None:
        return self.preferences.get(self._selected_key)

    def set_selected_model(self, name: str) -> None:
        self.preferences.set(self._selected_key, name)
        logger.debug("Selected model: %s", name)

    # ------------------------------------------------------------------
    # Creation / installation
    # ------------------------------------------------------------------

    def create_empty(self, name: str) -> Path:
        """Create the directory skeleton and placeholder for an untrained model."""
        from vinceml import __version__

        model_dir = self.layout.model_dir(_check_name(name))
        if model_dir.exists():
            raise ModelAlreadyExistsError(name)

        images_dir = self.layout.images_dir(name)
        images_dir.mkdir(parents=True)
        self.layout.placeholder_path(name).write_text(
            _PLACEHOLDER_TEMPLATE.format(
                name=name,
                created=datetime.now().isoformat(timespec="seconds"),
                version=__version__,
                compiled=self.layout.compiled_path(name).name,
                images=images_dir.name,
                min_images=self.config.data.min_images_per_category,
            )
        )
        logger.info("Created empty model %s", name)
        return model_dir

    def save_trained(self, from_path: Path, name: str) -> Path:
        """Install freshly trained weights as *name* and select it.

        Uncompiled weights are run through the compiler first.  The
        placeholder and the training output inside the model directory are
        removed afterwards.
        """
        from_path = Path(from_path)
        if not from_path.exists():
            raise NotFoundError(f"Trained model not found: {from_path}")

        model_dir = self.layout.model_dir(_check_name(name))
        final = self.layout.compiled_path(name)
        needs_compile = from_path.suffix.lower() == self.layout.config.training_ext
        compiled = self._compiler(from_path) if needs_compile else from_path

        model_dir.mkdir(parents=True, exist_ok=True)
        if compiled.resolve() != final.resolve():
            _replace(compiled, final)

        placeholder = self.layout.placeholder_path(name)
        if placeholder.exists():
            placeholder.unlink()

        if needs_compile and from_path.parent.resolve() == model_dir.resolve():
            try:
                from_path.unlink()
            except OSError as exc:
                logger.warning("Could not remove training output %s: %s", from_path, exc)

        self.set_selected_model(name)
        logger.info("Installed trained model %s at %s", name, final)
        return final

    def save_from_external(self, source: Path, name: str) -> Path:
        """Copy an already compiled artifact in as *name* and select it."""
        source = Path(source)
        if not source.exists():
            raise NotFoundError(f"Model artifact not found: {source}")

        final = self.layout.compiled_path(_check_name(name))
        final.parent.mkdir(parents=True, exist_ok=True)
        _replace(source, final)

        placeholder = self.layout.placeholder_path(name)
        if placeholder.exists():
            placeholder.unlink()

        self.set_selected_model(name)
        logger.info("Imported model %s from %s", name, source)
        return final

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_model(self, name: str) -> ImageClassifier | None:
        """Load *name*'s compiled artifact; ``None`` when it isn't trained."""
        path = self.layout.compiled_path(name)
        if not path.exists():
            return None
        classifier = ImageClassifier(path, self.config.classifier, name=name)
        classifier.load()
        return classifier

    def _try_load(self, name: str) -> ImageClassifier | None:
        try:
            return self.load_model(name)
        except VinceMLError as exc:
            logger.warning("Model %s is not loadable: %s", name, exc)
            return None

    def get_current(self) -> ImageClassifier | None:
        """Return the selected model, falling back to the first model by name.

        The fallback is persisted as the new selection even when it turns
        out not to be loadable.
        """
        selected = self.selected_model_name()
        if selected:
            model = self._try_load(selected)
            if model is not None:
                return model

        available = self.list_models()
        if available:
            first = available[0]
            if first != selected:
                logger.info("Selected model %r unavailable, falling back to %s", selected, first)
            self.set_selected_model(first)
            return self._try_load(first)

        return None

    # ------------------------------------------------------------------
    # Listing / deletion
    # ------------------------------------------------------------------

    def list_models(self) -> list[str]:
        root = self.layout.root_dir
        if not root.is_dir():
            return []
        # dot-directories hold scratch space, not models
        return sorted(
            p.name for p in root.iterdir()
            if p.is_dir() and not p.name.startswith(".")
        )

    def status(self, name: str) -> ModelStatus:
        if self.layout.compiled_path(name).exists():
            return ModelStatus.TRAINED
        return ModelStatus.PLACEHOLDER

    def list_entries(self) -> list[ModelEntry]:
        selected = self.selected_model_name()
        return [
            ModelEntry(name=n, status=self.status(n), selected=(n == selected))
            for n in self.list_models()
        ]

    def delete(self, name: str) -> bool:
        """Remove *name* and all its data.  False if it did not exist.

        The selection is cleared only when it pointed at *name*.  Cached
        image stores held by a :class:`~vinceml.train.dataset.TrainingDataService`
        are not touched; use :meth:`vinceml.workspace.Workspace.delete_model`
        to drop those as well.
        """
        model_dir = self.layout.model_dir(_check_name(name))
        existed = model_dir.exists()
        if existed:
            shutil.rmtree(model_dir)
            logger.info("Deleted model %s", name)

        if self.selected_model_name() == name:
            self.preferences.remove(self._selected_key)
        return existed

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def cleanup_legacy(self) -> CleanupReport:
        """Remove metadata files from older store versions (``labels.json``).

        Never raises: failures are logged and listed in the report.
        """
        report = CleanupReport()
        for name in self.list_models():
            for legacy in self.layout.config.legacy_files:
                path = self.layout.model_dir(name) / legacy
                if not path.is_file():
                    continue
                try:
                    path.unlink()
                except OSError as exc:
                    logger.warning("Could not remove legacy file %s: %s", path, exc)
                    report.failed[path] = str(exc)
                else:
                    logger.debug("Removed legacy file %s", path)
                    report.removed.append(path)
        return report
