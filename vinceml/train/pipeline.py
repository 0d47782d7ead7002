"""Headless training pipeline for ``python -m vinceml train <model>``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vinceml.train.trainer import TrainProgress, TrainResult

if TYPE_CHECKING:
    from vinceml.workspace import Workspace

logger = logging.getLogger("vinceml.train")


def _print_progress(progress: TrainProgress) -> None:
    if progress.error:
        print(f"  Training failed: {progress.error}")
    elif progress.message:
        print(f"  {progress.message}")


def run_pipeline(
    model_name: str,
    *,
    workspace: Workspace | None = None,
    epochs: int | None = None,
    device: str | None = None,
    verbose: bool = True,
) -> TrainResult:
    """Train *model_name* from its stored images and install the result.

    Steps: validate → train → compile and install.

    Parameters
    ----------
    model_name:
        Model whose ``Images/`` tree is trained on.  It must already exist.
    workspace:
        Workspace to use.  Defaults to ``Workspace()``.
    epochs, device:
        Override the workspace's training configuration for this run.
    verbose:
        Print per-step progress and a summary to stdout.
    """
    from vinceml.exceptions import ModelNotFoundError
    from vinceml.train import check_dependencies
    from vinceml.workspace import Workspace

    ws = workspace or Workspace()
    if model_name not in ws.models.list_models():
        raise ModelNotFoundError(model_name)

    if epochs is not None or device is not None:
        updates = {k: v for k, v in (("epochs", epochs), ("device", device)) if v is not None}
        ws.config.training = ws.config.training.model_copy(update=updates)

    say = print if verbose else (lambda *a, **k: None)

    # --- 1. Validate --------------------------------------------------------
    images_dir = ws.data.training_images_dir(model_name)
    say(f"Validating training data: {images_dir}")
    counts = ws.ml.validate(images_dir)
    for label, n in counts.items():
        say(f"  {label}: {n} images")

    # --- 2. Train + install -------------------------------------------------
    check_dependencies()
    tc = ws.config.training
    say(f"Training: model={tc.base_model}, epochs={tc.epochs}, imgsz={tc.imgsz}, device={tc.device}")
    result = ws.train_model(model_name, progress_callback=_print_progress if verbose else None)

    # --- Summary -------------------------------------------------------------
    say("\n--- Training Summary ---")
    say(f"  Best epoch:   {result.best_epoch}/{result.total_epochs}")
    say(f"  Top-1 acc:    {result.final_top1:.4f}")
    say(f"  Model size:   {result.model_size_mb:.1f} MB")
    say(f"  Duration:     {result.elapsed_seconds:.0f}s")
    say(f"  Installed:    {result.artifact}")
    logger.info("Pipeline finished for %s", model_name)
    return result
