"""Ultralytics image-classifier training wrapper.

Handles hardware detection, staging the label folders into a train/val
split, training with progress callbacks, and exporting the trained weights
to the ONNX runtime format.
"""

from __future__ import annotations

import logging
import shutil
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from vinceml.exceptions import ExternalOperationFailedError, NotFoundError
from vinceml.models.config import DataConfig, TrainingConfig
from vinceml.storage.images import FileSystemImageStore
from vinceml.train.dataset import stage_split
from vinceml.train.validation import validate_training_data

logger = logging.getLogger("vinceml.train")


@dataclass
class HardwareInfo:
    """Detected hardware capabilities."""

    device: str           # "cuda:0", "mps", "cpu"
    gpu_name: str | None  # e.g. "NVIDIA GTX 1050 Ti", "Apple M2 Max"
    vram_gb: float        # 0.0 for CPU
    suggested_batch: int  # Based on VRAM

    @property
    def display(self) -> str:
        if self.gpu_name:
            if self.vram_gb > 0:
                return f"GPU: {self.gpu_name} ({self.vram_gb:.1f}GB)"
            return f"GPU: {self.gpu_name}"
        return "CPU"


@dataclass
class TrainProgress:
    """Training progress snapshot."""

    epoch: int = 0
    total_epochs: int = 0
    loss: float = 0.0
    top1: float = 0.0
    top5: float = 0.0
    message: str = ""
    finished: bool = False
    error: str | None = None


@dataclass
class TrainResult:
    """Final training results."""

    artifact: Path | None = None
    best_epoch: int = 0
    total_epochs: int = 0
    final_top1: float = 0.0
    final_top5: float = 0.0
    elapsed_seconds: float = 0.0
    model_size_mb: float = 0.0
    stopped: bool = False


class ClassifierTrainer:
    """Wraps Ultralytics YOLO classification for training on label folders.

    Parameters
    ----------
    work_dir : Path
        Scratch directory for the staged split, downloaded base weights and
        Ultralytics run output.
    training_config : TrainingConfig
        Base model, epochs, image size, device and augmentation.
    data_config : DataConfig
        Validation thresholds and accepted image extensions.
    """

    def __init__(
        self,
        work_dir: Path,
        training_config: TrainingConfig | None = None,
        data_config: DataConfig | None = None,
    ) -> None:
        self.work_dir = Path(work_dir)
        self.config = training_config or TrainingConfig()
        self.data_config = data_config or DataConfig()
        self.base_model = self.config.base_model
        self.device = self.config.device
        self._model: Any = None  # ultralytics.YOLO
        self._stop_event = threading.Event()

    # ------------------------------------------------------------------
    # Hardware detection
    # ------------------------------------------------------------------

    @staticmethod
    def detect_hardware() -> HardwareInfo:
        """Detect GPU/CPU and suggest training batch size."""
        try:
            import torch

            if torch.cuda.is_available():
                props = torch.cuda.get_device_properties(0)
                vram_gb = props.total_memory / (1024 ** 3)
                # Classification at 224px is light: ~1GB per batch of 32
                suggested = max(16, min(128, int(vram_gb) * 32))
                return HardwareInfo(
                    device="cuda:0",
                    gpu_name=props.name,
                    vram_gb=vram_gb,
                    suggested_batch=suggested,
                )

            if torch.backends.mps.is_available():
                import platform
                return HardwareInfo(
                    device="mps",
                    gpu_name=platform.processor() or "Apple Silicon",
                    vram_gb=0.0,
                    suggested_batch=32,
                )
        except Exception:
            logger.debug("Hardware probe failed, using CPU", exc_info=True)

        return HardwareInfo(
            device="cpu",
            gpu_name=None,
            vram_gb=0.0,
            suggested_batch=16,
        )

    # ------------------------------------------------------------------
    # Model loading
    # ------------------------------------------------------------------

    def _load_model(self) -> Any:
        """Load the Ultralytics base classification model."""
        from ultralytics import YOLO

        model_path = self.base_model
        # If it doesn't look like a file path, assume it's a hub name
        if not Path(model_path).suffix:
            model_path = f"{model_path}.pt"

        # Existing files are used as-is; hub names download into work_dir
        if not Path(model_path).exists():
            model_path = str(self.work_dir / Path(model_path).name)

        self._model = YOLO(model_path, task="classify")
        return self._model

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def train(
        self,
        training_root: Path,
        destination: Path,
        progress_callback: Callable[[TrainProgress], None] | None = None,
    ) -> TrainResult:
        """Validate *training_root*, train once, and write weights to *destination*.

        Use :meth:`request_stop` from another thread to stop after the
        current epoch; the best weights so far are still written.
        """
        training_root = Path(training_root)
        destination = Path(destination)
        validate_training_data(training_root, self.data_config)

        self.work_dir.mkdir(parents=True, exist_ok=True)
        staged = self.work_dir / "dataset"
        stage_split(
            FileSystemImageStore(training_root), staged,
            val_ratio=self.config.val_ratio,
            seed=self.config.seed,
            extensions=self.data_config.image_extensions,
        )

        self._stop_event.clear()
        try:
            model = self._load_model()
        except ImportError:
            raise
        except Exception as exc:
            raise ExternalOperationFailedError("train", exc) from exc

        device = self.device
        batch = self.config.batch
        if device == "auto" or batch is None:
            hw = self.detect_hardware()
            if device == "auto":
                device = hw.device
            if batch is None:
                batch = hw.suggested_batch

        epochs = self.config.epochs
        runs_dir = self.work_dir / "runs"
        progress = TrainProgress(total_epochs=epochs)

        def _on_fit_epoch_end(trainer: Any) -> None:
            """Ultralytics callback after each epoch's validation."""
            if self._stop_event.is_set():
                raise KeyboardInterrupt("Training stopped by user")

            progress.epoch = trainer.epoch + 1
            metrics = trainer.metrics or {}
            progress.top1 = float(metrics.get("metrics/accuracy_top1", 0.0))
            progress.top5 = float(metrics.get("metrics/accuracy_top5", 0.0))
            loss = getattr(trainer, "tloss", None)
            try:
                progress.loss = float(loss) if loss is not None else 0.0
            except (TypeError, ValueError):
                progress.loss = 0.0
            progress.message = (
                f"Epoch {progress.epoch}/{epochs} | top1={progress.top1:.3f}"
            )
            if progress_callback:
                progress_callback(progress)

        model.add_callback("on_fit_epoch_end", _on_fit_epoch_end)

        logger.info(
            "Training %s on %s (epochs=%d, batch=%d, imgsz=%d, device=%s)",
            self.base_model, training_root, epochs, batch, self.config.imgsz, device,
        )
        start = time.monotonic()
        stopped = False
        try:
            model.train(
                data=str(staged),
                epochs=epochs,
                batch=batch,
                imgsz=self.config.imgsz,
                device=device,
                seed=self.config.seed,
                project=str(runs_dir),
                name="train",
                exist_ok=True,
                verbose=False,
                **self.config.augmentation,
            )
        except KeyboardInterrupt:
            logger.info("Training stopped by user")
            stopped = True
            progress.finished = True
            progress.message = "Training stopped by user"
            if progress_callback:
                progress_callback(progress)
        except Exception as exc:
            progress.error = str(exc)
            progress.finished = True
            if progress_callback:
                progress_callback(progress)
            raise ExternalOperationFailedError("train", exc) from exc
        else:
            progress.finished = True
            progress.message = "Training complete"
            if progress_callback:
                progress_callback(progress)

        elapsed = time.monotonic() - start

        weights_dir = runs_dir / "train" / "weights"
        weights = next(
            (p for p in (weights_dir / "best.pt", weights_dir / "last.pt") if p.exists()),
            None,
        )
        if weights is None:
            raise ExternalOperationFailedError("train", f"no weights written to {weights_dir}")

        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(weights, destination)
        logger.info("Trained weights written to %s", destination)

        best_epoch = self._read_best_epoch(runs_dir / "train")
        return TrainResult(
            artifact=destination,
            best_epoch=best_epoch if best_epoch > 0 else progress.epoch,
            total_epochs=progress.epoch,
            final_top1=progress.top1,
            final_top5=progress.top5,
            elapsed_seconds=elapsed,
            model_size_mb=destination.stat().st_size / (1024 * 1024),
            stopped=stopped,
        )

    def request_stop(self) -> None:
        """Signal the training loop to stop after the current epoch."""
        self._stop_event.set()

    @staticmethod
    def _read_best_epoch(train_dir: Path) -> int:
        """Read results.csv and return the 1-based epoch with highest top-1 accuracy.

        Returns 0 if the file can't be read.
        """
        import csv

        csv_path = train_dir / "results.csv"
        if not csv_path.exists():
            return 0
        try:
            with open(csv_path) as f:
                reader = csv.DictReader(f)
                best_epoch = 0
                best_top1 = -1.0
                for row in reader:
                    # Older Ultralytics releases pad column names with spaces
                    row = {k.strip(): (v or "").strip() for k, v in row.items() if k}
                    epoch_str = row.get("epoch", "")
                    top1_str = row.get("metrics/accuracy_top1", "")
                    if not epoch_str or not top1_str:
                        continue
                    epoch_val = int(float(epoch_str))
                    top1_val = float(top1_str)
                    if top1_val > best_top1:
                        best_top1 = top1_val
                        best_epoch = epoch_val
                return best_epoch
        except (OSError, ValueError, csv.Error):
            logger.debug("Could not parse results.csv for best epoch", exc_info=True)
            return 0


# ----------------------------------------------------------------------
# Export
# ----------------------------------------------------------------------

def compile_model(artifact: Path, output: Path | None = None) -> Path:
    """Export trained ``.pt`` weights to ONNX and return the ONNX path.

    An ``.onnx`` input is already in runtime form and is returned unchanged.
    The exported file lands next to *artifact* unless *output* is given.
    """
    artifact = Path(artifact)
    if not artifact.exists():
        raise NotFoundError(f"Model artifact not found: {artifact}")
    if artifact.suffix.lower() == ".onnx":
        return artifact

    from ultralytics import YOLO

    try:
        model = YOLO(str(artifact), task="classify")
        onnx_path = Path(model.export(format="onnx"))
    except Exception as exc:
        raise ExternalOperationFailedError("compile", exc) from exc

    logger.info("Compiled %s -> %s", artifact, onnx_path)
    if output and Path(output) != onnx_path:
        dest = Path(output)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(onnx_path, dest)
        return dest
    return onnx_path
