"""CLI entry point: ``python -m vinceml``."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="vinceml -- manage, train and run image classifiers",
        prog="python -m vinceml",
    )
    ap.add_argument(
        "--config",
        default=None,
        help="Path to a YAML config file (VinceMLConfig).",
    )
    ap.add_argument(
        "--root-dir",
        default=None,
        help="Model store root (default: ~/.vinceml/models, overrides --config)",
    )
    ap.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level (default: WARNING)",
    )

    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("models", help="List models with their status")

    p = sub.add_parser("create", help="Create an empty model")
    p.add_argument("name")

    p = sub.add_parser("delete", help="Delete a model and its training data")
    p.add_argument("name")

    p = sub.add_parser("select", help="Select the model used for classification")
    p.add_argument("name")

    p = sub.add_parser("import", help="Install an already compiled artifact")
    p.add_argument("source")
    p.add_argument("name")

    p = sub.add_parser("labels", help="List labels and image counts of a model")
    p.add_argument("model")

    p = sub.add_parser("add-label", help="Create an empty label")
    p.add_argument("model")
    p.add_argument("label")

    p = sub.add_parser("delete-label", help="Delete a label and all its images")
    p.add_argument("model")
    p.add_argument("label")

    p = sub.add_parser("add-images", help="Add image files under a label")
    p.add_argument("model")
    p.add_argument("label")
    p.add_argument("files", nargs="+")

    p = sub.add_parser("images", help="List training images of a model")
    p.add_argument("model")

    p = sub.add_parser("delete-image", help="Delete a training image by ID")
    p.add_argument("model")
    p.add_argument("image_id")

    p = sub.add_parser("validate", help="Check a model's training data")
    p.add_argument("model")

    p = sub.add_parser("train", help="Train a model from its training data")
    p.add_argument("model")
    p.add_argument("--epochs", type=int, default=None, help="Training epochs (default: from config)")
    p.add_argument("--device", default=None, help="Device: auto, cpu, cuda:0, etc.")

    p = sub.add_parser("classify", help="Classify an image")
    p.add_argument("image")
    p.add_argument("--model", default=None, help="Model name (default: selected model)")

    sub.add_parser("cleanup", help="Remove legacy metadata files")

    return ap


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    from vinceml.exceptions import VinceMLError
    from vinceml.log import setup_logging

    try:
        setup_logging(args.log_level)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    try:
        return _dispatch(args)
    except (VinceMLError, FileNotFoundError, ValueError, ImportError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _workspace(args: argparse.Namespace):
    from vinceml.models.config import VinceMLConfig
    from vinceml.workspace import Workspace

    config = VinceMLConfig.from_yaml(args.config) if args.config else VinceMLConfig()
    if args.root_dir:
        config.storage = config.storage.model_copy(
            update={"root_dir": Path(args.root_dir).expanduser()},
        )
    return Workspace(config)


def _dispatch(args: argparse.Namespace) -> int:
    from vinceml.exceptions import ModelNotFoundError

    ws = _workspace(args)
    cmd = args.command

    if cmd == "models":
        entries = ws.models.list_entries()
        if not entries:
            print("No models.")
        for e in entries:
            marker = "*" if e.selected else " "
            print(f"{marker} {e.name:<30} {e.status.value}")

    elif cmd == "create":
        path = ws.models.create_empty(args.name)
        print(f"Created {path}")

    elif cmd == "delete":
        if not ws.delete_model(args.name):
            raise ModelNotFoundError(args.name)
        print(f"Deleted {args.name}")

    elif cmd == "select":
        if args.name not in ws.models.list_models():
            raise ModelNotFoundError(args.name)
        ws.models.set_selected_model(args.name)
        print(f"Selected {args.name}")

    elif cmd == "import":
        path = ws.models.save_from_external(Path(args.source), args.name)
        print(f"Installed {path}")

    elif cmd == "labels":
        counts = ws.data.label_counts(args.model)
        if not counts:
            print("No labels.")
        for label, n in counts.items():
            print(f"{label:<30} {n}")

    elif cmd == "add-label":
        ws.data.add_label(args.label, args.model)
        print(f"Added label {args.label}")

    elif cmd == "delete-label":
        if ws.data.delete_label(args.label, args.model):
            print(f"Deleted label {args.label}")
        else:
            print(f"No label {args.label}")

    elif cmd == "add-images":
        for f in args.files:
            img = ws.data.save_image(Path(f), args.label, args.model)
            print(f"{img.id}  {img.relative_path}  <- {f}")

    elif cmd == "images":
        for img in ws.data.list_images(args.model):
            print(f"{img.id}  {img.relative_path}")

    elif cmd == "delete-image":
        img = ws.data.delete_image(args.image_id, args.model)
        print(f"Deleted {img.relative_path}")

    elif cmd == "validate":
        counts = ws.ml.validate(ws.data.training_images_dir(args.model))
        print(f"OK: {len(counts)} categories, {sum(counts.values())} images")

    elif cmd == "train":
        from vinceml.train import run_pipeline

        run_pipeline(args.model, workspace=ws, epochs=args.epochs, device=args.device)

    elif cmd == "classify":
        if args.model:
            model = ws.models.load_model(args.model)
            if model is None:
                raise ModelNotFoundError(args.model)
        else:
            model = ws.models.get_current()
            if model is None:
                print("Error: no trained model available", file=sys.stderr)
                return 1
        result = ws.ml.classify(Path(args.image), model)
        for line in result.display_lines():
            print(line)
        if not result.ok:
            print(f"Error: {result.error}", file=sys.stderr)
            return 1
        if not result.predictions:
            print("No predictions available")

    elif cmd == "cleanup":
        report = ws.models.cleanup_legacy()
        for p in report.removed:
            print(f"Removed {p}")
        for p, err in report.failed.items():
            print(f"Failed {p}: {err}", file=sys.stderr)
        return 0 if report.clean else 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
