"""vinceml.train -- label-folder training data and classifier training.

Training needs the ``train`` extra::

    pip install vinceml[train]

Programmatic::

    from vinceml.train import run_pipeline
    result = run_pipeline("SunglassesClassifier", epochs=10)
"""

from __future__ import annotations

from vinceml.train.pipeline import run_pipeline

__all__: list[str] = ["run_pipeline", "check_dependencies"]


def check_dependencies() -> None:
    """Raise ImportError if required extras are missing."""
    missing: list[str] = []

    try:
        import ultralytics  # noqa: F401
    except ImportError:
        missing.append("ultralytics>=8.3")

    if missing:
        raise ImportError(
            "vinceml training requires extra dependencies. Install with:\n\n"
            "  pip install vinceml[train]\n\n"
            f"Missing: {', '.join(missing)}"
        )
