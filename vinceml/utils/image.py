"""Image conversion helpers.

Accepted inputs everywhere an "image" is taken:

- ``PIL.Image.Image``
- ``numpy.ndarray`` (``HxW`` grey, ``HxWx3`` RGB or ``HxWx4`` RGBA, uint8)
- ``bytes`` / ``bytearray`` holding an encoded image
- ``str`` / ``Path`` pointing at an image file
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from vinceml.exceptions import ConversionFailedError

ImageInput = Union[Image.Image, np.ndarray, bytes, bytearray, str, Path]


def to_pil(image: ImageInput) -> Image.Image:
    """Return *image* as a fully decoded RGB ``PIL.Image``.

    Raises :class:`ConversionFailedError` if it cannot be decoded.
    """
    try:
        if isinstance(image, Image.Image):
            img = image
        elif isinstance(image, np.ndarray):
            img = _from_array(image)
        elif isinstance(image, (bytes, bytearray)):
            img = Image.open(BytesIO(bytes(image)))
        elif isinstance(image, (str, Path)):
            path = Path(image)
            if not path.is_file():
                raise ConversionFailedError(f"Image not found: {path}")
            img = Image.open(path)
        else:
            raise ConversionFailedError(
                f"Unsupported image type: {type(image).__name__}"
            )
        img.load()
        return img.convert("RGB") if img.mode != "RGB" else img
    except ConversionFailedError:
        raise
    except (UnidentifiedImageError, OSError, ValueError, TypeError) as exc:
        raise ConversionFailedError(f"Invalid image format: {exc}") from exc


def _from_array(arr: np.ndarray) -> Image.Image:
    if arr.size == 0:
        raise ValueError("empty image array")
    if arr.dtype != np.uint8:
        arr = np.clip(arr, 0, 255).astype(np.uint8)
    # fromarray infers L / RGB / RGBA from the shape
    if arr.ndim == 2 or (arr.ndim == 3 and arr.shape[2] in (3, 4)):
        return Image.fromarray(arr)
    raise ValueError(f"unsupported array shape {arr.shape}")


def encode_jpeg(image: ImageInput, quality: int = 80) -> bytes:
    """Encode *image* as JPEG bytes at *quality* (1-100)."""
    img = to_pil(image)
    buf = BytesIO()
    try:
        img.save(buf, format="JPEG", quality=quality)
    except (OSError, ValueError) as exc:
        raise ConversionFailedError(f"Failed to convert image to JPEG: {exc}") from exc
    return buf.getvalue()
