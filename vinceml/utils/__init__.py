"""vinceml.utils -- shared helpers."""

from vinceml.utils.image import ImageInput, encode_jpeg, to_pil

__all__ = ["ImageInput", "encode_jpeg", "to_pil"]
