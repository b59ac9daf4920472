"""Shared imaging helpers."""

from __future__ import annotations

from io import BytesIO

from PIL import Image

# Pillow save formats that cannot store an alpha channel or a palette.
_RGB_ONLY = {"JPEG", "BMP"}


def image_to_bytes(image: Image.Image, format: str = "PNG", *, quality: int | None = None) -> bytes:
    """Encode ``image`` in the given Pillow format."""

    format = format.upper()
    if format in _RGB_ONLY and image.mode not in {"RGB", "L"}:
        image = image.convert("RGB")
    params: dict[str, object] = {}
    if quality is not None and format in {"JPEG", "WEBP"}:
        params["quality"] = quality
        if format == "JPEG":
            params["optimize"] = True
    elif format == "PNG":
        params["optimize"] = True
    buf = BytesIO()
    image.save(buf, format=format, **params)
    return buf.getvalue()


__all__ = ["image_to_bytes"]
