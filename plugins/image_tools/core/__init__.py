"""Pillow-backed image operations."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

from common.imaging import image_to_bytes

MAX_IMAGE_PIXELS = 40_000_000


class ImageToolError(ValueError):
    """Raised when an image operation cannot be performed."""


class ImageDecodeError(ImageToolError):
    """Raised when an upload is not a decodable image."""


@dataclass(frozen=True)
class OutputFormat:
    """An encodable output format."""

    name: str
    pillow: str
    mimetype: str
    extension: str


FORMATS: dict[str, OutputFormat] = {
    "jpeg": OutputFormat("jpeg", "JPEG", "image/jpeg", "jpg"),
    "png": OutputFormat("png", "PNG", "image/png", "png"),
    "webp": OutputFormat("webp", "WEBP", "image/webp", "webp"),
    "gif": OutputFormat("gif", "GIF", "image/gif", "gif"),
    "tiff": OutputFormat("tiff", "TIFF", "image/tiff", "tiff"),
    "bmp": OutputFormat("bmp", "BMP", "image/bmp", "bmp"),
}
_ALIASES = {"jpg": "jpeg", "tif": "tiff"}


@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    format: OutputFormat
    width: int
    height: int


def resolve_format(name: str | None, default: str = "jpeg") -> OutputFormat:
    key = (name or default).strip().lower()
    key = _ALIASES.get(key, key)
    try:
        return FORMATS[key]
    except KeyError as exc:
        supported = ", ".join(sorted(FORMATS))
        raise ImageToolError(f"Unsupported format '{name}'. Use one of: {supported}") from exc


def decode_image(data: bytes, *, max_pixels: int = MAX_IMAGE_PIXELS) -> Image.Image:
    try:
        image = Image.open(BytesIO(data))
        width, height = image.size
        if width * height > max_pixels:
            raise ImageDecodeError("Image exceeds maximum allowed pixels")
        image.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as exc:
        raise ImageDecodeError("Unable to decode image") from exc
    # Honour camera orientation before any geometry is applied.
    return ImageOps.exif_transpose(image)


def encode(image: Image.Image, fmt: OutputFormat, *, quality: int | None = None) -> EncodedImage:
    data = image_to_bytes(image, fmt.pillow, quality=quality)
    return EncodedImage(data=data, format=fmt, width=image.width, height=image.height)


def fit_inside(size: tuple[int, int], width: int | None, height: int | None) -> tuple[int, int]:
    """Return the largest size within ``width`` x ``height`` keeping the aspect ratio.

    Either bound may be ``None``; the image may grow as well as shrink.
    """

    original_w, original_h = size
    if width and height:
        scale = min(width / original_w, height / original_h)
    elif width:
        scale = width / original_w
    elif height:
        scale = height / original_h
    else:
        return size
    return max(1, round(original_w * scale)), max(1, round(original_h * scale))


def resize_image(image: Image.Image, width: int | None, height: int | None) -> Image.Image:
    target = fit_inside(image.size, width, height)
    if target == image.size:
        return image
    return image.resize(target, Image.Resampling.LANCZOS)


def crop_image(image: Image.Image, left: int, top: int, width: int, height: int) -> Image.Image:
    if width <= 0 or height <= 0:
        raise ImageToolError("Crop width and height must be positive")
    if left < 0 or top < 0 or left + width > image.width or top + height > image.height:
        raise ImageToolError(
            f"Crop area exceeds image bounds ({image.width}x{image.height})"
        )
    return image.crop((left, top, left + width, top + height))


def rotate_image(image: Image.Image, angle: float) -> Image.Image:
    """Rotate counter clockwise by ``angle`` degrees, growing the canvas to fit."""

    if angle % 90 == 0:
        turns = int(angle // 90) % 4
        if turns == 0:
            return image
        transpose = {
            1: Image.Transpose.ROTATE_90,
            2: Image.Transpose.ROTATE_180,
            3: Image.Transpose.ROTATE_270,
        }[turns]
        return image.transpose(transpose)
    return image.rotate(angle, resample=Image.Resampling.BICUBIC, expand=True)


__all__ = [
    "EncodedImage",
    "FORMATS",
    "ImageDecodeError",
    "ImageToolError",
    "MAX_IMAGE_PIXELS",
    "OutputFormat",
    "crop_image",
    "decode_image",
    "encode",
    "fit_inside",
    "resize_image",
    "resolve_format",
    "rotate_image",
]
