"""Image tools API blueprint."""

from __future__ import annotations

from typing import Any, Callable

from flask import Blueprint, Response, current_app, request
from PIL import Image
from werkzeug.datastructures import FileStorage

from common.errors import AppError, ValidationAppError
from common.forms import get_bool, get_float, get_int, get_str
from common.io import secure_filename, to_base64, zip_bytes
from common.logging import get_logger
from common.responses import attachment, fail, ok
from common.tasks import settle_all
from common.validation import FileLimit, ValidationError, enforce_limits, validate_mime

from ..core import (
    MAX_IMAGE_PIXELS,
    EncodedImage,
    ImageToolError,
    OutputFormat,
    crop_image,
    decode_image,
    encode,
    resize_image,
    resolve_format,
    rotate_image,
)

logger = get_logger()

ALLOWED_MIMES = {
    "image/png",
    "image/jpeg",
    "image/tiff",
    "image/gif",
    "image/webp",
    "image/bmp",
}
BATCH_OPERATIONS = {"compress", "convert"}


def _settings() -> dict:
    return current_app.config.get("PLUGIN_SETTINGS", {}).get("image_tools", {}) or {}


def _upload_limit() -> FileLimit:
    return FileLimit.from_settings(
        _settings().get("upload"), default_max_files=1, default_max_mb=50
    )


def _batch_limit() -> FileLimit:
    return FileLimit.from_settings(
        _settings().get("batch_upload"), default_max_files=20, default_max_mb=50
    )


def _max_pixels() -> int:
    try:
        return int(_settings().get("max_pixels", MAX_IMAGE_PIXELS))
    except (TypeError, ValueError):
        return MAX_IMAGE_PIXELS


def _batch_concurrency() -> int:
    try:
        return max(1, int(_settings().get("batch_concurrency", 5)))
    except (TypeError, ValueError):
        return 5


def _download_requested() -> bool:
    return get_bool(request.args, "download")


def _invalid(exc: Exception, code: str = "image.invalid_request") -> ValidationAppError:
    return ValidationAppError(
        message=str(exc), code=code, details=getattr(exc, "details", None)
    )


def _output_name(filename: str | None, suffix: str, fmt: OutputFormat) -> str:
    stem = secure_filename(filename or "", fallback="image").rsplit(".", 1)[0]
    return f"{stem}_{suffix}.{fmt.extension}"


def _load_image() -> tuple[FileStorage, Image.Image]:
    file = request.files.get("file")
    if not file:
        raise ValidationAppError(message="Image file is required", code="image.file_missing")
    try:
        enforce_limits([file], _upload_limit())
        validate_mime([file], ALLOWED_MIMES)
    except ValidationError as exc:
        raise _invalid(exc, "image.invalid_upload") from exc
    try:
        image = decode_image(file.read(), max_pixels=_max_pixels())
    except ImageToolError as exc:
        raise _invalid(exc, "image.invalid_image") from exc
    return file, image


def _format_field(default: str) -> OutputFormat:
    try:
        return resolve_format(request.form.get("format"), default)
    except ImageToolError as exc:
        raise _invalid(exc, "image.invalid_format") from exc


def _image_response(result: EncodedImage, filename: str, **extra: Any) -> Response:
    if _download_requested():
        return attachment(result.data, mimetype=result.format.mimetype, filename=filename)
    payload = {
        "filename": filename,
        "mimetype": result.format.mimetype,
        "width": result.width,
        "height": result.height,
        "size_bytes": len(result.data),
        "image_base64": to_base64(result.data),
        **extra,
    }
    return ok(payload)


def _run(handler: Callable[[], Response]) -> Response:
    """Run a view body, mapping validation failures onto error envelopes."""

    try:
        return handler()
    except ValidationError as exc:
        return fail(_invalid(exc))
    except ImageToolError as exc:
        logger.warning("image request rejected: %s", exc)
        return fail(_invalid(exc, "image.invalid_operation"))
    except AppError as exc:
        return fail(exc)


api_bp = Blueprint("image_tools_api", __name__, url_prefix="/api/image_tools")


@api_bp.post("/resize")
def resize() -> Response:
    def handler() -> Response:
        file, image = _load_image()
        fmt = _format_field("jpeg")
        width = get_int(request.form, "width", None, field_name="Width", minimum=1, maximum=20000)
        height = get_int(request.form, "height", None, field_name="Height", minimum=1, maximum=20000)
        original = {"width": image.width, "height": image.height}
        result = encode(resize_image(image, width, height), fmt)
        return _image_response(
            result, _output_name(file.filename, "resized", fmt), original=original
        )

    return _run(handler)


@api_bp.post("/compress")
def compress() -> Response:
    def handler() -> Response:
        file, image = _load_image()
        fmt = _format_field("jpeg")
        quality = get_int(request.form, "quality", 80, field_name="Quality", minimum=1, maximum=100)
        result = encode(image, fmt, quality=quality)
        return _image_response(
            result, _output_name(file.filename, "compressed", fmt), quality=quality
        )

    return _run(handler)


@api_bp.post("/convert")
def convert() -> Response:
    def handler() -> Response:
        file, image = _load_image()
        fmt = _format_field("png")
        result = encode(image, fmt)
        return _image_response(result, _output_name(file.filename, "converted", fmt))

    return _run(handler)


@api_bp.post("/crop")
def crop() -> Response:
    def handler() -> Response:
        file, image = _load_image()
        fmt = _format_field("jpeg")
        box = {
            key: get_int(request.form, key, None, field_name=key.title(), minimum=0)
            for key in ("left", "top", "width", "height")
        }
        missing = [key for key, value in box.items() if value is None]
        if missing:
            raise ValidationAppError(
                message=f"Missing crop fields: {', '.join(missing)}",
                code="image.invalid_request",
            )
        result = encode(crop_image(image, **box), fmt)
        return _image_response(result, _output_name(file.filename, "cropped", fmt))

    return _run(handler)


@api_bp.post("/rotate")
def rotate() -> Response:
    def handler() -> Response:
        file, image = _load_image()
        fmt = _format_field("png")
        angle = get_float(request.form, "angle", 90.0, field_name="Angle", minimum=-360, maximum=360)
        result = encode(rotate_image(image, angle), fmt)
        return _image_response(
            result, _output_name(file.filename, "rotated", fmt), angle=angle
        )

    return _run(handler)


def _batch_worker(operation: str, fmt: OutputFormat, quality: int, max_pixels: int):
    def process(upload: tuple[str, bytes]) -> EncodedImage:
        _, data = upload
        image = decode_image(data, max_pixels=max_pixels)
        if operation == "compress":
            return encode(image, fmt, quality=quality)
        return encode(image, fmt)

    return process


@api_bp.post("/batch")
def batch() -> Response:
    def handler() -> Response:
        files = request.files.getlist("files")
        try:
            enforce_limits(files, _batch_limit())
        except ValidationError as exc:
            raise _invalid(exc, "image.invalid_upload") from exc
        operation = get_str(request.form, "operation", "compress").lower()
        if operation not in BATCH_OPERATIONS:
            raise ValidationAppError(
                message=f"Unsupported batch operation '{operation}'",
                code="image.invalid_request",
            )
        fmt = _format_field("jpeg")
        quality = get_int(request.form, "quality", 80, field_name="Quality", minimum=1, maximum=100)

        uploads: list[tuple[str, bytes]] = []
        rejected: dict[int, str] = {}
        for index, file in enumerate(files):
            name = file.filename or f"image-{index + 1}"
            try:
                validate_mime([file], ALLOWED_MIMES)
            except ValidationError as exc:
                rejected[index] = str(exc)
            uploads.append((name, file.read()))

        worker = _batch_worker(operation, fmt, quality, _max_pixels())
        pending = [item for index, item in enumerate(uploads) if index not in rejected]
        settled = iter(settle_all(worker, pending, max_workers=_batch_concurrency()))

        results: list[dict[str, Any]] = []
        archive: list[tuple[str, bytes]] = []
        for index, (name, _) in enumerate(uploads):
            entry: dict[str, Any] = {"source": name}
            if index in rejected:
                entry.update(success=False, error=rejected[index])
                results.append(entry)
                continue
            outcome = next(settled)
            if not outcome.ok:
                logger.warning("batch item %s failed: %s", name, outcome.error)
                entry.update(success=False, error=str(outcome.error))
                results.append(entry)
                continue
            output_name = f"{index + 1:03d}_{_output_name(name, f'{operation}ed', fmt)}"
            archive.append((output_name, outcome.value.data))
            entry.update(
                success=True,
                filename=output_name,
                size_bytes=len(outcome.value.data),
                image_base64=to_base64(outcome.value.data),
            )
            results.append(entry)

        if _download_requested():
            if not archive:
                raise ValidationAppError(
                    message="No images could be processed", code="image.batch_failed",
                    details={"files": results},
                )
            return attachment(zip_bytes(archive), mimetype="application/zip", filename="images.zip")
        return ok(
            {
                "operation": operation,
                "format": fmt.name,
                "succeeded": len(archive),
                "failed": len(results) - len(archive),
                "files": results,
            }
        )

    return _run(handler)


blueprints = [api_bp]


__all__ = ["blueprints", "resize", "compress", "convert", "crop", "rotate", "batch"]
