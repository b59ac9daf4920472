"""PDF tools API blueprint with standardized responses."""

from __future__ import annotations

import json
from typing import Any, Iterable

from flask import Blueprint, Response, current_app, request
from pydantic import Field
from werkzeug.datastructures import FileStorage

from common.errors import AppError, ValidationAppError
from common.forms import get_bool, get_float, get_int, get_str
from common.io import ensure_extension, secure_filename, to_base64, zip_bytes
from common.logging import get_logger
from common.responses import attachment, fail, ok
from common.validation import (
    FileLimit,
    SchemaModel,
    ValidationError,
    enforce_limits,
    parse_model,
    validate_mime,
)

from ..core import (
    CropMargins,
    EmptySelectionError,
    MergeSpec,
    PageSequenceError,
    PdfNotEncryptedError,
    PdfPasswordError,
    PdfResult,
    PdfToolError,
    SplitTask,
    UnreadablePdfError,
    compress_pdf,
    crop_pages,
    extract_pages,
    merge_pdfs,
    parse_page_range_report,
    pdf_metadata,
    protect_pdf,
    remove_pages,
    reorder_pages,
    rotate_pages,
    split_pdf,
    split_pdf_custom,
    unlock_pdf,
)

logger = get_logger()

PDF_MIME = {"application/pdf"}
MAX_RANGE_LENGTH = 2000
DEFAULT_PREVIEW_MAX_PAGES = 10000


class MergeItem(SchemaModel):
    field: str
    filename: str | None = None
    pages: str = ""


class MergePayload(SchemaModel):
    manifest: list[MergeItem] = Field(min_length=1)
    output_name: str | None = None


class SplitPlanItem(SchemaModel):
    name: str = Field(min_length=1)
    pages: str = Field(min_length=1)


class SplitRequest(SchemaModel):
    plan: list[SplitPlanItem] | None = None


api_bp = Blueprint("pdf_tools_api", __name__, url_prefix="/api/pdf_tools")


def _settings() -> dict:
    return current_app.config.get("PLUGIN_SETTINGS", {}).get("pdf_tools", {}) or {}


def _merge_limit() -> FileLimit:
    upload = _settings().get("merge_upload")
    return FileLimit.from_settings(upload, default_max_files=10, default_max_mb=50)


def _single_limit() -> FileLimit:
    upload = _settings().get("upload")
    return FileLimit.from_settings(upload, default_max_files=1, default_max_mb=50)


def _preview_max_pages() -> int:
    try:
        return max(1, int(_settings().get("preview_max_pages", DEFAULT_PREVIEW_MAX_PAGES)))
    except (TypeError, ValueError):
        return DEFAULT_PREVIEW_MAX_PAGES


def _download_requested() -> bool:
    return get_bool(request.args, "download")


def _invalid_upload(exc: ValidationError) -> ValidationAppError:
    return ValidationAppError(
        message=str(exc),
        code="pdf.invalid_upload",
        details=getattr(exc, "details", None),
    )


def _pdf_error(exc: PdfToolError) -> AppError:
    """Translate core PDF errors into API errors."""

    if isinstance(exc, EmptySelectionError):
        return ValidationAppError(
            message=str(exc),
            code="pdf.empty_selection",
            details={"ignored_tokens": [item.to_dict() for item in exc.ignored]},
        )
    if isinstance(exc, PageSequenceError):
        return ValidationAppError(message=str(exc), code="pdf.invalid_page_range")
    if isinstance(exc, PdfPasswordError):
        return ValidationAppError(message=str(exc), code="pdf.invalid_password")
    if isinstance(exc, PdfNotEncryptedError):
        return ValidationAppError(message=str(exc), code="pdf.not_encrypted")
    if isinstance(exc, UnreadablePdfError):
        return AppError(message=str(exc), code="pdf.metadata_error")
    return ValidationAppError(message=str(exc), code="pdf.invalid_request")


def _read_single_pdf() -> tuple[FileStorage, bytes]:
    file = request.files.get("file")
    if not file:
        raise ValidationAppError(message="No file provided", code="pdf.file_missing")
    try:
        enforce_limits([file], _single_limit())
        validate_mime([file], PDF_MIME)
    except ValidationError as exc:
        raise _invalid_upload(exc) from exc
    return file, file.read()


def _form_pages(key: str = "pages") -> str:
    try:
        return get_str(request.form, key, field_name="Page range", max_length=MAX_RANGE_LENGTH)
    except ValidationError as exc:
        raise ValidationAppError(message=str(exc), code="pdf.invalid_request") from exc


def _output_name(file: FileStorage | None, suffix: str) -> str:
    requested = request.form.get("output_name")
    if requested:
        return ensure_extension(requested, "pdf")
    stem = "document"
    if file is not None and file.filename:
        stem = secure_filename(file.filename, fallback="document").rsplit(".", 1)[0]
    return ensure_extension(f"{stem}_{suffix}", "pdf")


def _pdf_response(data: bytes, filename: str, extra: dict[str, Any] | None = None) -> Response:
    if _download_requested():
        return attachment(data, mimetype="application/pdf", filename=filename)
    payload: dict[str, Any] = {"filename": filename, "pdf_base64": to_base64(data)}
    payload.update(extra or {})
    return ok(payload)


def _result_response(result: PdfResult, filename: str, **extra: Any) -> Response:
    payload = {
        "pages": result.pages,
        "ignored_tokens": [item.to_dict() for item in result.ignored],
        **extra,
    }
    return _pdf_response(result.data, filename, payload)


def _load_manifest() -> MergePayload | None:
    manifest_raw = request.form.get("manifest")
    if not manifest_raw:
        return None
    try:
        manifest = json.loads(manifest_raw)
    except json.JSONDecodeError as exc:
        raise ValidationAppError(
            message="Invalid manifest format",
            code="pdf.invalid_manifest",
            details={"error": str(exc)},
        ) from exc
    if not isinstance(manifest, list):
        raise ValidationAppError(message="Manifest must be a list", code="pdf.invalid_manifest")
    payload = {"manifest": manifest, "output_name": request.form.get("output_name")}
    try:
        return parse_model(MergePayload, payload)
    except ValidationError as exc:
        raise ValidationAppError(
            message=str(exc),
            code="pdf.invalid_manifest",
            details={"errors": getattr(exc, "details", None)},
        ) from exc


def _collect_uploads(manifest: Iterable[MergeItem]) -> list[FileStorage]:
    uploads = []
    for item in manifest:
        file = request.files.get(item.field)
        if file is None:
            raise ValidationAppError(
                message=f"Missing file for field {item.field}", code="pdf.missing_file"
            )
        uploads.append(file)
    return uploads


def _merge_specs() -> tuple[list[MergeSpec], str]:
    manifest = _load_manifest()
    if manifest is not None:
        uploads = _collect_uploads(manifest.manifest)
        items = list(zip(manifest.manifest, uploads, strict=True))
        min_files = 1
        output_name = manifest.output_name
    else:
        uploads = request.files.getlist("files")
        if not uploads:
            raise ValidationAppError(
                message="Missing merge manifest or files", code="pdf.missing_manifest"
            )
        items = [(MergeItem(field="files", filename=file.filename), file) for file in uploads]
        min_files = 2
        output_name = request.form.get("output_name")
    try:
        enforce_limits(uploads, _merge_limit(), min_files=min_files)
        validate_mime(uploads, PDF_MIME)
    except ValidationError as exc:
        raise _invalid_upload(exc) from exc

    specs = [
        MergeSpec(
            data=file.read(),
            page_range=item.pages,
            filename=item.filename or file.filename or "document.pdf",
        )
        for item, file in items
    ]
    return specs, ensure_extension(output_name or "merged.pdf", "pdf")


@api_bp.post("/merge")
def merge() -> Response:
    try:
        specs, filename = _merge_specs()
        result = merge_pdfs(specs)
    except AppError as exc:
        return fail(exc)
    except PdfToolError as exc:
        logger.warning("pdf merge rejected: %s", exc)
        return fail(_pdf_error(exc))
    return _pdf_response(
        result.data,
        filename,
        {
            "total_files": len(specs),
            "ignored_tokens": [item.to_dict() for item in result.ignored],
        },
    )


def _split_plan() -> list[SplitTask] | None:
    raw_plan = request.form.get("plan")
    if not raw_plan:
        return None
    try:
        plan_payload = json.loads(raw_plan)
    except json.JSONDecodeError as exc:
        raise ValidationAppError(
            message="Invalid split plan",
            code="pdf.invalid_split_plan",
            details={"error": str(exc)},
        ) from exc
    try:
        parsed = parse_model(SplitRequest, {"plan": plan_payload})
    except ValidationError as exc:
        raise ValidationAppError(
            message=str(exc),
            code="pdf.invalid_split_plan",
            details={"errors": getattr(exc, "details", None)},
        ) from exc
    if not parsed.plan:
        raise ValidationAppError(
            message="Split plan cannot be empty", code="pdf.invalid_split_plan"
        )

    tasks: list[SplitTask] = []
    seen: set[str] = set()
    for item in parsed.plan:
        safe_name = ensure_extension(item.name, "pdf", fallback="split")
        key = safe_name.lower()
        if key in seen:
            raise ValidationAppError(
                message="Duplicate split output names",
                code="pdf.duplicate_split_name",
            )
        seen.add(key)
        tasks.append(SplitTask(name=safe_name, page_range=item.pages))
    return tasks


@api_bp.post("/split")
def split() -> Response:
    try:
        file, data = _read_single_pdf()
        meta = pdf_metadata(data)
        tasks = _split_plan()
        pages = _form_pages()
        selected: list[int] = []
        ignored: list[dict[str, str]] = []
        if tasks:
            outputs = split_pdf_custom(data, tasks)
        elif pages:
            result = extract_pages(data, pages)
            selected = result.pages
            ignored = [item.to_dict() for item in result.ignored]
            outputs = [(_output_name(file, "split"), result.data)]
        else:
            parts = split_pdf(data)
            outputs = [(f"page-{idx}.pdf", part) for idx, part in enumerate(parts, start=1)]
    except AppError as exc:
        return fail(exc)
    except PdfToolError as exc:
        logger.warning("pdf split rejected: %s", exc)
        return fail(_pdf_error(exc))

    if _download_requested():
        if len(outputs) == 1:
            name, content = outputs[0]
            return attachment(content, mimetype="application/pdf", filename=name)
        return attachment(
            zip_bytes(outputs), mimetype="application/zip", filename="split_pages.zip"
        )
    files_payload = [
        {"name": name, "pdf_base64": to_base64(content)} for name, content in outputs
    ]
    payload = {
        "files": files_payload,
        "page_count": meta.pages,
        "pages": selected,
        "ignored_tokens": ignored,
    }
    return ok(payload)


@api_bp.post("/compress")
def compress() -> Response:
    try:
        file, data = _read_single_pdf()
        compressed = compress_pdf(data)
    except AppError as exc:
        return fail(exc)
    except PdfToolError as exc:
        return fail(_pdf_error(exc))
    return _pdf_response(
        compressed,
        _output_name(file, "compressed"),
        {"original_size": len(data), "compressed_size": len(compressed)},
    )


@api_bp.post("/rotate")
def rotate() -> Response:
    try:
        file, data = _read_single_pdf()
        angle = get_int(request.form, "angle", 90, field_name="Angle")
        if angle % 90 != 0:
            raise ValidationAppError(
                message="Angle must be a multiple of 90", code="pdf.invalid_request"
            )
        result = rotate_pages(data, _form_pages(), angle)
    except ValidationError as exc:
        return fail(ValidationAppError(message=str(exc), code="pdf.invalid_request"))
    except AppError as exc:
        return fail(exc)
    except PdfToolError as exc:
        return fail(_pdf_error(exc))
    return _result_response(result, _output_name(file, "rotated"), angle=angle)


@api_bp.post("/remove_pages")
def remove() -> Response:
    try:
        file, data = _read_single_pdf()
        result = remove_pages(data, _form_pages())
    except AppError as exc:
        return fail(exc)
    except PdfToolError as exc:
        logger.warning("pdf page removal rejected: %s", exc)
        return fail(_pdf_error(exc))
    return _result_response(result, _output_name(file, "removed_pages"))


@api_bp.post("/organize")
def organize() -> Response:
    try:
        file, data = _read_single_pdf()
        order = get_str(
            request.form, "order", field_name="Page order", required=True,
            max_length=MAX_RANGE_LENGTH,
        )
        result = reorder_pages(data, order)
    except ValidationError as exc:
        return fail(ValidationAppError(message=str(exc), code="pdf.invalid_request"))
    except AppError as exc:
        return fail(exc)
    except PdfToolError as exc:
        return fail(_pdf_error(exc))
    return _result_response(result, _output_name(file, "organized"))


@api_bp.post("/crop")
def crop() -> Response:
    try:
        file, data = _read_single_pdf()
        margins = CropMargins(
            **{
                side: get_float(request.form, side, 0.0, field_name=f"{side} margin", minimum=0.0)
                for side in ("left", "bottom", "right", "top")
            }
        )
        result = crop_pages(data, _form_pages(), margins)
    except ValidationError as exc:
        return fail(ValidationAppError(message=str(exc), code="pdf.invalid_request"))
    except AppError as exc:
        return fail(exc)
    except PdfToolError as exc:
        return fail(_pdf_error(exc))
    return _result_response(result, _output_name(file, "cropped"))


def _password() -> str:
    try:
        return get_str(request.form, "password", field_name="Password", required=True, max_length=128)
    except ValidationError as exc:
        raise ValidationAppError(message=str(exc), code="pdf.invalid_request") from exc


@api_bp.post("/protect")
def protect() -> Response:
    try:
        file, data = _read_single_pdf()
        protected = protect_pdf(data, _password())
    except AppError as exc:
        return fail(exc)
    except PdfToolError as exc:
        return fail(_pdf_error(exc))
    return _pdf_response(protected, _output_name(file, "protected"))


@api_bp.post("/unlock")
def unlock() -> Response:
    try:
        file, data = _read_single_pdf()
        unlocked = unlock_pdf(data, _password())
    except AppError as exc:
        return fail(exc)
    except PdfToolError as exc:
        logger.warning("pdf unlock rejected: %s", exc)
        return fail(_pdf_error(exc))
    return _pdf_response(unlocked, _output_name(file, "unlocked"))


@api_bp.post("/metadata")
def metadata() -> Response:
    try:
        _, data = _read_single_pdf()
        info = pdf_metadata(data)
    except AppError as exc:
        return fail(exc)
    except PdfToolError as exc:
        return fail(_pdf_error(exc))

    payload = {"pages": info.pages, "size_bytes": info.size_bytes, "encrypted": info.encrypted}
    return ok(payload)


@api_bp.post("/pages")
def pages_preview() -> Response:
    """Resolve a range expression against a document or an explicit page count."""

    try:
        expression = _form_pages()
        if request.files.get("file"):
            _, data = _read_single_pdf()
            total_pages = pdf_metadata(data).pages
        else:
            total_pages = get_int(
                request.form,
                "total_pages",
                None,
                field_name="Total pages",
                minimum=1,
                maximum=_preview_max_pages(),
            )
            if total_pages is None:
                raise ValidationAppError(
                    message="Provide a file or total_pages", code="pdf.invalid_request"
                )
        if total_pages <= 0:
            raise ValidationAppError(message="PDF has no readable pages", code="pdf.metadata_error")
    except ValidationError as exc:
        return fail(ValidationAppError(message=str(exc), code="pdf.invalid_request"))
    except AppError as exc:
        return fail(exc)
    except PdfToolError as exc:
        return fail(_pdf_error(exc))

    report = parse_page_range_report(expression, total_pages)
    return ok(
        {
            "pages": report.pages,
            "ignored_tokens": report.ignored_tokens,
            "total_pages": total_pages,
        }
    )


blueprints = [api_bp]


__all__ = [
    "blueprints",
    "merge",
    "split",
    "compress",
    "rotate",
    "remove",
    "organize",
    "crop",
    "protect",
    "unlock",
    "metadata",
    "pages_preview",
]
