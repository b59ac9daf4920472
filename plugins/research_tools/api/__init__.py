"""API routes for the Research Tools plugin."""

from __future__ import annotations

from typing import Any, Callable

from flask import Blueprint, Response, current_app, request
from werkzeug.exceptions import HTTPException

from common.errors import AppError, ValidationAppError, ensure_app_error
from common.forms import get_str
from common.logging import get_logger
from common.responses import fail, ok
from common.validation import (
    FileLimit,
    SchemaModel,
    ValidationError,
    enforce_limits,
    parse_model,
    validate_mime,
)

from ..core import (
    MAX_BIBTEX_LENGTH,
    MAX_STATS_ITEMS,
    InvalidColumnError,
    InvalidCsvError,
    ResearchToolError,
    csv_chart_data,
    csv_to_records,
    describe,
    parse_bibtex,
)

logger = get_logger()

CSV_MIMES = {"text/csv", "application/vnd.ms-excel"}


class BibtexRequest(SchemaModel):
    bibtex: str


class StatsRequest(SchemaModel):
    data: list[Any]


def _settings() -> dict:
    return current_app.config.get("PLUGIN_SETTINGS", {}).get("research_tools", {}) or {}


def _upload_limits() -> FileLimit:
    return FileLimit.from_settings(
        _settings().get("upload"), default_max_files=1, default_max_mb=50
    )


def _int_setting(key: str, default: int) -> int:
    try:
        return max(1, int(_settings().get(key, default)))
    except (TypeError, ValueError):
        return default


def _handle(callable_: Callable[[], Any]) -> Response:
    try:
        return ok(callable_())
    except AppError as exc:
        return fail(exc)
    except ValidationError as exc:
        return fail(
            ValidationAppError(
                message=str(exc), code="research.invalid_request", details={"errors": exc.details}
            )
        )
    except InvalidCsvError as exc:
        return fail(ValidationAppError(message=str(exc), code="research.invalid_csv"))
    except InvalidColumnError as exc:
        return fail(ValidationAppError(message=str(exc), code="research.invalid_columns"))
    except ResearchToolError as exc:
        return fail(ValidationAppError(message=str(exc), code="research.invalid_data"))
    except HTTPException:
        raise
    except Exception as exc:  # pragma: no cover - unexpected library failures
        logger.exception("research tool failed")
        error = ensure_app_error(exc, fallback_code="research.internal")
        return fail(error, status=error.status_code)


def _csv_upload() -> bytes:
    file = request.files.get("file")
    if not file:
        raise ValidationAppError(message="CSV file is required", code="research.file_missing")
    try:
        enforce_limits([file], _upload_limits())
        validate_mime([file], CSV_MIMES)
    except ValidationError as exc:
        raise ValidationAppError(
            message=str(exc), code="research.invalid_upload", details=exc.details
        ) from exc
    return file.read()


api_bp = Blueprint("research_tools_api", __name__, url_prefix="/api/research_tools")


@api_bp.post("/csv_to_json")
def csv_to_json() -> Response:
    return _handle(lambda: csv_to_records(_csv_upload()))


@api_bp.post("/csv_plot")
def csv_plot() -> Response:
    def _call() -> dict[str, Any]:
        data = _csv_upload()
        return csv_chart_data(
            data,
            get_str(request.form, "x_column", field_name="X column", required=True),
            get_str(request.form, "y_column", field_name="Y column", required=True),
            get_str(request.form, "chart_type", "line").lower(),
        )

    return _handle(_call)


@api_bp.post("/bibtex_parse")
def bibtex_parse() -> Response:
    def _call() -> dict[str, Any]:
        payload = parse_model(BibtexRequest, request.get_json(silent=True))
        entries = parse_bibtex(
            payload.bibtex,
            max_length=_int_setting("max_bibtex_chars", MAX_BIBTEX_LENGTH),
        )
        return {"entries": [entry.to_dict() for entry in entries], "count": len(entries)}

    return _handle(_call)


@api_bp.post("/stats")
def stats() -> Response:
    def _call() -> dict[str, Any]:
        payload = parse_model(StatsRequest, request.get_json(silent=True))
        statistics = describe(
            payload.data, max_items=_int_setting("max_stats_items", MAX_STATS_ITEMS)
        )
        return {"statistics": statistics}

    return _handle(_call)


blueprints = [api_bp]


__all__ = ["blueprints", "csv_to_json", "csv_plot", "bibtex_parse", "stats"]
