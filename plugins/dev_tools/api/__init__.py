"""API routes for the Developer Tools plugin."""

from __future__ import annotations

from typing import Literal

import pydantic
from flask import Blueprint, Response, current_app, request

from common.errors import AppError, ValidationAppError
from common.logging import get_logger
from common.responses import fail, ok
from common.tasks import TaskTimeoutError
from common.validation import SchemaModel, ValidationError, parse_model

from ..core import (
    DevToolError,
    RegexError,
    base64_transform,
    evaluate_regex,
    format_json,
    hash_text,
    list_hash_algorithms,
    minify_code,
)

logger = get_logger()


class TextPayload(SchemaModel):
    # Whitespace is significant for every developer tool input.
    model_config = pydantic.ConfigDict(str_strip_whitespace=False)


class JsonFormatPayload(TextPayload):
    input: str
    action: Literal["format", "minify"] = "format"


class Base64Payload(TextPayload):
    input: str
    action: Literal["encode", "decode"]


class RegexPayload(TextPayload):
    pattern: str
    test_string: str
    flags: str = ""


class MinifyPayload(TextPayload):
    code: str
    type: Literal["json", "css", "js"]


class HashPayload(TextPayload):
    input: str
    algorithm: str = "sha256"


def _regex_timeout() -> float:
    settings = current_app.config.get("PLUGIN_SETTINGS", {}).get("dev_tools", {}) or {}
    try:
        return max(0.1, float(settings.get("regex_timeout_seconds", 2)))
    except (TypeError, ValueError):
        return 2.0


def _parse(model: type[SchemaModel]) -> SchemaModel:
    raw_payload = request.get_json(silent=True) or {}
    try:
        return parse_model(model, raw_payload)
    except ValidationError as exc:
        raise ValidationAppError(
            message=str(exc),
            code="dev.invalid_request",
            details={"errors": getattr(exc, "details", None)},
        ) from exc


api_bp = Blueprint("dev_tools_api", __name__, url_prefix="/api/dev_tools")


@api_bp.post("/json_format")
def json_format() -> Response:
    try:
        payload = _parse(JsonFormatPayload)
        return ok(format_json(payload.input, payload.action))
    except AppError as exc:
        return fail(exc)
    except DevToolError as exc:
        return fail(ValidationAppError(message=str(exc), code="dev.invalid_json"))


@api_bp.post("/base64")
def base64_endpoint() -> Response:
    try:
        payload = _parse(Base64Payload)
        return ok(base64_transform(payload.input, payload.action))
    except AppError as exc:
        return fail(exc)
    except DevToolError as exc:
        return fail(ValidationAppError(message=str(exc), code="dev.base64_failed"))


@api_bp.post("/regex_test")
def regex_test() -> Response:
    try:
        payload = _parse(RegexPayload)
    except AppError as exc:
        return fail(exc)
    try:
        result = evaluate_regex(
            payload.pattern,
            payload.test_string,
            payload.flags,
            timeout=_regex_timeout(),
        )
    except RegexError as exc:
        return fail(ValidationAppError(message=str(exc), code="dev.invalid_regex"))
    except TaskTimeoutError:
        logger.warning("regex evaluation timed out for pattern of length %d", len(payload.pattern))
        return fail(
            ValidationAppError(
                message="Regex operation timed out",
                code="dev.regex_timeout",
                status_code=408,
            )
        )
    return ok(result)


@api_bp.post("/minify")
def minify() -> Response:
    try:
        payload = _parse(MinifyPayload)
        return ok(minify_code(payload.code, payload.type))
    except AppError as exc:
        return fail(exc)
    except DevToolError as exc:
        return fail(ValidationAppError(message=str(exc), code="dev.minify_failed"))


@api_bp.get("/hash/algorithms")
def hash_algorithms() -> Response:
    return ok({"algorithms": list_hash_algorithms()})


@api_bp.post("/hash")
def hash_endpoint() -> Response:
    try:
        payload = _parse(HashPayload)
        return ok(hash_text(payload.input, payload.algorithm))
    except AppError as exc:
        return fail(exc)
    except DevToolError as exc:
        return fail(ValidationAppError(message=str(exc), code="dev.hash_failed"))


blueprints = [api_bp]


__all__ = [
    "blueprints",
    "json_format",
    "base64_endpoint",
    "regex_test",
    "minify",
    "hash_algorithms",
    "hash_endpoint",
]
