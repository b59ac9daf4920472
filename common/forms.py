"""Form value parsing helpers shared across plugins."""

from __future__ import annotations

import math
from typing import Mapping, Any

from .validation import ValidationError


FormDataLike = Mapping[str, Any] | Any


def _lookup(data: FormDataLike, key: str) -> Any:
    if data is None:
        return None
    getter = getattr(data, "get", None)
    if callable(getter):
        return getter(key)
    return data[key] if isinstance(data, Mapping) and key in data else None


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and raw.strip() == "")


def get_float(
    data: FormDataLike,
    key: str,
    default: float | None,
    *,
    field_name: str | None = None,
    minimum: float | None = None,
    maximum: float | None = None,
) -> float | None:
    """Extract a float from *data* with validation.

    Missing or blank values fall back to ``default``. ``minimum`` and
    ``maximum`` bounds are optional and inclusive.
    """

    field_label = field_name or key
    raw = _lookup(data, key)
    if _is_blank(raw):
        value = default
    else:
        try:
            value = float(raw)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid value for {field_label}") from exc
        if not math.isfinite(value):
            raise ValidationError(f"{field_label} must be a finite number")
    if value is None:
        return None

    if minimum is not None and value < minimum:
        raise ValidationError(f"{field_label} must be ≥ {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field_label} must be ≤ {maximum}")

    return value


def get_int(
    data: FormDataLike,
    key: str,
    default: int | None,
    *,
    field_name: str | None = None,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int | None:
    """Extract an integer from *data* with validation.

    A ``None`` default makes the field optional: blank input returns ``None``.
    """

    value = get_float(
        data,
        key,
        float(default) if default is not None else None,
        field_name=field_name,
        minimum=float(minimum) if minimum is not None else None,
        maximum=float(maximum) if maximum is not None else None,
    )
    if value is None:
        return None
    value = int(round(value))

    if minimum is not None and value < minimum:
        raise ValidationError(f"{field_name or key} must be ≥ {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field_name or key} must be ≤ {maximum}")

    return value


def get_bool(
    data: FormDataLike,
    key: str,
    default: bool = False,
    *,
    truthy: tuple[str, ...] = ("1", "true", "on", "yes"),
) -> bool:
    """Extract a boolean flag from *data*."""

    raw = _lookup(data, key)
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return bool(raw)
    if isinstance(raw, str):
        return raw.strip().lower() in truthy
    return default


def get_str(
    data: FormDataLike,
    key: str,
    default: str = "",
    *,
    field_name: str | None = None,
    required: bool = False,
    max_length: int | None = None,
) -> str:
    """Extract a stripped string from *data*."""

    field_label = field_name or key
    raw = _lookup(data, key)
    if _is_blank(raw):
        if required:
            raise ValidationError(f"{field_label} is required")
        return default
    value = str(raw).strip()
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{field_label} must be at most {max_length} characters")
    return value


__all__ = ["get_float", "get_int", "get_bool", "get_str"]
