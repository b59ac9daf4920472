"""CSV, BibTeX and statistics helpers for the research tools."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Dict, Iterable, List, Sequence

import numpy as np
import pandas as pd

CHART_TYPES = ("line", "bar", "pie", "scatter")
MAX_COLUMN_NAME_LENGTH = 100
MAX_BIBTEX_LENGTH = 100_000
MAX_STATS_ITEMS = 10_000

_ENTRY_RE = re.compile(r"@(\w+)\{([^,]+),\s*([\s\S]*?)\n\}")
_FIELD_RE = re.compile(r"(\w+)\s*=\s*\{([^}]+)\}")


class ResearchToolError(ValueError):
    """Raised when research tool input cannot be processed."""


class InvalidCsvError(ResearchToolError):
    pass


class InvalidColumnError(ResearchToolError):
    pass


@dataclass
class BibEntry:
    type: str
    key: str
    fields: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {"type": self.type, "key": self.key, "fields": dict(self.fields)}


def load_csv(data: bytes) -> pd.DataFrame:
    """Read ``data`` as text columns with trimmed headers and values.

    Blank lines are skipped and missing cells become empty strings.
    """

    try:
        df = pd.read_csv(
            BytesIO(data),
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            encoding_errors="replace",
        )
    except pd.errors.EmptyDataError as exc:
        raise InvalidCsvError("Empty CSV file") from exc
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise InvalidCsvError(f"Invalid CSV file: {exc}") from exc
    df.columns = [str(column).strip() for column in df.columns]
    df = df.fillna("")
    for column in df.columns:
        df[column] = df[column].astype(str).str.strip()
    return df


def csv_to_records(data: bytes) -> Dict[str, object]:
    df = load_csv(data)
    columns = list(df.columns)
    return {
        "records": df.to_dict(orient="records"),
        "row_count": int(df.shape[0]),
        "column_count": len(columns),
        "columns": columns,
    }


def _check_column(name: str, label: str) -> None:
    if not name:
        raise InvalidColumnError(f"{label} column is required")
    if len(name) > MAX_COLUMN_NAME_LENGTH:
        raise InvalidColumnError(
            f"{label} column name exceeds {MAX_COLUMN_NAME_LENGTH} characters"
        )


def _numeric_or_zero(series: pd.Series) -> List[float]:
    numeric = pd.to_numeric(series, errors="coerce")
    numeric = numeric.replace([np.inf, -np.inf], np.nan).fillna(0.0)
    return [float(value) for value in numeric.astype(float)]


def csv_chart_data(
    data: bytes, x_column: str, y_column: str, chart_type: str = "line"
) -> Dict[str, object]:
    """Build Chart.js style ``labels``/``datasets`` from two CSV columns.

    Non numeric ``y`` cells plot as ``0``.
    """

    _check_column(x_column, "X")
    _check_column(y_column, "Y")
    if chart_type not in CHART_TYPES:
        raise InvalidColumnError(
            f"Unsupported chart type '{chart_type}'. Choose one of: {', '.join(CHART_TYPES)}"
        )
    df = load_csv(data)
    headers = list(df.columns)
    missing = [name for name in (x_column, y_column) if name not in headers]
    if missing:
        raise InvalidColumnError(f"Unknown columns: {', '.join(missing)}")
    return {
        "chart_data": {
            "labels": df[x_column].tolist(),
            "datasets": [{"label": y_column, "data": _numeric_or_zero(df[y_column])}],
        },
        "chart_type": chart_type,
        "headers": headers,
    }


def parse_bibtex(text: str, *, max_length: int = MAX_BIBTEX_LENGTH) -> List[BibEntry]:
    """Extract ``@type{key, field = {value}, ...}`` entries.

    Entries must close with ``}`` at the start of a line; field values are
    brace delimited and cannot nest braces.
    """

    if not text:
        raise ResearchToolError("BibTeX content is required")
    if len(text) > max_length:
        raise ResearchToolError("BibTeX content too large")
    entries: List[BibEntry] = []
    for match in _ENTRY_RE.finditer(text):
        entry_type, key, body = match.groups()
        fields = {name: value.strip() for name, value in _FIELD_RE.findall(body)}
        entries.append(BibEntry(type=entry_type, key=key, fields=fields))
    return entries


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def numeric_values(values: Iterable[Any]) -> List[float]:
    """Keep the finite numbers and numeric strings of ``values``."""

    numbers = []
    for value in values:
        number = _as_number(value)
        if number is not None:
            numbers.append(number)
    return numbers


def describe(values: Sequence[Any], *, max_items: int = MAX_STATS_ITEMS) -> Dict[str, float]:
    """Descriptive statistics with population variance and deviation."""

    if not values:
        raise ResearchToolError("Data array is required")
    if len(values) > max_items:
        raise ResearchToolError(f"Data array too large (max {max_items} items)")
    numbers = numeric_values(values)
    if not numbers:
        raise ResearchToolError("No valid numbers in data")
    array = np.asarray(numbers, dtype=float)
    return {
        "count": int(array.size),
        "sum": float(array.sum()),
        "mean": float(array.mean()),
        "median": float(np.median(array)),
        "min": float(array.min()),
        "max": float(array.max()),
        "variance": float(array.var()),
        "standard_deviation": float(array.std()),
    }


__all__ = [
    "BibEntry",
    "CHART_TYPES",
    "InvalidColumnError",
    "InvalidCsvError",
    "MAX_BIBTEX_LENGTH",
    "MAX_STATS_ITEMS",
    "ResearchToolError",
    "csv_chart_data",
    "csv_to_records",
    "describe",
    "load_csv",
    "numeric_values",
    "parse_bibtex",
]
