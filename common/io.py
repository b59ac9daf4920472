"""Common IO helpers for plugins."""

from __future__ import annotations

import base64
import os
import zipfile
from io import BytesIO
from typing import Iterable

SAFE_FILENAME_CHARS = {"-", "_", "."}


def secure_filename(filename: str, *, fallback: str = "upload") -> str:
    """Sanitize filenames without relying on Werkzeug internals."""

    if not filename:
        return fallback
    name, ext = os.path.splitext(filename)
    safe_name = "".join(
        ch if ch.isalnum() or ch in SAFE_FILENAME_CHARS else "_" for ch in name
    )
    safe_ext = "".join(ch for ch in ext if ch.isalnum() or ch in SAFE_FILENAME_CHARS)
    safe_name = safe_name.strip("._") or fallback
    safe_ext = safe_ext.strip("._")
    return f"{safe_name}{f'.{safe_ext}' if safe_ext else ''}"


def ensure_extension(filename: str, extension: str, *, fallback: str = "output") -> str:
    """Sanitize ``filename`` and make sure it ends with ``.extension``."""

    safe_name = secure_filename(filename, fallback=fallback)
    suffix = f".{extension.lower()}"
    if not safe_name.lower().endswith(suffix):
        safe_name = f"{safe_name}{suffix}"
    return safe_name


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def zip_bytes(entries: Iterable[tuple[str, bytes]]) -> bytes:
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in entries:
            zf.writestr(name, content)
    return buffer.getvalue()


__all__ = ["secure_filename", "ensure_extension", "to_base64", "zip_bytes"]
