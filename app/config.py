"""Configuration classes for the Flask application."""

from __future__ import annotations

import os
import secrets


def _load_secret() -> str:
    """Return the Flask secret key for the current process."""

    secret = os.environ.get("ANYFILEFORGE_SECRET")
    if secret:
        return secret
    # Generate an unpredictable per-process key for local development.
    return secrets.token_urlsafe(64)


def _max_file_size_mb(default: int = 50) -> int:
    raw = os.environ.get("ANYFILEFORGE_MAX_FILE_SIZE_MB")
    try:
        return max(1, int(raw)) if raw else default
    except ValueError:
        return default


class BaseConfig:
    SECRET_KEY = _load_secret()
    MAX_CONTENT_LENGTH = _max_file_size_mb() * 1024 * 1024
    SESSION_COOKIE_SECURE = False
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Strict"
    CORS_ORIGIN = os.environ.get("ANYFILEFORGE_CLIENT_URL", "http://localhost:5173")
    CORS_HEADERS = {
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
        "Access-Control-Expose-Headers": "Content-Disposition, X-Request-ID",
        "Access-Control-Allow-Credentials": "true",
    }
    RESPONSE_HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Content-Security-Policy": (
            "default-src 'self'; "
            "img-src 'self' data: blob:; "
            "object-src 'none'; "
            "frame-ancestors 'none'"
        ),
        "Referrer-Policy": "no-referrer",
        "Cross-Origin-Resource-Policy": "cross-origin",
    }


class TestingConfig(BaseConfig):
    TESTING = True


__all__ = ["BaseConfig", "TestingConfig"]
