"""Application factory for the AnyFileForge processing server."""

from __future__ import annotations

import importlib
import pkgutil
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

import yaml
from flask import Flask, Response, request
from werkzeug.exceptions import HTTPException

from common.errors import AppError, NotFoundAppError, ValidationAppError, ensure_app_error
from common.logging import get_logger, install_request_logging
from common.responses import fail, ok

from . import config as config_module

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yml"

logger = get_logger()


def _load_yaml_config() -> dict:
    if not CONFIG_PATH.exists():
        return {}
    with CONFIG_PATH.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def _discover_plugins(package: str = "plugins") -> Iterable[str]:
    """Yield import paths for all plugin packages."""

    package_path = Path(__file__).resolve().parent.parent / package
    if not package_path.exists():
        return []
    for module_info in pkgutil.iter_modules([str(package_path)]):
        if module_info.ispkg:
            yield f"{package}.{module_info.name}"


def _register_plugins(app: Flask) -> list[dict]:
    """Register each plugin's blueprints and collect its manifest."""

    manifests: list[dict] = []
    for dotted in _discover_plugins():
        module = importlib.import_module(dotted)
        api = importlib.import_module(f"{dotted}.api")
        for blueprint in getattr(api, "blueprints", []):
            app.register_blueprint(blueprint)
        manifest = getattr(module, "manifest", None)
        if manifest:
            manifests.append(dict(manifest))
    manifests.sort(key=lambda item: item["title"].lower())
    return manifests


def _install_response_headers(app: Flask) -> None:
    @app.after_request
    def apply_response_headers(response: Response) -> Response:
        """Attach security and CORS headers to every outgoing response."""

        configured = app.config.get("RESPONSE_HEADERS", {})
        for header, value in configured.items():
            if header not in response.headers:
                response.headers[header] = value

        origin = app.config.get("CORS_ORIGIN")
        if origin:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers.add("Vary", "Origin")
            for header, value in app.config.get("CORS_HEADERS", {}).items():
                response.headers.setdefault(header, value)
        return response


def _install_error_handlers(app: Flask) -> None:
    @app.errorhandler(AppError)
    def app_error(error: AppError):
        return fail(error)

    @app.errorhandler(404)
    def not_found(error):
        return fail(NotFoundAppError(message=f"Route {request.path} not found"))

    @app.errorhandler(405)
    def method_not_allowed(error):
        return fail(
            ValidationAppError(
                message=f"Method {request.method} not allowed for {request.path}",
                code="method_not_allowed",
                status_code=405,
            )
        )

    @app.errorhandler(413)
    def payload_too_large(error):
        limit_mb = (app.config.get("MAX_CONTENT_LENGTH") or 0) // (1024 * 1024)
        return fail(
            ValidationAppError(
                message=f"File too large. Maximum size is {limit_mb}MB.",
                code="payload_too_large",
                status_code=413,
            )
        )

    @app.errorhandler(Exception)
    def server_error(error: Exception):
        if isinstance(error, HTTPException):
            return fail(
                ValidationAppError(
                    message=error.description or error.name,
                    code="http_error",
                    status_code=error.code or 500,
                )
            )
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return fail(ensure_app_error(error, fallback_code="internal_error"))


def create_app(config_name: str | None = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, static_folder=None)
    app.config.from_object(config_module.BaseConfig)

    yaml_config = _load_yaml_config()
    site_settings = yaml_config.get("site", {})
    plugin_settings = yaml_config.get("plugins", {}) or {}

    if site_settings:
        app.config["SITE_SETTINGS"] = site_settings
        if "max_content_length_mb" in site_settings:
            try:
                max_bytes = int(float(site_settings["max_content_length_mb"]) * 1024 * 1024)
                app.config["MAX_CONTENT_LENGTH"] = max_bytes
            except (TypeError, ValueError):
                pass
    else:
        app.config["SITE_SETTINGS"] = {}

    app.config["PLUGIN_SETTINGS"] = plugin_settings

    if config_name:
        config_obj = getattr(config_module, config_name, None)
        if config_obj:
            app.config.from_object(config_obj)

    install_request_logging(app)
    _install_response_headers(app)
    _install_error_handlers(app)

    manifests = _register_plugins(app)
    for manifest in manifests:
        blueprint = manifest.get("blueprint")
        plugin_config = plugin_settings.get(blueprint, {}) if blueprint else {}
        if plugin_config.get("docs"):
            manifest["docs"] = plugin_config["docs"]
        if plugin_config.get("summary"):
            manifest["summary"] = plugin_config["summary"]
    app.config["PLUGIN_MANIFESTS"] = manifests

    started = time.monotonic()

    @app.get("/api/health")
    def health() -> Response:
        return ok(
            {
                "status": "ok",
                "message": f"{app.config['SITE_SETTINGS'].get('name', 'AnyFileForge')} server is running",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "uptime": round(time.monotonic() - started, 3),
            }
        )

    @app.get("/api/tools")
    def tools() -> Response:
        return ok({"plugins": app.config.get("PLUGIN_MANIFESTS", [])})

    return app


__all__ = ["create_app"]
