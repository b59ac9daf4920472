"""Development entry point."""

import os

from app import create_app


def _resolve_port() -> int:
    value = os.getenv("ANYFILEFORGE_PORT") or os.getenv("PORT") or "5000"
    try:
        return int(value)
    except ValueError as exc:
        raise SystemExit(
            f"Invalid port '{value}'. Set ANYFILEFORGE_PORT to a number."
        ) from exc


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=_resolve_port(), debug=False)
