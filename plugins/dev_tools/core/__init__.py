"""Text utilities behind the developer tools endpoints."""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import re
from typing import Dict, List, Optional

from .regex import (
    MAX_PATTERN_LENGTH,
    MAX_TEXT_LENGTH,
    RegexError,
    compile_pattern,
    regex_flags,
    run_match,
)


class DevToolError(ValueError):
    """Raised when a developer tool cannot process its input."""


class InvalidJsonError(DevToolError):
    """Raised when the input is not valid JSON."""


HASH_ALGORITHMS = sorted(
    name for name in hashlib.algorithms_guaranteed if not name.startswith("shake_")
)

_BASE64_STRIP_RE = re.compile(r"[^A-Za-z0-9+/]")
_BLOCK_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")
_LINE_COMMENT_RE = re.compile(r"//.*")
_WHITESPACE_RE = re.compile(r"\s+")
_CSS_RULES = (
    (re.compile(r"\s*{\s*"), "{"),
    (re.compile(r"\s*}\s*"), "}"),
    (re.compile(r"\s*:\s*"), ":"),
    (re.compile(r"\s*;\s*"), ";"),
)


def _load_json(text: str) -> object:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidJsonError(f"Invalid JSON: {exc}") from exc


def format_json(text: str, action: str = "format") -> Dict[str, object]:
    """Pretty-print (two space indent) or minify a JSON document."""

    if not text:
        raise DevToolError("Input JSON is required")
    parsed = _load_json(text)
    if action == "minify":
        output = json.dumps(parsed, ensure_ascii=False, separators=(",", ":"))
    else:
        output = json.dumps(parsed, ensure_ascii=False, indent=2)
    return {"output": output, "valid": True}


def _decode_base64(text: str) -> str:
    cleaned = _BASE64_STRIP_RE.sub("", text.replace("-", "+").replace("_", "/"))
    if len(cleaned) % 4 == 1:
        # A lone trailing character carries less than one byte.
        cleaned = cleaned[:-1]
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        raw = base64.b64decode(cleaned)
    except binascii.Error as exc:  # pragma: no cover - input is normalised above
        raise DevToolError(f"Base64 operation failed: {exc}") from exc
    return raw.decode("utf-8", errors="replace")


def base64_transform(text: str, action: str) -> Dict[str, str]:
    """Encode UTF-8 text to Base64 or leniently decode Base64 back to text."""

    if not text:
        raise DevToolError("Input is required")
    if action == "encode":
        return {"output": base64.b64encode(text.encode("utf-8")).decode("ascii")}
    if action == "decode":
        return {"output": _decode_base64(text)}
    raise DevToolError('Invalid action. Use "encode" or "decode"')


def evaluate_regex(
    pattern: str, test_string: str, flags: str = "", *, timeout: float = 2.0
) -> Dict[str, object]:
    """Match ``pattern`` against ``test_string`` in a time-boxed child process.

    Without the ``g`` flag the result lists the first match followed by its
    groups; with ``g`` it lists every full match.
    """

    if len(pattern) > MAX_PATTERN_LENGTH:
        raise RegexError(f"Pattern is too long (max {MAX_PATTERN_LENGTH} characters)")
    if len(test_string) > MAX_TEXT_LENGTH:
        raise RegexError(f"Test string is too long (max {MAX_TEXT_LENGTH} characters)")
    matches = run_match(pattern, flags or "", test_string, timeout=timeout)
    return {
        "matches": matches or [],
        "test": matches is not None,
        "match_count": len(matches or []),
    }




def minify_code(code: str, kind: str) -> Dict[str, object]:
    """Strip comments and collapse whitespace from JSON, CSS or JavaScript."""

    if not code:
        raise DevToolError("Code is required")
    if kind == "json":
        output = json.dumps(_load_json(code), ensure_ascii=False, separators=(",", ":"))
    elif kind == "css":
        output = _WHITESPACE_RE.sub(" ", _BLOCK_COMMENT_RE.sub("", code))
        for pattern, replacement in _CSS_RULES:
            output = pattern.sub(replacement, output)
        output = output.strip()
    elif kind == "js":
        output = _BLOCK_COMMENT_RE.sub("", code)
        output = _WHITESPACE_RE.sub(" ", _LINE_COMMENT_RE.sub("", output)).strip()
    else:
        raise DevToolError('Invalid type. Use "json", "css", or "js"')
    reduction = (1 - len(output) / len(code)) * 100
    return {
        "output": output,
        "original_size": len(code),
        "minified_size": len(output),
        "reduction": f"{reduction:.2f}%",
    }


def hash_text(text: str, algorithm: Optional[str] = "sha256") -> Dict[str, str]:
    if not text:
        raise DevToolError("Input is required")
    name = (algorithm or "sha256").strip().lower()
    if name not in HASH_ALGORITHMS:
        raise DevToolError(
            f"Unsupported hash algorithm '{algorithm}'. Choose one of: {', '.join(HASH_ALGORITHMS)}"
        )
    digest = hashlib.new(name, text.encode("utf-8")).hexdigest()
    return {"hash": digest, "algorithm": name}


def list_hash_algorithms() -> List[str]:
    return list(HASH_ALGORITHMS)


__all__ = [
    "DevToolError",
    "HASH_ALGORITHMS",
    "InvalidJsonError",
    "MAX_PATTERN_LENGTH",
    "MAX_TEXT_LENGTH",
    "RegexError",
    "base64_transform",
    "compile_pattern",
    "format_json",
    "hash_text",
    "list_hash_algorithms",
    "minify_code",
    "regex_flags",
    "evaluate_regex",
]
