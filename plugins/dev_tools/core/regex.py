"""Regular expression matching with JavaScript style flags."""

from __future__ import annotations

import re
from typing import List, Optional

from common.tasks import run_with_timeout

MAX_PATTERN_LENGTH = 1024
MAX_TEXT_LENGTH = 10240

_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "u": 0,
}


class RegexError(ValueError):
    """Raised for invalid patterns, flags or oversized input."""


def regex_flags(flags: str) -> tuple[int, bool]:
    """Translate a flag string such as ``"gi"`` into ``re`` flags.

    Returns the combined ``re`` flags and whether all matches were requested.
    """

    value = 0
    find_all = False
    for flag in flags:
        if flag == "g":
            find_all = True
        elif flag in _FLAG_MAP:
            value |= _FLAG_MAP[flag]
        else:
            raise RegexError(f"Invalid regex flag '{flag}'")
    return value, find_all


def compile_pattern(pattern: str, flags: str = "") -> tuple[re.Pattern, bool]:
    value, find_all = regex_flags(flags)
    try:
        return re.compile(pattern, value), find_all
    except re.error as exc:
        raise RegexError(f"Invalid regex pattern: {exc}") from exc


def _match(pattern: str, flags: str, text: str) -> Optional[List[Optional[str]]]:
    compiled, find_all = compile_pattern(pattern, flags)
    if find_all:
        found = [match.group(0) for match in compiled.finditer(text)]
        return found or None
    match = compiled.search(text)
    if match is None:
        return None
    return [match.group(0), *match.groups()]


def run_match(
    pattern: str, flags: str, text: str, *, timeout: float
) -> Optional[List[Optional[str]]]:
    """Run the match in a child process that is killed after ``timeout`` seconds.

    The pattern is compiled here first so syntax errors surface without
    spawning a worker. Raises :class:`common.tasks.TaskTimeoutError` on timeout.
    """

    compile_pattern(pattern, flags)
    return run_with_timeout(_match, (pattern, flags, text), timeout=timeout)


__all__ = [
    "MAX_PATTERN_LENGTH",
    "MAX_TEXT_LENGTH",
    "RegexError",
    "compile_pattern",
    "regex_flags",
    "run_match",
]
