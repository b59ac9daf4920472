"""Lenient parsing of human-entered page range strings.

``parse_page_range("1-3,5,7", 10)`` returns ``[1, 2, 3, 5, 7]``. The parser
never raises: malformed tokens and pages outside ``1..max_pages`` are
skipped. :func:`parse_page_range_report` returns the same pages together
with the tokens that contributed nothing, so callers can tell users why a
selection came out smaller than expected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Literal

_LEADING_INT_RE = re.compile(r"[+-]?[0-9]+")

IgnoreReason = Literal["malformed", "out_of_range"]


@dataclass(frozen=True)
class IgnoredToken:
    """A token of a range expression that selected no page."""

    token: str
    reason: IgnoreReason

    def to_dict(self) -> dict[str, str]:
        return {"token": self.token, "reason": self.reason}


@dataclass(frozen=True)
class PageRangeReport:
    """Pages selected by a range expression plus the tokens that were skipped."""

    pages: List[int] = field(default_factory=list)
    ignored: List[IgnoredToken] = field(default_factory=list)

    @property
    def ignored_tokens(self) -> list[dict[str, str]]:
        return [item.to_dict() for item in self.ignored]


def parse_leading_int(text: str) -> int | None:
    """Parse the base-10 integer prefix of ``text``.

    Leading whitespace and an optional sign are accepted and anything after
    the digits is ignored, so ``"3abc"`` gives ``3`` and ``" 1.9"`` gives
    ``1``. Returns ``None`` when there are no leading digits.
    """

    match = _LEADING_INT_RE.match(text.lstrip())
    if match is None:
        return None
    return int(match.group(0))


def _expand_token(token: str, max_pages: int) -> tuple[list[int], IgnoreReason | None]:
    if "-" in token:
        # Only the first two pieces count: "1-2-3" reads as "1-2".
        start_raw, end_raw = token.split("-")[:2]
        start = parse_leading_int(start_raw)
        end = parse_leading_int(end_raw)
        if start is None or end is None:
            return [], "malformed"
        low = max(1, min(start, end))
        high = min(max_pages, max(start, end))
        pages = list(range(low, high + 1))
        return pages, None if pages else "out_of_range"

    page = parse_leading_int(token)
    if page is None:
        return [], "malformed"
    if 1 <= page <= max_pages:
        return [page], None
    return [], "out_of_range"


def parse_page_range_report(expression: str | None, max_pages: int) -> PageRangeReport:
    """Parse ``expression`` against ``max_pages`` and explain skipped tokens."""

    if not expression or not expression.strip():
        return PageRangeReport()

    selected: set[int] = set()
    ignored: list[IgnoredToken] = []
    for raw in expression.split(","):
        token = raw.strip()
        if not token:
            continue
        pages, reason = _expand_token(token, max_pages)
        if reason is not None:
            ignored.append(IgnoredToken(token=token, reason=reason))
        selected.update(pages)
    return PageRangeReport(pages=sorted(selected), ignored=ignored)


def parse_page_range(expression: str | None, max_pages: int) -> List[int]:
    """Return the sorted, de-duplicated 1-indexed pages named by ``expression``."""

    return parse_page_range_report(expression, max_pages).pages


__all__ = [
    "IgnoredToken",
    "PageRangeReport",
    "parse_leading_int",
    "parse_page_range",
    "parse_page_range_report",
]
