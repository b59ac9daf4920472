"""Order preserving page lists for the organize tool.

Unlike :func:`~.page_ranges.parse_page_range` this parser is strict: the
user describes the exact page order of the new document, so a token that
cannot be followed is an error rather than something to skip.
"""

from __future__ import annotations

import re
from typing import List

from .errors import PageSequenceError

# "7", "end", "2-5", "3 - end"
_TOKEN_RE = re.compile(r"^(\d+|end)(?:\s*-\s*(\d+|end))?$", re.IGNORECASE)
_SEPARATOR_RE = re.compile(r"[,\n]")


def _page(value: str, total_pages: int, token: str) -> int:
    page = total_pages if value.lower() == "end" else int(value)
    if not 1 <= page <= total_pages:
        raise PageSequenceError(
            f"Page {page} in '{token}' is outside 1-{total_pages}"
        )
    return page


def parse_page_sequence(sequence: str | None, total_pages: int) -> List[int]:
    """Return the 1-indexed pages named by ``sequence`` in the order given.

    Tokens are separated by commas or newlines. ``all`` selects every page
    and ``end`` stands for the last one. Repeated pages are kept, so
    ``"end,1-2,1"`` on a four page document gives ``[4, 1, 2, 1]``.
    Reversed ranges and pages outside the document raise
    :class:`PageSequenceError`.
    """

    pages: List[int] = []
    for raw in _SEPARATOR_RE.split(sequence or ""):
        token = raw.strip()
        if not token:
            continue
        if token.lower() == "all":
            pages.extend(range(1, total_pages + 1))
            continue
        match = _TOKEN_RE.match(token)
        if match is None:
            raise PageSequenceError(f"Invalid page token '{token}'")
        start = _page(match.group(1), total_pages, token)
        if match.group(2) is None:
            pages.append(start)
            continue
        end = _page(match.group(2), total_pages, token)
        if start > end:
            raise PageSequenceError(f"Range '{token}' runs backwards")
        pages.extend(range(start, end + 1))
    if not pages:
        raise PageSequenceError("No pages specified")
    return pages


__all__ = ["PageSequenceError", "parse_page_sequence"]
