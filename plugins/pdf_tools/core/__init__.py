from __future__ import annotations

from dataclasses import dataclass, field
from io import BytesIO
from typing import Iterable, List

from PyPDF2 import PdfReader, PdfWriter
from PyPDF2.errors import FileNotDecryptedError, PdfReadError
from PyPDF2.generic import RectangleObject

from .page_ranges import (
    IgnoredToken,
    PageRangeReport,
    parse_leading_int,
    parse_page_range,
    parse_page_range_report,
)
from .errors import (
    EmptySelectionError,
    PageSequenceError,
    PdfNotEncryptedError,
    PdfPasswordError,
    PdfToolError,
    UnreadablePdfError,
)
from .sequence import parse_page_sequence


@dataclass(frozen=True)
class MergeSpec:
    """Specification for merging a single PDF input."""

    data: bytes
    page_range: str = ""
    filename: str = "document.pdf"


@dataclass(frozen=True)
class PdfMetadata:
    """Metadata extracted from a PDF document."""

    pages: int
    size_bytes: int
    encrypted: bool = False


@dataclass(frozen=True)
class SplitTask:
    """Split configuration describing a named slice of pages."""

    name: str
    page_range: str = ""


@dataclass(frozen=True)
class CropMargins:
    """Margins, in PDF points, trimmed from each side of a page."""

    left: float = 0.0
    bottom: float = 0.0
    right: float = 0.0
    top: float = 0.0


@dataclass
class PdfResult:
    """Bytes produced by an operation plus the ignored range tokens."""

    data: bytes
    pages: List[int] = field(default_factory=list)
    ignored: List[IgnoredToken] = field(default_factory=list)


def open_pdf(data: bytes, *, password: str | None = None) -> PdfReader:
    """Open ``data`` as a PDF, refusing empty or unreadable documents."""

    try:
        reader = PdfReader(BytesIO(data))
        if reader.is_encrypted and password is not None:
            if not reader.decrypt(password):
                raise PdfPasswordError("Incorrect password")
        if len(reader.pages) == 0:
            raise UnreadablePdfError("PDF has no pages")
    except FileNotDecryptedError as exc:
        raise PdfPasswordError("PDF is password protected") from exc
    except PdfReadError as exc:
        raise UnreadablePdfError("Unable to read PDF") from exc
    return reader


def select_pages(
    expression: str | None, total_pages: int, *, default_all: bool
) -> PageRangeReport:
    """Apply caller policy on top of :func:`parse_page_range_report`.

    A blank expression selects every page when ``default_all`` is set and
    is rejected otherwise; a non-blank expression must select something.
    """

    if not expression or not expression.strip():
        if default_all:
            return PageRangeReport(pages=list(range(1, total_pages + 1)))
        raise EmptySelectionError("A page selection is required")
    report = parse_page_range_report(expression, total_pages)
    if not report.pages:
        raise EmptySelectionError(
            f"No valid pages selected (document has {total_pages} pages)",
            ignored=report.ignored,
        )
    return report


def _write(writer: PdfWriter) -> bytes:
    buf = BytesIO()
    writer.write(buf)
    return buf.getvalue()


def _copy_metadata(reader: PdfReader, writer: PdfWriter) -> None:
    metadata = reader.metadata
    if not metadata:
        return
    writer.add_metadata({str(key): str(metadata[key]) for key in metadata})


def merge_pdfs(specs: Iterable[MergeSpec]) -> PdfResult:
    writer = PdfWriter()
    ignored: list[IgnoredToken] = []
    for spec in specs:
        reader = open_pdf(spec.data)
        report = select_pages(spec.page_range, len(reader.pages), default_all=True)
        ignored.extend(report.ignored)
        for page_num in report.pages:
            writer.add_page(reader.pages[page_num - 1])
    return PdfResult(data=_write(writer), ignored=ignored)


def split_pdf(stream: bytes) -> List[bytes]:
    reader = open_pdf(stream)
    outputs: List[bytes] = []
    for page in reader.pages:
        writer = PdfWriter()
        writer.add_page(page)
        outputs.append(_write(writer))
    return outputs


def split_pdf_custom(stream: bytes, tasks: Iterable[SplitTask]) -> List[tuple[str, bytes]]:
    reader = open_pdf(stream)
    total_pages = len(reader.pages)
    outputs: List[tuple[str, bytes]] = []
    for task in tasks:
        report = select_pages(task.page_range, total_pages, default_all=False)
        writer = PdfWriter()
        for page_num in report.pages:
            writer.add_page(reader.pages[page_num - 1])
        outputs.append((task.name, _write(writer)))
    return outputs


def extract_pages(stream: bytes, expression: str) -> PdfResult:
    """Copy the selected pages into a new document."""

    reader = open_pdf(stream)
    report = select_pages(expression, len(reader.pages), default_all=False)
    writer = PdfWriter()
    for page_num in report.pages:
        writer.add_page(reader.pages[page_num - 1])
    return PdfResult(data=_write(writer), pages=report.pages, ignored=report.ignored)


def compress_pdf(stream: bytes) -> bytes:
    reader = open_pdf(stream)
    writer = PdfWriter()
    for page in reader.pages:
        added = writer.add_page(page)
        added.compress_content_streams()
    _copy_metadata(reader, writer)
    return _write(writer)


def rotate_pages(stream: bytes, expression: str | None, angle: int) -> PdfResult:
    if angle % 90 != 0:
        raise PdfToolError("Rotation angle must be a multiple of 90")
    reader = open_pdf(stream)
    report = select_pages(expression, len(reader.pages), default_all=True)
    selected = set(report.pages)
    writer = PdfWriter()
    for index, page in enumerate(reader.pages, start=1):
        if index in selected and angle % 360:
            page.rotate(angle)
        writer.add_page(page)
    _copy_metadata(reader, writer)
    return PdfResult(data=_write(writer), pages=report.pages, ignored=report.ignored)


def remove_pages(stream: bytes, expression: str) -> PdfResult:
    reader = open_pdf(stream)
    total_pages = len(reader.pages)
    report = select_pages(expression, total_pages, default_all=False)
    removed = set(report.pages)
    if len(removed) >= total_pages:
        raise PdfToolError("Cannot remove every page of the document")
    writer = PdfWriter()
    for index, page in enumerate(reader.pages, start=1):
        if index not in removed:
            writer.add_page(page)
    _copy_metadata(reader, writer)
    return PdfResult(data=_write(writer), pages=report.pages, ignored=report.ignored)


def reorder_pages(stream: bytes, order: str) -> PdfResult:
    """Rebuild the document following ``order`` (see :func:`parse_page_sequence`)."""

    reader = open_pdf(stream)
    sequence = parse_page_sequence(order, len(reader.pages))
    writer = PdfWriter()
    for page_num in sequence:
        writer.add_page(reader.pages[page_num - 1])
    _copy_metadata(reader, writer)
    return PdfResult(data=_write(writer), pages=sequence)


def crop_pages(stream: bytes, expression: str | None, margins: CropMargins) -> PdfResult:
    reader = open_pdf(stream)
    report = select_pages(expression, len(reader.pages), default_all=True)
    selected = set(report.pages)
    writer = PdfWriter()
    for index, page in enumerate(reader.pages, start=1):
        if index in selected:
            box = page.cropbox
            left = float(box.left) + margins.left
            bottom = float(box.bottom) + margins.bottom
            right = float(box.right) - margins.right
            top = float(box.top) - margins.top
            if right <= left or top <= bottom:
                raise PdfToolError(f"Crop margins leave no visible area on page {index}")
            page.cropbox = RectangleObject((left, bottom, right, top))
        writer.add_page(page)
    _copy_metadata(reader, writer)
    return PdfResult(data=_write(writer), pages=report.pages, ignored=report.ignored)


def protect_pdf(stream: bytes, password: str) -> bytes:
    reader = open_pdf(stream)
    if reader.is_encrypted:
        raise PdfToolError("PDF is already password protected")
    writer = PdfWriter()
    for page in reader.pages:
        writer.add_page(page)
    _copy_metadata(reader, writer)
    writer.encrypt(user_password=password, owner_password=None, use_128bit=True)
    return _write(writer)


def unlock_pdf(stream: bytes, password: str) -> bytes:
    try:
        reader = PdfReader(BytesIO(stream))
    except PdfReadError as exc:
        raise UnreadablePdfError("Unable to read PDF") from exc
    if not reader.is_encrypted:
        raise PdfNotEncryptedError("PDF is not password protected")
    reader = open_pdf(stream, password=password)
    writer = PdfWriter()
    for page in reader.pages:
        writer.add_page(page)
    return _write(writer)


def pdf_metadata(data: bytes) -> PdfMetadata:
    try:
        reader = PdfReader(BytesIO(data))
    except PdfReadError as exc:
        raise UnreadablePdfError("Unable to read PDF") from exc
    if reader.is_encrypted:
        # Page counts of locked files are not readable without the password.
        try:
            pages = len(reader.pages)
        except PdfReadError:
            pages = 0
        return PdfMetadata(pages=pages, size_bytes=len(data), encrypted=True)
    return PdfMetadata(pages=len(reader.pages), size_bytes=len(data))


__all__ = [
    "CropMargins",
    "EmptySelectionError",
    "IgnoredToken",
    "MergeSpec",
    "PageRangeReport",
    "PageSequenceError",
    "PdfMetadata",
    "PdfNotEncryptedError",
    "PdfPasswordError",
    "PdfResult",
    "PdfToolError",
    "SplitTask",
    "UnreadablePdfError",
    "compress_pdf",
    "crop_pages",
    "extract_pages",
    "merge_pdfs",
    "open_pdf",
    "parse_leading_int",
    "parse_page_range",
    "parse_page_range_report",
    "parse_page_sequence",
    "pdf_metadata",
    "protect_pdf",
    "reorder_pages",
    "remove_pages",
    "rotate_pages",
    "select_pages",
    "split_pdf",
    "split_pdf_custom",
    "unlock_pdf",
]
