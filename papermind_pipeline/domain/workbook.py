"""
In-memory xlsx codec for the document register.

The register is a single workbook whose first sheet starts with a fixed
header row followed by one row per recorded document. Rows are only ever
appended; nothing is reordered or deduplicated.
"""

from collections.abc import Sequence
from io import BytesIO
from typing import Any

from openpyxl import Workbook, load_workbook

from .models import DocumentMetadata

HEADER = ("Title", "Authors", "Keywords", "Summary", "Conclusion", "PdfUrl", "CreatedAt")
DEFAULT_SHEET_NAME = "Sheet1"
LIST_SEPARATOR = "; "

# Excel refuses cells longer than this
MAX_CELL_CHARS = 32767


def _to_bytes(workbook: Workbook) -> bytes:
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def create_workbook(header: Sequence[str] = HEADER) -> bytes:
    """Serialize a new workbook holding only the header row."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = DEFAULT_SHEET_NAME
    sheet.append(list(header))
    return _to_bytes(workbook)


def append_row(existing: bytes, row: Sequence[Any]) -> bytes:
    """Append ``row`` after the last row of the first sheet and re-serialize.

    Args:
        existing: Current workbook bytes.
        row: Cell values for the new row.

    Returns:
        The updated workbook bytes.
    """
    workbook = load_workbook(BytesIO(existing))
    if workbook.worksheets:
        sheet = workbook.worksheets[0]
    else:
        sheet = workbook.create_sheet(DEFAULT_SHEET_NAME)
    sheet.append(list(row))
    return _to_bytes(workbook)


def read_rows(data: bytes) -> list[tuple[Any, ...]]:
    """Return every row of the first sheet, header included."""
    workbook = load_workbook(BytesIO(data), read_only=True)
    try:
        if not workbook.worksheets:
            return []
        return [tuple(row) for row in workbook.worksheets[0].iter_rows(values_only=True)]
    finally:
        workbook.close()


def _cell(value: str) -> str:
    return value[:MAX_CELL_CHARS]


def metadata_row(meta: DocumentMetadata, created_at: str) -> list[str]:
    """Build the register row for a document, in HEADER order."""
    return [
        _cell(meta.title),
        _cell(LIST_SEPARATOR.join(meta.authors)),
        _cell(LIST_SEPARATOR.join(meta.keywords)),
        _cell(meta.abstract),
        _cell(meta.conclusion),
        _cell(meta.file_url or ""),
        created_at,
    ]
