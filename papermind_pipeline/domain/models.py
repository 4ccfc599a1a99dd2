"""
Domain models for the PaperMind pipeline.

This module defines the data structures that flow through a watch tick: the
drive items found in the inbox, the bibliographic record derived from each
document, the per-item processing outcome and the aggregate tick report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


class ErrorKind:
    """Error kinds reported by the tick and by its per-item results."""

    MISSING_CREDENTIAL = "missing_credential"
    LIST_FAILED = "list_failed"
    MOVE_FAILED = "move_failed"
    EXCEPTION = "exception"

    @staticmethod
    def download_failed(status_code: int) -> str:
        """Per-item error kind for a failed download with the remote status."""
        return f"download_failed_{status_code}"


@dataclass(frozen=True)
class DriveItem:
    """A file or folder node in the remote drive.

    Identity is ``id``; ``name`` is used only for classification and display.
    Items are created by the drive and only ever read by the pipeline.
    """

    id: str
    """Opaque drive item identifier."""

    name: str
    """Item name including extension."""

    web_url: str | None = None
    """Browser link to the item, when the drive provides one."""

    is_file: bool = False
    """True when the drive reports a file facet for the item."""

    is_folder: bool = False
    """True when the drive reports a folder facet for the item."""

    @classmethod
    def from_graph(cls, payload: dict[str, Any]) -> DriveItem:
        """Build a DriveItem from a Microsoft Graph driveItem resource."""
        return cls(
            id=str(payload.get("id", "")),
            name=str(payload.get("name", "")),
            web_url=payload.get("webUrl"),
            is_file="file" in payload,
            is_folder="folder" in payload,
        )


@dataclass
class DocumentMetadata:
    """Structured bibliographic record derived from one document.

    Every field defaults to an empty string or an empty list so consumers
    (the workbook row builder and the knowledge-base exporter) never need to
    branch on missing values.
    """

    title: str = ""
    authors: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    abstract: str = ""
    conclusion: str = ""
    file_name: str = ""
    file_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the JSON field names of the HTTP API."""
        return {
            "title": self.title,
            "authors": list(self.authors),
            "keywords": list(self.keywords),
            "abstract": self.abstract,
            "conclusion": self.conclusion,
            "fileName": self.file_name,
            "fileUrl": self.file_url,
        }


@dataclass(frozen=True)
class ProcessingResult:
    """Outcome of one attempted inbox item.

    Created once by the item processor, never mutated, returned in the tick
    report and then discarded.
    """

    ok: bool
    file: str
    id: str | None = None
    title: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting fields that are not set."""
        payload: dict[str, Any] = {"ok": self.ok, "file": self.file}
        if self.id is not None:
            payload["id"] = self.id
        if self.title is not None:
            payload["title"] = self.title
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class ExportResult:
    """Result of a best-effort export step (knowledge base or workbook).

    Export steps return this instead of raising so the orchestrator decides
    how failures are logged.
    """

    ok: bool
    resource_id: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, resource_id: str | None = None) -> ExportResult:
        return cls(ok=True, resource_id=resource_id)

    @classmethod
    def failure(cls, error: str) -> ExportResult:
        return cls(ok=False, error=error)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


@dataclass
class TickReport:
    """Aggregate report returned by one watch tick."""

    found: int
    """Number of candidate documents in the inbox."""

    processed: int
    """Number of candidates attempted in this tick."""

    success: int
    """Number of attempted candidates whose result is ok."""

    results: list[ProcessingResult] = field(default_factory=list)
    """Per-item results in processing order."""

    when: str = field(default_factory=utc_now_iso)
    """Completion timestamp (ISO-8601, UTC)."""

    message: str | None = None
    """Informational message, set when the inbox has no candidates."""

    @property
    def failed(self) -> int:
        return self.processed - self.success

    def to_dict(self) -> dict[str, Any]:
        """Serialize as the tick endpoint's JSON response body."""
        payload: dict[str, Any] = {
            "ok": True,
            "found": self.found,
            "processed": self.processed,
            "success": self.success,
            "results": [result.to_dict() for result in self.results],
            "when": self.when,
        }
        if self.message is not None:
            payload["message"] = self.message
        return payload
