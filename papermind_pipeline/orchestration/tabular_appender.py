"""
Read-modify-write recorder for the document register workbook.

The appender fetches the workbook from the drive (or synthesizes one with
only the header), appends one row and writes the whole file back. There is no
optimistic-concurrency check: two overlapping ticks can race and the last
writer wins.
"""

from collections.abc import Sequence
import logging
from typing import Any

from papermind_pipeline.clients.drive_client import DriveClient
from papermind_pipeline.clients.exceptions import DriveClientError
from papermind_pipeline.domain.config import WorkbookConfig
from papermind_pipeline.domain.models import DocumentMetadata, ExportResult, utc_now_iso
from papermind_pipeline.domain.workbook import HEADER, append_row, create_workbook, metadata_row

logger = logging.getLogger(__name__)

WORKBOOK_FAILED = "workbook_failed"


class TabularAppender:
    """Append rows to the register workbook stored in the drive.

    Example:
        >>> appender = TabularAppender(drive_client, WorkbookConfig())
        >>> result = appender.append_metadata(meta)
        >>> result.ok
        True
    """

    def __init__(self, drive_client: DriveClient, config: WorkbookConfig) -> None:
        self.drive_client = drive_client
        self.config = config

    @property
    def path(self) -> str:
        return self.config.path

    def append(self, row: Sequence[Any]) -> ExportResult:
        """Append one row to the end of the first sheet.

        Args:
            row: Cell values, in header order.

        Returns:
            ExportResult carrying the workbook item id, or the failure kind.
            Drive and codec errors are reported, not raised.
        """
        try:
            existing = self.drive_client.get_content(self.path)
            if existing is None:
                logger.info(f"Workbook {self.path} not found; creating it with header row")
                existing = create_workbook(HEADER)

            updated = append_row(existing, row)
            item = self.drive_client.put_content(self.path, updated)
        except DriveClientError as e:
            logger.debug(f"Workbook append to {self.path} failed: {e}")
            return ExportResult.failure(WORKBOOK_FAILED)
        except Exception as e:
            # openpyxl raises a variety of errors for corrupt or foreign files
            logger.debug(f"Workbook {self.path} could not be updated: {e}")
            return ExportResult.failure(WORKBOOK_FAILED)

        return ExportResult.success(item.id or None)

    def append_metadata(
        self, meta: DocumentMetadata, created_at: str | None = None
    ) -> ExportResult:
        """Append the register row for a document."""
        return self.append(metadata_row(meta, created_at or utc_now_iso()))
