"""
ItemProcessor runs one inbox document through the complete pipeline.

This module provides the ItemProcessor class which handles the end-to-end
processing of a single drive item: relocating it to the Processed folder →
downloading it → extracting its text → generating metadata → exporting the
record to the knowledge base and the register workbook.

The item is relocated before anything else is attempted, so a document whose
download or extraction fails stays in the Processed folder and is not picked
up again by later ticks. With ``processing.move_failures_to_errors`` enabled,
such documents are relocated once more into the Errors folder.

Example usage:
    >>> from papermind_pipeline.orchestration.processor import ItemProcessor
    >>>
    >>> processor = ItemProcessor(
    ...     drive_client, extractor, generator, appender, exporter, app_config
    ... )
    >>> result = processor.process_item(item)
    >>> print(f"ok={result.ok} title={result.title}")
"""

import logging

from papermind_pipeline.clients.drive_client import DriveClient
from papermind_pipeline.clients.exceptions import DriveAPIError, DriveClientError
from papermind_pipeline.clients.notion_client import NotionExporter
from papermind_pipeline.clients.text_extractor import TextExtractor
from papermind_pipeline.domain.config import AppConfig
from papermind_pipeline.domain.metadata_generator import MetadataGenerator
from papermind_pipeline.domain.models import (
    DocumentMetadata,
    DriveItem,
    ErrorKind,
    ProcessingResult,
)
from papermind_pipeline.orchestration.tabular_appender import TabularAppender
from papermind_pipeline.utils.logging import (
    log_error,
    log_export_failure,
    log_item_success,
)


class ItemProcessor:
    """Processes one inbox document through relocation, extraction and export.

    ``process_item`` never raises: every failure is captured in the returned
    ProcessingResult so that one document cannot abort the batch.

    Attributes:
        drive_client: Drive client bound to the caller's token.
        extractor: Text extractor for the downloaded bytes.
        generator: Metadata generator (never fails).
        appender: Register workbook appender.
        exporter: Optional knowledge-base exporter; None skips the step.
        config: Application configuration (folder paths, remediation flag).
        logger: Logger instance for this processor.
    """

    def __init__(
        self,
        drive_client: DriveClient,
        extractor: TextExtractor,
        generator: MetadataGenerator,
        appender: TabularAppender,
        exporter: NotionExporter | None,
        config: AppConfig,
    ) -> None:
        self.drive_client = drive_client
        self.extractor = extractor
        self.generator = generator
        self.appender = appender
        self.exporter = exporter
        self.config = config
        self.logger = logging.getLogger(__name__)

    def process_item(self, item: DriveItem) -> ProcessingResult:
        """Process a single inbox document.

        Args:
            item: Candidate drive item from the inbox listing.

        Returns:
            ProcessingResult with ``ok=True``, the item id and the derived title,
            or ``ok=False`` with one of ``move_failed``,
            ``download_failed_{status}`` or ``exception``.
        """
        context = {"item_id": item.id, "item_name": item.name, "step": "move"}

        try:
            moved = self.drive_client.move_item(
                item.id, self.config.drive.processed_path, new_name=item.name
            )
        except DriveClientError as e:
            log_error(self.logger, e, context)
            return ProcessingResult(ok=False, file=item.name, error=ErrorKind.MOVE_FAILED)

        try:
            context["step"] = "download"
            try:
                data = self.drive_client.download(item.id)
            except DriveAPIError as e:
                log_error(self.logger, e, context)
                return self._failed(item, ErrorKind.download_failed(e.status_code))

            context["step"] = "extract"
            text = self.extractor.extract_text(data, item.name)
            self.logger.debug(
                f"Extracted {len(text)} characters from {item.name} "
                f"({self.extractor.provider})"
            )

            context["step"] = "metadata"
            meta = self.generator.generate(
                text, item.name, file_url=moved.web_url or item.web_url
            )

            context["step"] = "export"
            self._export(item, meta)
        except Exception as e:
            log_error(self.logger, e, context)
            return self._failed(item, ErrorKind.EXCEPTION)

        log_item_success(self.logger, item.name, meta.title)
        return ProcessingResult(ok=True, file=item.name, id=item.id, title=meta.title)

    def _export(self, item: DriveItem, meta: DocumentMetadata) -> None:
        """Run the best-effort export steps and log their failures."""
        if self.exporter is not None:
            result = self.exporter.export(meta)
            if not result.ok:
                log_export_failure(self.logger, "notion", item.name, result)

        result = self.appender.append_metadata(meta)
        if not result.ok:
            log_export_failure(self.logger, "workbook", item.name, result)

    def _failed(self, item: DriveItem, error: str) -> ProcessingResult:
        """Build a failure result after relocation, applying the Errors-folder policy."""
        if self.config.processing.move_failures_to_errors:
            try:
                self.drive_client.move_item(
                    item.id, self.config.drive.errors_path, new_name=item.name
                )
                self.logger.info(
                    f"Moved {item.name} to {self.config.drive.errors_path} after {error}"
                )
            except DriveClientError as e:
                self.logger.warning(
                    f"Could not move {item.name} to {self.config.drive.errors_path}: {e}"
                )
        return ProcessingResult(ok=False, file=item.name, error=error)
