"""
BatchProcessor orchestrates one watch tick over the drive inbox.

This module provides the BatchProcessor class which coordinates a tick:
listing the inbox folder, selecting the PDF candidates, taking a bounded batch
and running each item through ItemProcessor, then aggregating the per-item
results into a TickReport. Individual item failures never stop the batch; only
a missing credential or a failed listing aborts the tick, before any document
is touched.

Example usage:
    >>> from papermind_pipeline.orchestration.pipeline import BatchProcessor
    >>>
    >>> batch_processor = BatchProcessor(app_config, extractor, generator, exporter)
    >>> report = batch_processor.run_tick(access_token)
    >>> print(f"found={report.found} processed={report.processed} "
    ...       f"success={report.success}")
"""

from collections.abc import Callable
import logging

from papermind_pipeline.clients.drive_client import DriveClient
from papermind_pipeline.clients.exceptions import DriveClientError
from papermind_pipeline.clients.notion_client import NotionExporter
from papermind_pipeline.clients.text_extractor import TextExtractor
from papermind_pipeline.domain.config import AppConfig
from papermind_pipeline.domain.metadata_generator import MetadataGenerator
from papermind_pipeline.domain.models import (
    DriveItem,
    ErrorKind,
    ProcessingResult,
    TickReport,
)
from papermind_pipeline.orchestration.processor import ItemProcessor
from papermind_pipeline.orchestration.tabular_appender import TabularAppender
from papermind_pipeline.utils.logging import (
    log_completion,
    log_inbox_summary,
    log_item_start,
    log_startup,
)

EMPTY_INBOX_MESSAGE = "No PDF in the inbox folder"

DriveClientFactory = Callable[..., DriveClient]


class TickAbortedError(Exception):
    """A tick stopped before touching any document.

    Attributes:
        kind: ``missing_credential`` or ``list_failed``.
        original_exception: Underlying client error, when there is one.
    """

    def __init__(self, kind: str, original_exception: Exception | None = None) -> None:
        super().__init__(kind)
        self.kind = kind
        self.original_exception = original_exception


class BatchProcessor:
    """Runs watch ticks: list, select, process a bounded batch, report.

    The processor holds no credential. Each tick builds a DriveClient bound to
    the token supplied for that tick, together with the ItemProcessor and the
    TabularAppender that use it.

    Attributes:
        config: Application configuration.
        extractor: Text extractor shared by all ticks.
        generator: Metadata generator shared by all ticks.
        exporter: Optional knowledge-base exporter (owns its schema cache).
        drive_client_factory: Callable building a DriveClient from
            ``(drive_config, access_token)``.
        logger: Logger instance for this processor.
    """

    def __init__(
        self,
        config: AppConfig,
        extractor: TextExtractor,
        generator: MetadataGenerator,
        exporter: NotionExporter | None = None,
        drive_client_factory: DriveClientFactory = DriveClient,
    ) -> None:
        self.config = config
        self.extractor = extractor
        self.generator = generator
        self.exporter = exporter
        self.drive_client_factory = drive_client_factory
        self.logger = logging.getLogger(__name__)

    def is_candidate(self, item: DriveItem) -> bool:
        """True for files whose name ends with the document extension."""
        return item.is_file and item.name.lower().endswith(
            self.config.processing.document_extension
        )

    def run_tick(
        self,
        access_token: str | None,
        on_item: Callable[[int, int, ProcessingResult], None] | None = None,
    ) -> TickReport:
        """Run one tick with the caller's drive token.

        Args:
            access_token: Bearer token for the drive; empty or None aborts.
            on_item: Optional callback invoked after each processed item with
                ``(item_number, batch_total, result)``.

        Returns:
            TickReport with counts and the ordered per-item results.

        Raises:
            TickAbortedError: ``missing_credential`` when no token is given,
                ``list_failed`` when the inbox cannot be listed.
        """
        if not access_token or not access_token.strip():
            raise TickAbortedError(ErrorKind.MISSING_CREDENTIAL)

        inbox = self.config.drive.inbox_path
        log_startup(self.logger, f"Starting tick on {inbox}")

        try:
            drive_client = self.drive_client_factory(self.config.drive, access_token)
            listing = drive_client.list_children(inbox)
        except DriveClientError as e:
            self.logger.error(f"Listing {inbox} failed: {e}")
            raise TickAbortedError(ErrorKind.LIST_FAILED, original_exception=e) from e

        candidates = [item for item in listing if self.is_candidate(item)]
        if not candidates:
            self.logger.info(EMPTY_INBOX_MESSAGE)
            return TickReport(found=0, processed=0, success=0, message=EMPTY_INBOX_MESSAGE)

        batch = candidates[: self.config.processing.batch_size]
        log_inbox_summary(self.logger, len(candidates), len(batch), inbox)

        processor = ItemProcessor(
            drive_client=drive_client,
            extractor=self.extractor,
            generator=self.generator,
            appender=TabularAppender(drive_client, self.config.workbook),
            exporter=self.exporter,
            config=self.config,
        )

        results: list[ProcessingResult] = []
        for index, item in enumerate(batch, start=1):
            log_item_start(self.logger, item.name, index, len(batch))
            result = processor.process_item(item)
            results.append(result)
            if on_item is not None:
                on_item(index, len(batch), result)

        report = TickReport(
            found=len(candidates),
            processed=len(results),
            success=sum(1 for result in results if result.ok),
            results=results,
        )
        log_completion(self.logger)
        return report
