"""Command implementations for the PaperMind pipeline CLI.

This module contains the command functions behind ``command=tick``,
``command=status``, ``command=upload`` and ``command=serve``. They are called
from the main entry point after configuration validation.
"""

import logging
from pathlib import Path

from tabulate import tabulate

from papermind_pipeline.clients.chunked_uploader import ChunkedUploader
from papermind_pipeline.clients.exceptions import DriveClientError
from papermind_pipeline.domain.config import AppConfig, ConfigError
from papermind_pipeline.domain.models import ErrorKind, ProcessingResult, TickReport
from papermind_pipeline.orchestration.pipeline import BatchProcessor, TickAbortedError
from papermind_pipeline.utils.logging import (
    _format_with_emoji,
    _supports_unicode,
    log_tick_summary,
)
from papermind_pipeline.utils.progress import ProgressBar


def _determine_exit_code(report: TickReport) -> int:
    """Determine the appropriate exit code for a finished tick.

    Returns:
        Exit code: 0 for success, 1 for partial failure, 2 for complete failure
    """
    if report.failed == 0:
        return 0  # Success (an empty inbox is not an error)
    elif report.success > 0:
        return 1  # Partial failure
    else:
        return 2  # Complete failure


def tick_command(
    cfg: AppConfig, logger: logging.Logger, batch_processor: BatchProcessor
) -> int:
    """Run one tick with the token from ``MS_GRAPH_TOKEN``.

    Args:
        cfg: Application configuration object
        logger: Logger instance for logging messages
        batch_processor: Tick runner built from ``cfg``

    Returns:
        Exit code: 0 for success, 1 for partial failure, 2 for complete failure
        or a failed listing, 3 when no token is configured
    """
    with ProgressBar(total=cfg.processing.batch_size, desc="Processing", unit="document") as pbar:

        def on_item(index: int, total: int, result: ProcessingResult) -> None:
            pbar.set_total(total)
            pbar.update(1)
            pbar.set_postfix({"last": "ok" if result.ok else result.error})

        try:
            report = batch_processor.run_tick(cfg.drive.access_token, on_item=on_item)
        except TickAbortedError as e:
            if e.kind == ErrorKind.MISSING_CREDENTIAL:
                logger.error("No Graph token configured; set MS_GRAPH_TOKEN")
                return 3
            logger.error(f"Tick aborted: {e.kind}")
            return 2

    log_tick_summary(logger, report)
    return _determine_exit_code(report)


def status_command(
    cfg: AppConfig, logger: logging.Logger, batch_processor: BatchProcessor
) -> int:
    """Show the effective configuration and preview the next batch.

    The inbox is listed only when a token is configured; nothing is moved.

    Returns:
        Exit code: 0 for success, 2 if the inbox cannot be listed
    """
    settings = [
        ["Inbox", cfg.drive.inbox_path],
        ["Processed", cfg.drive.processed_path],
        ["Errors", cfg.drive.errors_path],
        ["Batch size", cfg.processing.batch_size],
        ["Move failures to Errors", cfg.processing.move_failures_to_errors],
        ["Text extraction", cfg.extraction.provider],
        ["Model metadata", "mistral" if cfg.mistral.enabled else "heuristic fallback"],
        ["Notion export", "enabled" if cfg.notion.enabled else "disabled"],
        ["Workbook", cfg.workbook.path],
    ]
    tablefmt = "grid" if _supports_unicode() else "simple"
    message = "Watch status (serverless: ticks are triggered externally)"
    logger.info(_format_with_emoji(message, "📋", "[STATUS]"))
    logger.info(tabulate(settings, headers=["Setting", "Value"], tablefmt=tablefmt))

    if not cfg.drive.access_token:
        logger.info("MS_GRAPH_TOKEN not set; skipping inbox preview")
        return 0

    try:
        drive_client = batch_processor.drive_client_factory(cfg.drive, cfg.drive.access_token)
        listing = drive_client.list_children(cfg.drive.inbox_path)
    except DriveClientError as e:
        logger.error(f"Listing {cfg.drive.inbox_path} failed: {e}")
        return 2

    candidates = [item for item in listing if batch_processor.is_candidate(item)]
    if not candidates:
        logger.info("No PDF in the inbox folder")
        return 0

    rows = [
        [item.name, "next tick" if index < cfg.processing.batch_size else "waiting"]
        for index, item in enumerate(candidates)
    ]
    logger.info(tabulate(rows, headers=["Document", "Batch"], tablefmt=tablefmt))
    return 0


def upload_command(
    cfg: AppConfig, logger: logging.Logger, batch_processor: BatchProcessor
) -> int:
    """Upload ``upload.file`` into ``upload.folder`` (default: the workbook folder).

    Raises:
        ConfigError: If no file is given, the file does not exist or no token
            is configured.

    Returns:
        Exit code: 0 for success, 2 if the upload fails
    """
    if not cfg.upload.file:
        raise ConfigError("command=upload requires upload.file=<path>")
    source = Path(cfg.upload.file).expanduser()
    if not source.is_file():
        raise ConfigError(f"upload.file does not exist: {source}")
    if not cfg.drive.access_token:
        raise ConfigError("command=upload requires MS_GRAPH_TOKEN")

    folder = (cfg.upload.folder or cfg.workbook.folder).strip("/")
    target_path = f"{folder}/{source.name}"
    data = source.read_bytes()

    try:
        drive_client = batch_processor.drive_client_factory(cfg.drive, cfg.drive.access_token)
        drive_client.ensure_folder(folder)
        item = ChunkedUploader(drive_client, cfg.upload).upload(target_path, data)
    except DriveClientError as e:
        logger.error(f"Upload of {source} failed: {e}")
        return 2

    message = f"Uploaded {source.name} ({len(data) / (1024 * 1024):.1f} MB) to {target_path}"
    logger.info(_format_with_emoji(message, "✓", "[OK]"))
    if item.get("webUrl"):
        logger.info(f"Link: {item['webUrl']}")
    return 0


def serve_command(
    cfg: AppConfig, logger: logging.Logger, batch_processor: BatchProcessor
) -> int:
    """Run the Flask app with the development server."""
    from papermind_pipeline.web.app import create_app

    app = create_app(cfg, batch_processor=batch_processor)
    logger.info(f"Serving on http://{cfg.server.host}:{cfg.server.port}")
    app.run(host=cfg.server.host, port=cfg.server.port)
    return 0
