"""Logging utilities for the PaperMind pipeline.

This module provides structured logging functions that integrate with Hydra's
logging system and support unicode/emoji for user-friendly terminal output.
"""

import logging
import os
import sys

from tabulate import tabulate

from papermind_pipeline.domain.models import ExportResult, TickReport

LOG_FORMAT = "[%(asctime)s][%(name)s][%(levelname)s] - %(message)s"


def _supports_unicode() -> bool:
    """Detect if terminal supports unicode/emoji.

    Checks system encoding and environment variables to determine if the
    terminal can display unicode characters and emoji.

    Returns:
        True if terminal supports unicode, False otherwise
    """
    # Check for explicit ASCII-only mode
    if os.environ.get("FORCE_ASCII") == "1":
        return False

    encoding = getattr(sys.stdout, "encoding", None)
    if encoding is None:
        return False

    unicode_encodings = {"utf-8", "utf-16", "utf-32", "utf-8-sig"}
    return encoding.lower() in unicode_encodings


def _format_with_emoji(message: str, emoji: str, fallback: str) -> str:
    """Format message with emoji or fallback text.

    Args:
        message: The message text to format
        emoji: Unicode emoji character to prepend
        fallback: ASCII fallback text to use if unicode not supported

    Returns:
        Formatted message with emoji or fallback
    """
    if _supports_unicode():
        return f"{emoji} {message}"
    else:
        return f"{fallback} {message}"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Initialize logging for runs that Hydra does not configure.

    Hydra installs handlers when ``@hydra.main()`` is used. The web server
    composes its configuration without that decorator, so it calls this to get
    the same line format on stderr. Existing handlers are left untouched.

    Returns:
        The package logger.

    Example:
        >>> logger = setup_logging()
        >>> logger.info("Server started")
    """
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    return logging.getLogger("papermind_pipeline")


def log_startup(logger: logging.Logger, message: str) -> None:
    """Log a startup message.

    Example:
        >>> log_startup(logger, "Starting PaperMind tick")
        # Output: "🚀 Starting PaperMind tick" or "[START] Starting PaperMind tick"
    """
    logger.info(_format_with_emoji(message, "🚀", "[START]"))


def log_inbox_summary(logger: logging.Logger, found: int, batch: int, folder: str) -> None:
    """Log how many candidates the inbox holds and how many this tick takes."""
    message = f"Found {found} document(s) in {folder}; processing {batch} this tick"
    logger.info(_format_with_emoji(message, "📋", "[INBOX]"))


def log_item_start(
    logger: logging.Logger, item_name: str, item_number: int, total_items: int
) -> None:
    """Log the start of processing an item.

    Args:
        logger: Logger instance to use for logging
        item_name: File name of the item being processed
        item_number: Current item number (1-indexed)
        total_items: Total number of items in this batch

    Example:
        >>> log_item_start(logger, "paper.pdf", 1, 2)
        # Output: "📄 Processing [1/2]: \"paper.pdf\""
    """
    if _supports_unicode():
        message = f'📄 Processing [{item_number}/{total_items}]: "{item_name}"'
    else:
        message = f'[*] Processing [{item_number}/{total_items}]: "{item_name}"'

    logger.info(message)


def log_item_success(logger: logging.Logger, item_name: str, title: str) -> None:
    message = f'Recorded "{item_name}" as "{title}"'
    logger.info(_format_with_emoji(message, "✓", "[OK]"))


def log_export_failure(
    logger: logging.Logger, target: str, item_name: str, result: ExportResult
) -> None:
    """Log a failed best-effort export step.

    Export failures never change an item's result; this is their only trace.

    Args:
        logger: Logger instance to use for logging
        target: Export target label (e.g. "notion", "workbook")
        item_name: File name of the document being exported
        result: The failed ExportResult
    """
    message = f'{target} export failed for "{item_name}": {result.error}'
    logger.warning(_format_with_emoji(message, "⚠️", "[WARN]"))


def log_completion(logger: logging.Logger) -> None:
    """Log tick completion.

    Example:
        >>> log_completion(logger)
        # Output: "✅ Tick completed" or "[DONE] Tick completed"
    """
    logger.info(_format_with_emoji("Tick completed", "✅", "[DONE]"))


def log_error(logger: logging.Logger, error: Exception, context: dict) -> None:
    """Log an error with structured context information.

    Formats a detailed error message including the exception details and
    relevant context (item_id, step, etc.) for debugging.

    Args:
        logger: Logger instance to use for logging
        error: Exception that was raised
        context: Dictionary containing context information such as:
            - item_id: Drive item id
            - item_name: File name of the item being processed
            - step: Processing step where error occurred

    Example:
        >>> context = {"item_id": "01ABC", "item_name": "paper.pdf", "step": "extract"}
        >>> log_error(logger, ValueError("Invalid format"), context)
    """
    item_name = context.get("item_name", "Unknown")
    item_id = context.get("item_id", "Unknown")
    step = context.get("step", "Unknown")
    error_type = type(error).__name__

    if _supports_unicode():
        header = f'❌ Error processing "{item_name}" ({item_id})'
    else:
        header = f'[ERROR] Error processing "{item_name}" ({item_id})'

    logger.error(f"{header}\n   Step: {step}\n   Error: {error_type}: {error}")
    # Include full traceback only when in an active exception context
    if sys.exc_info()[0] is not None:
        logger.exception("Full traceback:")


def log_tick_summary(logger: logging.Logger, report: TickReport) -> None:
    """Log a per-item summary table for a finished tick.

    Example:
        >>> log_tick_summary(logger, report)
        # Output: counts line followed by a File/Status/Title table
    """
    logger.info(
        f"Found: {report.found}  Processed: {report.processed}  "
        f"Success: {report.success}  Failed: {report.failed}"
    )
    if report.message:
        logger.info(report.message)
    if not report.results:
        return

    table_data = []
    for result in report.results:
        title = result.title or ""
        if len(title) > 40:
            title = title[:40] + "..."
        status = "ok" if result.ok else result.error
        table_data.append([result.file, status, title])

    tablefmt = "grid" if _supports_unicode() else "simple"
    logger.info("")
    logger.info("Summary:")
    logger.info(tabulate(table_data, headers=["File", "Status", "Title"], tablefmt=tablefmt))
