"""Utility functions and helpers for the PaperMind pipeline.

This package provides logging and progress tracking utilities that integrate
with Hydra's logging setup and support unicode/emoji for user-friendly
terminal output.
"""

from .logging import log_error, log_item_start, log_tick_summary, setup_logging
from .progress import ProgressBar

__all__ = [
    "setup_logging",
    "log_item_start",
    "log_error",
    "log_tick_summary",
    "ProgressBar",
]
