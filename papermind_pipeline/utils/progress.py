"""Progress bar utilities for the PaperMind pipeline.

This module provides a ProgressBar class that wraps tqdm for consistent
progress display of CLI ticks and uploads.
"""

from tqdm import tqdm

from papermind_pipeline.utils.logging import _supports_unicode


class ProgressBar:
    """Progress bar wrapper around tqdm for consistent styling.

    Provides a context manager interface for progress tracking with automatic
    cleanup and graceful unicode handling.

    Args:
        total: Total number of units to process
        desc: Description text to display with the progress bar
        unit: Unit label (e.g., "document", "B")

    Example:
        >>> with ProgressBar(total=2, desc="Processing", unit="document") as pbar:
        ...     for item in batch:
        ...         pbar.update(1)
    """

    def __init__(self, total: int, desc: str, unit: str = "item") -> None:
        self.total = total
        self.desc = desc
        self.unit = unit
        self._pbar: tqdm | None = None

    def __enter__(self) -> "ProgressBar":
        bar_format = "{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]"
        self._pbar = tqdm(
            total=self.total,
            desc=self.desc,
            unit=self.unit,
            ncols=80,
            bar_format=bar_format,
            ascii=not _supports_unicode(),
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def update(self, n: int = 1) -> None:
        """Advance the bar by ``n`` units."""
        if self._pbar is not None:
            self._pbar.update(n)

    def set_total(self, total: int) -> None:
        """Change the expected total once it is known (e.g. after listing)."""
        self.total = total
        if self._pbar is not None and self._pbar.total != total:
            self._pbar.total = total
            self._pbar.refresh()

    def set_postfix(self, postfix: dict) -> None:
        """Show ``key=value`` pairs after the bar."""
        if self._pbar is not None:
            self._pbar.set_postfix(postfix)

    def close(self) -> None:
        """Close and release the underlying tqdm bar."""
        if self._pbar is not None:
            self._pbar.close()
            self._pbar = None
