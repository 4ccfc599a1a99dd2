"""Tick orchestration: batch selection, per-item processing and workbook recording"""

from papermind_pipeline.orchestration.pipeline import BatchProcessor, TickAbortedError
from papermind_pipeline.orchestration.processor import ItemProcessor
from papermind_pipeline.orchestration.tabular_appender import TabularAppender

__all__ = ["BatchProcessor", "TickAbortedError", "ItemProcessor", "TabularAppender"]
