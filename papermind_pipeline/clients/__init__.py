"""External API clients (Microsoft Graph, Mistral, Notion).

This module provides client wrappers for the external services used by the
pipeline: the Graph drive client and its chunked uploader, the text extractors
(local PyMuPDF and Mistral OCR), the Mistral metadata client and the Notion
exporter, along with custom exception classes for error handling.
"""

from .chunked_uploader import ChunkedUploader
from .drive_client import DriveClient
from .exceptions import (
    DriveAPIError,
    DriveAuthError,
    DriveClientError,
    DriveItemNotFoundError,
    MetadataClientError,
    NotionAPIError,
    NotionClientError,
    NotionSchemaError,
    PipelineClientError,
    TextExtractionError,
    UploadSessionError,
)
from .mistral_client import MistralClient
from .notion_client import NotionExporter, SchemaCache
from .text_extractor import PyMuPDFTextExtractor, TextExtractor

__all__ = [
    "ChunkedUploader",
    "DriveClient",
    "MistralClient",
    "NotionExporter",
    "SchemaCache",
    "TextExtractor",
    "PyMuPDFTextExtractor",
    "PipelineClientError",
    "DriveClientError",
    "DriveAPIError",
    "DriveAuthError",
    "DriveItemNotFoundError",
    "UploadSessionError",
    "TextExtractionError",
    "MetadataClientError",
    "NotionClientError",
    "NotionAPIError",
    "NotionSchemaError",
]
