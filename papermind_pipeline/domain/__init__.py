"""Domain models and configuration schemas

This module provides the domain layer for the PaperMind pipeline, including
type-safe configuration schemas, domain models, metadata generation and the
register workbook codec.
"""

from .config import (
    AppConfig,
    ConfigError,
    DriveConfig,
    ExtractionConfig,
    MetadataConfig,
    MistralConfig,
    NotionConfig,
    NotionPropertiesConfig,
    ProcessingConfig,
    ServerConfig,
    UploadConfig,
    WorkbookConfig,
    build_app_config,
    load_app_config,
)
from .metadata_generator import MetadataGenerator
from .models import (
    DocumentMetadata,
    DriveItem,
    ErrorKind,
    ExportResult,
    ProcessingResult,
    TickReport,
)

__all__ = [
    "AppConfig",
    "ConfigError",
    "DriveConfig",
    "ExtractionConfig",
    "MetadataConfig",
    "MistralConfig",
    "NotionConfig",
    "NotionPropertiesConfig",
    "ProcessingConfig",
    "ServerConfig",
    "UploadConfig",
    "WorkbookConfig",
    "build_app_config",
    "load_app_config",
    "MetadataGenerator",
    "DocumentMetadata",
    "DriveItem",
    "ErrorKind",
    "ExportResult",
    "ProcessingResult",
    "TickReport",
]
