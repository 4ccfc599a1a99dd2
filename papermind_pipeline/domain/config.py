"""
Configuration dataclasses for the PaperMind pipeline.

This module defines type-safe configuration schemas using Python dataclasses.
Values are composed by Hydra from ``papermind_pipeline/conf/config.yaml``,
which reads the deployment environment through ``${oc.env:...}``
interpolations, and converted into these dataclasses by ``build_app_config``.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hydra import compose, initialize_config_dir
from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException

CONF_DIR = Path(__file__).resolve().parent.parent / "conf"

DEFAULT_BATCH_SIZE = 2
MIN_BATCH_SIZE = 1
MAX_BATCH_SIZE = 5


class ConfigError(Exception):
    """Configuration error for the PaperMind pipeline.

    Raised when configuration values are invalid or inconsistent. Using a
    dedicated exception type makes it easier to distinguish configuration
    problems from other runtime errors.
    """


def _as_int(value: Any, default: int, name: str) -> int:
    """Coerce a setting read from the environment; blank means the default."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e


def _normalize_drive_path(path: str) -> str:
    """Return a drive path with exactly one leading slash and no trailing one."""
    stripped = path.strip().strip("/")
    return f"/{stripped}" if stripped else "/"


@dataclass
class DriveConfig:
    """Configuration for the Microsoft Graph drive that holds the pipeline folders.

    The inbox, processed and errors folders are fixed logical locations in the
    user's drive and act as the pipeline stages.
    """

    base_url: str = "https://graph.microsoft.com/v1.0"
    """Microsoft Graph API root. Override only for sovereign clouds or tests."""

    inbox_path: str = "/Documentos/PaperMind/Entrada"
    """Folder scanned on every tick for new PDFs."""

    processed_path: str = "/Documentos/PaperMind/Processados"
    """Folder items are relocated to before they are processed."""

    errors_path: str = "/Documentos/PaperMind/Erros"
    """Folder for items whose processing failed. Only used when
    processing.move_failures_to_errors is enabled."""

    list_page_size: int = 50
    """Maximum number of children requested from the inbox per tick."""

    timeout: int = 60
    """Timeout in seconds for a single Graph request."""

    access_token: str = ""
    """Bearer token used by CLI runs. The web endpoint never reads this; it
    takes the caller's token from the request."""

    def __post_init__(self) -> None:
        """Normalize folder paths and validate limits."""
        for name in ("inbox_path", "processed_path", "errors_path"):
            value = getattr(self, name)
            if not value or not str(value).strip():
                raise ConfigError(f"drive.{name} is required and cannot be empty")
            setattr(self, name, _normalize_drive_path(str(value)))
        self.base_url = self.base_url.rstrip("/")
        if self.list_page_size <= 0:
            raise ConfigError("drive.list_page_size must be greater than 0")
        if self.timeout <= 0:
            raise ConfigError("drive.timeout must be greater than 0")


@dataclass
class ProcessingConfig:
    """Configuration for the batch watch-tick behavior."""

    batch_size: int = DEFAULT_BATCH_SIZE
    """Maximum number of inbox items handled per tick. Clamped to [1, 5]."""

    document_extension: str = ".pdf"
    """File-name suffix (case-insensitive) that marks an inbox item as a
    candidate document."""

    move_failures_to_errors: bool = False
    """When True, items that were relocated to the processed folder but then
    failed to download or process are moved on to the errors folder.
    Default False keeps them in the processed folder."""

    def __post_init__(self) -> None:
        """Coerce and clamp batch_size; validate the extension."""
        size = _as_int(self.batch_size, DEFAULT_BATCH_SIZE, "processing.batch_size")
        self.batch_size = min(max(size, MIN_BATCH_SIZE), MAX_BATCH_SIZE)

        if not self.document_extension or not self.document_extension.startswith("."):
            raise ConfigError(
                "processing.document_extension must start with '.' (e.g. '.pdf')"
            )
        self.document_extension = self.document_extension.lower()


@dataclass
class MistralConfig:
    """Configuration for the Mistral AI API.

    The API key is optional. Without it the metadata generator uses its
    heuristic fallback and the Mistral OCR extractor is unavailable.
    """

    api_key: str = ""
    """Mistral AI API key. Obtain from https://console.mistral.ai"""

    chat_model: str = "mistral-small-latest"
    """Chat model used for structured metadata extraction."""

    ocr_model: str = "mistral-ocr-latest"
    """OCR model used when extraction.provider is 'mistral'."""

    temperature: float = 0.0
    """Sampling temperature for metadata extraction."""

    @property
    def enabled(self) -> bool:
        """Whether a credential is configured."""
        return bool(self.api_key and self.api_key.strip())


@dataclass
class ExtractionConfig:
    """Configuration for PDF text extraction."""

    provider: str = "pymupdf"
    """Text extraction backend. Options: 'pymupdf', 'mistral'"""

    max_pages: int = 50
    """Maximum number of pages read from a document."""

    def __post_init__(self) -> None:
        """Validate provider and page limit."""
        if self.provider not in ("pymupdf", "mistral"):
            raise ConfigError(
                f"Unknown extraction provider: {self.provider!r}. "
                "Options: 'pymupdf', 'mistral'"
            )
        if self.max_pages <= 0:
            raise ConfigError("extraction.max_pages must be greater than 0")


@dataclass
class MetadataConfig:
    """Bounds applied by the metadata generator."""

    max_input_chars: int = 8000
    """Characters of extracted text sent to the language model."""

    fallback_title_chars: int = 180
    """Maximum title length produced by the heuristic fallback."""

    fallback_abstract_chars: int = 1200
    """Characters of raw text used as abstract by the heuristic fallback."""

    def __post_init__(self) -> None:
        """Validate that all bounds are positive."""
        for name in ("max_input_chars", "fallback_title_chars", "fallback_abstract_chars"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"metadata.{name} must be greater than 0")


@dataclass
class WorkbookConfig:
    """Location of the spreadsheet that records one row per document."""

    folder: str = "PaperMind"
    """Drive folder (relative to the drive root) holding the workbook."""

    file_name: str = "papermind.xlsx"
    """Workbook file name."""

    @property
    def path(self) -> str:
        """Full drive path of the workbook."""
        return f"{self.folder.strip('/')}/{self.file_name}"

    def __post_init__(self) -> None:
        """Validate the workbook location."""
        if not self.folder or not self.folder.strip("/ "):
            raise ConfigError("workbook.folder is required and cannot be empty")
        if not self.file_name.lower().endswith(".xlsx"):
            raise ConfigError("workbook.file_name must end with '.xlsx'")


@dataclass
class UploadConfig:
    """Configuration for chunked uploads into the drive."""

    chunk_size: int = 2 * 1024 * 1024
    """Bytes sent per upload-session PUT. The final chunk is clipped to the
    remaining byte count."""

    file: str = ""
    """Local file uploaded by the 'upload' CLI command."""

    folder: str = ""
    """Destination folder for the 'upload' CLI command. Defaults to the
    workbook folder when empty."""

    def __post_init__(self) -> None:
        """Validate chunk size."""
        if self.chunk_size <= 0:
            raise ConfigError("upload.chunk_size must be greater than 0")


@dataclass
class NotionPropertiesConfig:
    """Declared mapping from metadata fields to Notion database properties.

    Each value names a property of the target database. An empty value means
    the field is not exported. The mapping is validated against the database
    schema once and cached by the exporter.
    """

    title: str = ""
    """Title property. Empty means 'the database's title-typed property'."""

    authors: str = "Authors"
    """multi_select or rich_text property for authors."""

    keywords: str = "Keywords"
    """multi_select or rich_text property for keywords."""

    abstract: str = "Abstract"
    """rich_text property for the summary."""

    conclusion: str = "Conclusion"
    """rich_text property for the conclusion."""

    file_name: str = "File"
    """rich_text property for the source file name."""

    file_url: str = "Link"
    """url or rich_text property for the source file link."""


@dataclass
class NotionConfig:
    """Configuration for the Notion knowledge-base export."""

    token: str = ""
    """Notion integration token. Export is skipped when empty."""

    database_id: str = ""
    """Target database id. Export is skipped when empty."""

    base_url: str = "https://api.notion.com/v1"
    """Notion REST API root."""

    api_version: str = "2022-06-28"
    """Value of the Notion-Version header."""

    timeout: int = 30
    """Timeout in seconds for a single Notion request."""

    properties: NotionPropertiesConfig = field(default_factory=NotionPropertiesConfig)
    """Field-to-property mapping."""

    @property
    def enabled(self) -> bool:
        """Whether both a token and a database id are configured."""
        return bool(self.token.strip() and self.database_id.strip())


@dataclass
class ServerConfig:
    """Configuration for the HTTP surface."""

    host: str = "0.0.0.0"
    """Interface the development server binds to."""

    port: int = 3333
    """Port the development server listens on."""

    cors_origin: str = "http://localhost:3333"
    """Front-end origin allowed to call the API with credentials."""

    max_upload_mb: int = 25
    """Maximum size of a file posted to the upload route."""

    def __post_init__(self) -> None:
        """Coerce numeric settings and validate limits."""
        self.port = _as_int(self.port, 3333, "server.port")
        self.max_upload_mb = _as_int(self.max_upload_mb, 25, "server.max_upload_mb")
        if self.max_upload_mb <= 0:
            raise ConfigError("server.max_upload_mb must be greater than 0")


@dataclass
class AppConfig:
    """Top-level application configuration.

    Combines all configuration groups into a single type-safe configuration
    object shared by the CLI and the web app.
    """

    drive: DriveConfig = field(default_factory=DriveConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    mistral: MistralConfig = field(default_factory=MistralConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    workbook: WorkbookConfig = field(default_factory=WorkbookConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    notion: NotionConfig = field(default_factory=NotionConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    command: str = "tick"
    """CLI command. Options: 'tick', 'status', 'upload', 'serve'"""


def build_app_config(cfg: DictConfig | dict[str, Any]) -> AppConfig:
    """Convert a Hydra/OmegaConf config into a validated AppConfig.

    Args:
        cfg: Composed Hydra configuration or a plain nested dictionary.

    Returns:
        AppConfig with every group validated.

    Raises:
        ConfigError: If any group fails validation.
    """
    if isinstance(cfg, DictConfig):
        try:
            data = OmegaConf.to_container(cfg, resolve=True)
        except OmegaConfBaseException as e:
            raise ConfigError(f"Cannot resolve configuration: {e}") from e
    else:
        data = dict(cfg)
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    notion_data = dict(data.get("notion") or {})
    notion_properties_data = notion_data.pop("properties", None) or {}

    try:
        notion_properties = NotionPropertiesConfig(**notion_properties_data)
        return AppConfig(
            drive=DriveConfig(**(data.get("drive") or {})),
            processing=ProcessingConfig(**(data.get("processing") or {})),
            mistral=MistralConfig(**(data.get("mistral") or {})),
            extraction=ExtractionConfig(**(data.get("extraction") or {})),
            metadata=MetadataConfig(**(data.get("metadata") or {})),
            workbook=WorkbookConfig(**(data.get("workbook") or {})),
            upload=UploadConfig(**(data.get("upload") or {})),
            notion=NotionConfig(properties=notion_properties, **notion_data),
            server=ServerConfig(**(data.get("server") or {})),
            command=str(data.get("command", "tick")),
        )
    except TypeError as e:
        # Unknown keys in a group surface as unexpected keyword arguments
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_app_config(overrides: list[str] | None = None) -> AppConfig:
    """Compose the packaged Hydra config outside of ``@hydra.main``.

    Used by the web app, which is started by a WSGI server rather than by
    Hydra's entry point.

    Args:
        overrides: Optional Hydra override strings (e.g. ``["processing.batch_size=3"]``).

    Returns:
        Validated AppConfig.
    """
    with initialize_config_dir(version_base=None, config_dir=str(CONF_DIR)):
        cfg = compose(config_name="config", overrides=overrides or [])
    return build_app_config(cfg)
