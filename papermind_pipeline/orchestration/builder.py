"""Assemble the tick collaborators from an AppConfig.

Shared by the CLI entry point and the web app so both run ticks with the same
extractor, metadata model and exporter selection.
"""

import logging

from papermind_pipeline.clients.mistral_client import MistralClient
from papermind_pipeline.clients.notion_client import NotionExporter
from papermind_pipeline.clients.text_extractor import PyMuPDFTextExtractor, TextExtractor
from papermind_pipeline.domain.config import AppConfig, ConfigError
from papermind_pipeline.domain.metadata_generator import MetadataGenerator
from papermind_pipeline.orchestration.pipeline import BatchProcessor

logger = logging.getLogger(__name__)


def build_extractor(cfg: AppConfig, mistral_client: MistralClient | None) -> TextExtractor:
    """Select the text extractor for ``extraction.provider``.

    Raises:
        ConfigError: If the Mistral provider is selected without an API key.
    """
    if cfg.extraction.provider == "mistral":
        if mistral_client is None:
            raise ConfigError(
                "extraction.provider=mistral requires MISTRAL_API_KEY to be set"
            )
        return mistral_client
    return PyMuPDFTextExtractor(cfg.extraction)


def build_exporter(cfg: AppConfig) -> NotionExporter | None:
    """Build the Notion exporter, or None when Notion is not configured."""
    if not cfg.notion.enabled:
        logger.info("Notion export disabled (NOTION_TOKEN or NOTION_DB_ID not set)")
        return None
    return NotionExporter(cfg.notion)


def build_batch_processor(cfg: AppConfig) -> BatchProcessor:
    """Build a BatchProcessor with every collaborator selected from ``cfg``.

    Args:
        cfg: Validated application configuration.

    Returns:
        BatchProcessor ready to run ticks.

    Raises:
        ConfigError: If the configuration selects an unavailable collaborator.
    """
    mistral_client = MistralClient(cfg.mistral, cfg.extraction) if cfg.mistral.enabled else None
    if mistral_client is None:
        logger.info("MISTRAL_API_KEY not set; metadata uses the heuristic fallback")

    generator = MetadataGenerator(
        cfg.metadata,
        model=mistral_client,
        document_extension=cfg.processing.document_extension,
    )
    return BatchProcessor(
        config=cfg,
        extractor=build_extractor(cfg, mistral_client),
        generator=generator,
        exporter=build_exporter(cfg),
    )
