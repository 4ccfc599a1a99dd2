"""
Metadata generation for extracted documents.

The generator prefers a language-model call and degrades to a deterministic
heuristic when no model is configured or the call fails. It never raises, so
every document that was downloaded and extracted gets a record.
"""

import logging
import re
from typing import Any, Protocol

from papermind_pipeline.domain.config import MetadataConfig
from papermind_pipeline.domain.models import DocumentMetadata

logger = logging.getLogger(__name__)


class MetadataModel(Protocol):
    """Anything that can turn a text excerpt into raw metadata fields."""

    def extract_metadata(self, excerpt: str, file_name: str) -> dict[str, Any]: ...


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _as_text_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [text for text in (_as_text(v) for v in value) if text]


class MetadataGenerator:
    """Produce a DocumentMetadata record from plain text.

    Attributes:
        model: Optional language-model client. None selects the fallback path.
        config: Bounds for the model excerpt and the fallback fields.
        document_extension: Extension stripped from file names used as titles.
    """

    def __init__(
        self,
        config: MetadataConfig,
        model: MetadataModel | None = None,
        document_extension: str = ".pdf",
    ) -> None:
        self.config = config
        self.model = model
        self._extension_re = re.compile(re.escape(document_extension) + r"$", re.IGNORECASE)

    def generate(
        self, text: str, file_name: str, file_url: str | None = None
    ) -> DocumentMetadata:
        """Build the metadata record for one document.

        Args:
            text: Extracted document text (may be empty).
            file_name: Original file name.
            file_url: Optional link to the stored document.

        Returns:
            A fully populated DocumentMetadata (fields default to empty).
        """
        text = text or ""
        if self.model is not None:
            try:
                fields = self.model.extract_metadata(
                    text[: self.config.max_input_chars], file_name
                )
                return self._from_model_fields(fields, file_name, file_url)
            except Exception as e:
                logger.warning(
                    f"Model metadata failed for {file_name}; using heuristic fallback: {e}"
                )

        return self.fallback(text, file_name, file_url)

    def fallback(
        self, text: str, file_name: str, file_url: str | None = None
    ) -> DocumentMetadata:
        """Heuristic record: first non-blank line as title, text head as abstract."""
        first_line = next((line.strip() for line in text.splitlines() if line.strip()), "")
        title = first_line or self._extension_re.sub("", file_name)
        return DocumentMetadata(
            title=title[: self.config.fallback_title_chars],
            abstract=text[: self.config.fallback_abstract_chars],
            file_name=file_name,
            file_url=file_url,
        )

    @staticmethod
    def _from_model_fields(
        fields: dict[str, Any], file_name: str, file_url: str | None
    ) -> DocumentMetadata:
        if not isinstance(fields, dict):
            raise TypeError(f"Expected a mapping of metadata fields, got {type(fields).__name__}")
        return DocumentMetadata(
            title=_as_text(fields.get("title")),
            authors=_as_text_list(fields.get("authors")),
            keywords=_as_text_list(fields.get("keywords")),
            abstract=_as_text(fields.get("abstract")),
            conclusion=_as_text(fields.get("conclusion")),
            file_name=file_name,
            file_url=file_url,
        )
