"""Mistral AI client implementation.

This module provides a high-level interface to the Mistral AI API for the two
capabilities the pipeline can delegate to it: structured metadata extraction
through a JSON-mode chat completion, and OCR text extraction for documents
without an embedded text layer.
"""

import base64
import json
import logging
import re
from typing import Any

from mistralai import Mistral, MistralError

from ..domain.config import ExtractionConfig, MistralConfig
from .exceptions import MetadataClientError, TextExtractionError
from .text_extractor import TextExtractor, looks_like_pdf

logger = logging.getLogger(__name__)

METADATA_SYSTEM_PROMPT = (
    "You extract bibliographic metadata from academic papers. "
    "Answer with strict JSON only, using exactly these keys: "
    '"title" (string), "authors" (array of strings), "keywords" (array of strings), '
    '"abstract" (string), "conclusion" (string). '
    'Use "" or [] for anything the text does not state; never invent values.'
)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def parse_json_object(raw: str) -> dict[str, Any]:
    """Parse a model answer as a JSON object.

    Tries the whole answer first, then the outermost ``{...}`` span (models
    occasionally wrap JSON in prose or code fences).

    Raises:
        ValueError: If no JSON object can be recovered.
    """
    candidates = [raw]
    match = _JSON_OBJECT_RE.search(raw)
    if match and match.group(0) != raw:
        candidates.append(match.group(0))

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise ValueError("Response is not a JSON object")


def _message_text(content: Any) -> str:
    """Flatten a chat message content (string or list of chunks) to text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    parts = []
    for chunk in content:
        text = getattr(chunk, "text", None)
        if text is None and isinstance(chunk, dict):
            text = chunk.get("text")
        if text:
            parts.append(str(text))
    return "".join(parts)


class MistralClient(TextExtractor):
    """Client for interacting with the Mistral AI API.

    Example:
        >>> client = MistralClient(MistralConfig(api_key="your-key"))
        >>> fields = client.extract_metadata(text[:8000], "paper.pdf")
        >>> text = client.extract_text(pdf_bytes, "paper.pdf")
    """

    def __init__(
        self,
        config: MistralConfig,
        extraction_config: ExtractionConfig | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the Mistral client.

        Args:
            config: Mistral configuration containing API key and model names.
            extraction_config: Extraction limits used by OCR (page cap).
            client: Optional pre-built SDK client (used by tests).

        Raises:
            MetadataClientError: If client initialization fails.
        """
        self.config = config
        self.max_pages = (extraction_config or ExtractionConfig()).max_pages
        try:
            self.client = client if client is not None else Mistral(api_key=config.api_key)
            logger.info("MistralClient initialized successfully")
        except Exception as e:
            error_msg = f"Failed to initialize Mistral client: {str(e)}"
            logger.error(error_msg)
            raise MetadataClientError(error_msg, original_exception=e) from e

    @property
    def provider(self) -> str:
        return "mistral"

    def extract_metadata(self, excerpt: str, file_name: str) -> dict[str, Any]:
        """Ask the chat model for the five metadata fields of a document.

        Args:
            excerpt: Already truncated document text.
            file_name: Original file name, given to the model as context.

        Returns:
            The parsed JSON object. Field types are not validated here; the
            metadata generator coerces them.

        Raises:
            MetadataClientError: If the call fails or the answer is not a JSON object.
        """
        user_prompt = f"File: {file_name}\nText (truncated):\n{excerpt}"
        try:
            response = self.client.chat.complete(
                model=self.config.chat_model,
                messages=[
                    {"role": "system", "content": METADATA_SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.config.temperature,
                response_format={"type": "json_object"},
            )
        except MistralError as e:
            error_msg = f"Metadata request failed for '{file_name}'"
            logger.warning(f"{error_msg}: {e}")
            raise MetadataClientError(error_msg, original_exception=e) from e
        except Exception as e:
            error_msg = f"Unexpected error requesting metadata for '{file_name}'"
            logger.warning(f"{error_msg}: {e}")
            raise MetadataClientError(error_msg, original_exception=e) from e

        try:
            raw = _message_text(response.choices[0].message.content).strip()
        except (AttributeError, IndexError, TypeError) as e:
            raise MetadataClientError(
                f"Malformed metadata response for '{file_name}'", original_exception=e
            ) from e

        logger.debug(f"Metadata response for {file_name} (200 chars): {raw[:200]}")
        try:
            return parse_json_object(raw)
        except ValueError as e:
            raise MetadataClientError(
                f"Metadata response for '{file_name}' is not JSON", original_exception=e
            ) from e

    def extract_text(self, data: bytes, filename: str) -> str:
        """Extract text through Mistral OCR, sending the PDF inline.

        Raises:
            TextExtractionError: If the data is not a PDF or OCR fails.
        """
        if not looks_like_pdf(data):
            raise TextExtractionError(f"{filename} does not look like a PDF (missing header)")

        document_url = "data:application/pdf;base64," + base64.b64encode(data).decode("ascii")
        try:
            logger.info(f"Running OCR for {filename} (model: {self.config.ocr_model})")
            ocr_response = self.client.ocr.process(
                model=self.config.ocr_model,
                document={"type": "document_url", "document_url": document_url},
            )
        except MistralError as e:
            raise TextExtractionError(
                f"OCR failed for '{filename}'", original_exception=e
            ) from e
        except Exception as e:
            raise TextExtractionError(
                f"Unexpected OCR error for '{filename}'", original_exception=e
            ) from e

        pages = list(getattr(ocr_response, "pages", None) or [])[: self.max_pages]
        texts = [str(getattr(page, "markdown", "") or "").strip() for page in pages]
        return "\n".join(t for t in texts if t).strip()
