"""
Text extraction interface and the default PyMuPDF implementation.

The pipeline depends only on "given bytes, produce best-effort plain text".
Implementations may raise TextExtractionError; the item processor reports that
as a per-item failure.
"""

from abc import ABC, abstractmethod
import logging

import pymupdf

from ..domain.config import ExtractionConfig
from .exceptions import TextExtractionError

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"


def looks_like_pdf(data: bytes) -> bool:
    """Check the PDF header to avoid handing arbitrary bytes to a parser."""
    return data[: len(PDF_MAGIC)] == PDF_MAGIC


class TextExtractor(ABC):
    """Abstract base class for text extraction backends."""

    @property
    @abstractmethod
    def provider(self) -> str:
        """Short identifier of the backend (e.g. 'pymupdf')."""
        pass

    @abstractmethod
    def extract_text(self, data: bytes, filename: str) -> str:
        """Extract plain text from a document.

        Args:
            data: Raw document bytes.
            filename: Original file name, for logging.

        Returns:
            Extracted text with page texts separated by newlines. May be empty
            for image-only documents.

        Raises:
            TextExtractionError: If the document cannot be read.
        """
        pass


class PyMuPDFTextExtractor(TextExtractor):
    """Extract embedded text from PDF pages with PyMuPDF."""

    def __init__(self, config: ExtractionConfig) -> None:
        self.max_pages = config.max_pages

    @property
    def provider(self) -> str:
        return "pymupdf"

    def extract_text(self, data: bytes, filename: str) -> str:
        if not looks_like_pdf(data):
            raise TextExtractionError(f"{filename} does not look like a PDF (missing header)")

        try:
            with pymupdf.open(stream=data, filetype="pdf") as doc:
                page_count = min(doc.page_count, self.max_pages)
                texts = [doc[index].get_text("text").strip() for index in range(page_count)]
        except Exception as e:
            raise TextExtractionError(
                f"Failed to extract text from {filename}", original_exception=e
            ) from e

        text = "\n".join(t for t in texts if t).strip()
        logger.debug(f"Extracted {len(text)} characters from {page_count} pages of {filename}")
        return text
