"""Notion knowledge-base exporter.

This module creates one Notion database page per processed document over the
Notion REST API. Which database property receives which metadata field is
declared in configuration, validated against the database schema once, and
cached on the exporter instance until Notion reports that the schema changed.
"""

from dataclasses import dataclass
import logging
from typing import Any

import requests

from ..domain.config import NotionConfig, NotionPropertiesConfig
from ..domain.models import DocumentMetadata, ExportResult
from .exceptions import NotionAPIError, NotionClientError, NotionSchemaError

logger = logging.getLogger(__name__)

# Notion limits
MAX_TEXT_CONTENT_CHARS = 2000
MAX_RICH_TEXT_ITEMS = 100
MAX_MULTI_SELECT_OPTIONS = 50
MAX_OPTION_CHARS = 90

PAGE_ICON = {"type": "emoji", "emoji": "📄"}

# Accepted property types per metadata field, in order of preference
FIELD_PROPERTY_TYPES: dict[str, tuple[str, ...]] = {
    "authors": ("multi_select", "rich_text"),
    "keywords": ("multi_select", "rich_text"),
    "abstract": ("rich_text",),
    "conclusion": ("rich_text",),
    "file_name": ("rich_text",),
    "file_url": ("url", "rich_text"),
}


@dataclass(frozen=True)
class ResolvedMapping:
    """Declared mapping checked against a concrete database schema.

    Attributes:
        title_property: Name of the database's title property.
        fields: Metadata field -> (property name, property type), only for
            fields that are exported.
    """

    title_property: str
    fields: dict[str, tuple[str, str]]


class SchemaCache:
    """Holds the resolved mapping for one database between exports.

    The cache lives on the exporter instance; it is filled on first use and
    cleared by ``invalidate`` when Notion rejects a page for schema reasons.
    """

    def __init__(self) -> None:
        self._mapping: ResolvedMapping | None = None

    def get(self) -> ResolvedMapping | None:
        return self._mapping

    def store(self, mapping: ResolvedMapping) -> None:
        self._mapping = mapping

    def invalidate(self) -> None:
        self._mapping = None


def resolve_mapping(
    declared: NotionPropertiesConfig, schema_properties: dict[str, Any]
) -> ResolvedMapping:
    """Validate a declared mapping against a database's properties.

    Args:
        declared: Field-to-property names from configuration.
        schema_properties: The ``properties`` object of a Notion database.

    Returns:
        The resolved mapping.

    Raises:
        NotionSchemaError: If the title property cannot be found, or a
            declared property is missing or has an unsupported type.
    """
    types = {
        name: (prop or {}).get("type")
        for name, prop in schema_properties.items()
        if isinstance(prop, dict)
    }

    if declared.title:
        if types.get(declared.title) != "title":
            raise NotionSchemaError(
                f"Declared title property {declared.title!r} is not a title property"
            )
        title_property = declared.title
    else:
        title_property = next((name for name, kind in types.items() if kind == "title"), "")
        if not title_property:
            raise NotionSchemaError("The Notion database has no title property")

    problems = []
    fields: dict[str, tuple[str, str]] = {}
    for field_name, allowed in FIELD_PROPERTY_TYPES.items():
        property_name = getattr(declared, field_name)
        if not property_name:
            continue
        kind = types.get(property_name)
        if kind is None:
            problems.append(f"{field_name} -> {property_name!r} (missing)")
        elif kind not in allowed:
            problems.append(
                f"{field_name} -> {property_name!r} (type {kind}, expected {'/'.join(allowed)})"
            )
        else:
            fields[field_name] = (property_name, kind)

    if problems:
        raise NotionSchemaError(
            "Notion property mapping does not match the database: " + "; ".join(problems)
        )
    return ResolvedMapping(title_property=title_property, fields=fields)


def rich_text(value: str) -> list[dict[str, Any]]:
    """Split text into Notion rich-text objects within the per-object limit."""
    if not value:
        return []
    chunks = [
        value[i : i + MAX_TEXT_CONTENT_CHARS]
        for i in range(0, len(value), MAX_TEXT_CONTENT_CHARS)
    ][:MAX_RICH_TEXT_ITEMS]
    return [{"type": "text", "text": {"content": chunk}} for chunk in chunks]


def multi_select(values: list[str]) -> list[dict[str, str]]:
    options = []
    for value in values[:MAX_MULTI_SELECT_OPTIONS]:
        # Commas are not allowed in select option names
        name = value.replace(",", " ").strip()[:MAX_OPTION_CHARS]
        if name:
            options.append({"name": name})
    return options


def _heading(text: str) -> dict[str, Any]:
    return {"object": "block", "type": "heading_2", "heading_2": {"rich_text": rich_text(text)}}


def _paragraph(text: str) -> dict[str, Any]:
    return {"object": "block", "type": "paragraph", "paragraph": {"rich_text": rich_text(text)}}


def _bullet(text: str) -> dict[str, Any]:
    return {
        "object": "block",
        "type": "bulleted_list_item",
        "bulleted_list_item": {"rich_text": rich_text(text)},
    }


def build_properties(meta: DocumentMetadata, mapping: ResolvedMapping) -> dict[str, Any]:
    """Build the page ``properties`` payload for a document."""
    title = meta.title or meta.file_name or "Untitled"
    properties: dict[str, Any] = {mapping.title_property: {"title": rich_text(title)}}

    values: dict[str, Any] = {
        "authors": meta.authors,
        "keywords": meta.keywords,
        "abstract": meta.abstract,
        "conclusion": meta.conclusion,
        "file_name": meta.file_name,
        "file_url": meta.file_url or "",
    }
    for field_name, (property_name, kind) in mapping.fields.items():
        value = values[field_name]
        if kind == "multi_select":
            properties[property_name] = {"multi_select": multi_select(value)}
        elif kind == "url":
            properties[property_name] = {"url": value or None}
        elif isinstance(value, list):
            properties[property_name] = {"rich_text": rich_text(", ".join(value))}
        else:
            properties[property_name] = {"rich_text": rich_text(value)}
    return properties


def build_page_body(meta: DocumentMetadata) -> list[dict[str, Any]]:
    """Build the page body blocks: authors, keywords, summary, conclusion, link."""
    children: list[dict[str, Any]] = [_heading("Authors")]
    children.extend(_bullet(author) for author in meta.authors)
    children.append(_heading("Keywords"))
    children.extend(_bullet(keyword) for keyword in meta.keywords)
    children.append(_heading("Summary"))
    children.append(_paragraph(meta.abstract or "—"))
    children.append(_heading("Conclusion"))
    children.append(_paragraph(meta.conclusion or "—"))
    if meta.file_url:
        children.append(
            {
                "object": "block",
                "type": "paragraph",
                "paragraph": {
                    "rich_text": [
                        {"type": "text", "text": {"content": "PDF: "}},
                        {
                            "type": "text",
                            "text": {"content": meta.file_url, "link": {"url": meta.file_url}},
                        },
                    ]
                },
            }
        )
    # Notion accepts at most 100 children per request
    return children[:100]


class NotionExporter:
    """Export DocumentMetadata records as pages of a Notion database.

    ``export`` never raises; failures come back as ``ExportResult`` with one
    of the kinds ``notion_schema_error``, ``notion_api_error_{status}`` or
    ``notion_request_failed``.

    Example:
        >>> exporter = NotionExporter(NotionConfig(token="secret_...", database_id="..."))
        >>> result = exporter.export(meta)
        >>> result.resource_id  # created page id
    """

    def __init__(
        self,
        config: NotionConfig,
        session: requests.Session | None = None,
        cache: SchemaCache | None = None,
    ) -> None:
        """Initialize the exporter.

        Args:
            config: Notion configuration (token, database, mapping).
            session: Optional pre-built session (used by tests).
            cache: Optional schema cache; a fresh one is created by default.
        """
        self.config = config
        self.cache = cache or SchemaCache()
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {config.token}",
                "Notion-Version": config.api_version,
            }
        )

    def _make_request(self, method: str, endpoint: str, **kwargs) -> dict[str, Any]:
        """Send a request to the Notion API and return the decoded JSON body.

        Raises:
            NotionAPIError: On a non-2xx answer.
            NotionClientError: On network failures or a non-JSON body.
        """
        url = f"{self.config.base_url.rstrip('/')}{endpoint}"
        kwargs.setdefault("timeout", self.config.timeout)
        try:
            response = self._session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise NotionClientError(
                f"Request failed: {method} {endpoint}", original_exception=e
            ) from e

        logger.debug(f"Notion request: {method} {endpoint} -> {response.status_code}")
        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if not 200 <= response.status_code < 300:
            code = str(payload.get("code", "")) if isinstance(payload, dict) else ""
            message = payload.get("message", "") if isinstance(payload, dict) else ""
            raise NotionAPIError(
                f"Notion API error: {method} {endpoint}: {message or response.reason}",
                status_code=response.status_code,
                code=code,
            )
        if not isinstance(payload, dict):
            raise NotionClientError(f"Unexpected response body for {method} {endpoint}")
        return payload

    def mapping(self) -> ResolvedMapping:
        """Return the cached mapping, resolving it from the database schema if needed.

        Raises:
            NotionSchemaError: If the declared mapping does not fit the database.
            NotionAPIError: If the database cannot be retrieved.
        """
        cached = self.cache.get()
        if cached is not None:
            return cached

        database = self._make_request("GET", f"/databases/{self.config.database_id}")
        resolved = resolve_mapping(self.config.properties, database.get("properties") or {})
        self.cache.store(resolved)
        logger.info(
            f"Resolved Notion mapping for database {self.config.database_id}: "
            f"title={resolved.title_property!r}, fields={sorted(resolved.fields)}"
        )
        return resolved

    def export(self, meta: DocumentMetadata) -> ExportResult:
        """Create a page for ``meta`` in the configured database."""
        try:
            mapping = self.mapping()
            page = self._make_request(
                "POST",
                "/pages",
                json={
                    "parent": {"database_id": self.config.database_id},
                    "icon": PAGE_ICON,
                    "properties": build_properties(meta, mapping),
                    "children": build_page_body(meta),
                },
            )
        except NotionSchemaError as e:
            logger.debug(str(e))
            return ExportResult.failure("notion_schema_error")
        except NotionAPIError as e:
            if e.status_code == 400 and e.code == "validation_error":
                # The database changed since the mapping was resolved
                self.cache.invalidate()
            return ExportResult.failure(f"notion_api_error_{e.status_code}")
        except NotionClientError as e:
            logger.debug(str(e))
            return ExportResult.failure("notion_request_failed")

        return ExportResult.success(str(page.get("id", "")) or None)
