from __future__ import annotations

import pytest
import requests

from papermind_pipeline.clients.exceptions import NotionSchemaError
from papermind_pipeline.clients.notion_client import (
    MAX_TEXT_CONTENT_CHARS,
    NotionExporter,
    multi_select,
    resolve_mapping,
    rich_text,
)
from papermind_pipeline.domain.config import NotionConfig, NotionPropertiesConfig
from papermind_pipeline.domain.models import DocumentMetadata

from conftest import FakeResponse, FakeSession

SCHEMA = {
    "properties": {
        "Name": {"type": "title"},
        "Authors": {"type": "multi_select"},
        "Keywords": {"type": "rich_text"},
        "Abstract": {"type": "rich_text"},
        "Conclusion": {"type": "rich_text"},
        "File": {"type": "rich_text"},
        "Link": {"type": "url"},
    }
}

META = DocumentMetadata(
    title="Graph Pipelines",
    authors=["Ada Lovelace", "Turing, Alan"],
    keywords=["pipelines", "drives"],
    abstract="We study pipelines.",
    conclusion="They work.",
    file_name="paper.pdf",
    file_url="https://drive.example/paper.pdf",
)


def _exporter(*responses) -> tuple[NotionExporter, FakeSession]:
    session = FakeSession(list(responses))
    config = NotionConfig(token="secret_abc", database_id="db-1")
    return NotionExporter(config, session=session), session


def test_headers_carry_token_and_version() -> None:
    _, session = _exporter()
    assert session.headers["Authorization"] == "Bearer secret_abc"
    assert session.headers["Notion-Version"] == "2022-06-28"


def test_resolve_mapping_picks_the_title_property_when_not_declared() -> None:
    mapping = resolve_mapping(NotionPropertiesConfig(), SCHEMA["properties"])

    assert mapping.title_property == "Name"
    assert mapping.fields["authors"] == ("Authors", "multi_select")
    assert mapping.fields["keywords"] == ("Keywords", "rich_text")
    assert mapping.fields["file_url"] == ("Link", "url")


def test_resolve_mapping_skips_fields_declared_empty() -> None:
    mapping = resolve_mapping(
        NotionPropertiesConfig(conclusion="", file_name=""), SCHEMA["properties"]
    )
    assert "conclusion" not in mapping.fields
    assert "file_name" not in mapping.fields


def test_resolve_mapping_reports_missing_and_mistyped_properties() -> None:
    declared = NotionPropertiesConfig(authors="Writers", abstract="Link")

    with pytest.raises(NotionSchemaError) as excinfo:
        resolve_mapping(declared, SCHEMA["properties"])

    message = str(excinfo.value)
    assert "'Writers' (missing)" in message
    assert "'Link' (type url" in message


def test_declared_title_must_be_a_title_property() -> None:
    with pytest.raises(NotionSchemaError):
        resolve_mapping(NotionPropertiesConfig(title="Abstract"), SCHEMA["properties"])


def test_multi_select_caps_count_and_length_and_strips_commas() -> None:
    options = multi_select(["Turing, Alan", "x" * 120] + [f"k{i}" for i in range(60)])

    assert options[0] == {"name": "Turing  Alan"}
    assert options[1] == {"name": "x" * 90}
    assert len(options) == 50


def test_rich_text_splits_long_values() -> None:
    chunks = rich_text("a" * (MAX_TEXT_CONTENT_CHARS + 5))

    assert [len(c["text"]["content"]) for c in chunks] == [MAX_TEXT_CONTENT_CHARS, 5]
    assert rich_text("") == []


def test_export_creates_a_page_with_mapped_properties() -> None:
    exporter, session = _exporter(FakeResponse(200, SCHEMA), FakeResponse(200, {"id": "page-1"}))

    result = exporter.export(META)

    assert result.ok is True
    assert result.resource_id == "page-1"
    get_schema, create_page = session.requests
    assert get_schema.url == "https://api.notion.com/v1/databases/db-1"
    assert create_page.method == "POST"
    assert create_page.url == "https://api.notion.com/v1/pages"

    body = create_page.kwargs["json"]
    assert body["parent"] == {"database_id": "db-1"}
    assert body["icon"] == {"type": "emoji", "emoji": "📄"}
    properties = body["properties"]
    assert properties["Name"]["title"][0]["text"]["content"] == "Graph Pipelines"
    assert properties["Authors"]["multi_select"] == [
        {"name": "Ada Lovelace"},
        {"name": "Turing  Alan"},
    ]
    assert properties["Keywords"]["rich_text"][0]["text"]["content"] == "pipelines, drives"
    assert properties["Link"] == {"url": "https://drive.example/paper.pdf"}

    headings = [
        block["heading_2"]["rich_text"][0]["text"]["content"]
        for block in body["children"]
        if block["type"] == "heading_2"
    ]
    assert headings == ["Authors", "Keywords", "Summary", "Conclusion"]
    link_block = body["children"][-1]["paragraph"]["rich_text"][1]
    assert link_block["text"]["link"] == {"url": "https://drive.example/paper.pdf"}


def test_schema_is_resolved_once_per_exporter() -> None:
    exporter, session = _exporter(
        FakeResponse(200, SCHEMA),
        FakeResponse(200, {"id": "page-1"}),
        FakeResponse(200, {"id": "page-2"}),
    )

    exporter.export(META)
    exporter.export(META)

    assert [r.method for r in session.requests] == ["GET", "POST", "POST"]


def test_validation_error_invalidates_the_schema_cache() -> None:
    exporter, session = _exporter(
        FakeResponse(200, SCHEMA),
        FakeResponse(400, {"object": "error", "code": "validation_error", "message": "Authors is not a property"}),
        FakeResponse(200, SCHEMA),
        FakeResponse(200, {"id": "page-2"}),
    )

    first = exporter.export(META)
    assert first.ok is False
    assert first.error == "notion_api_error_400"
    assert exporter.cache.get() is None

    second = exporter.export(META)
    assert second.ok is True
    assert [r.method for r in session.requests] == ["GET", "POST", "GET", "POST"]


def test_other_api_errors_keep_the_cache() -> None:
    exporter, _ = _exporter(
        FakeResponse(200, SCHEMA),
        FakeResponse(429, {"object": "error", "code": "rate_limited", "message": "slow down"}),
    )

    result = exporter.export(META)

    assert result.error == "notion_api_error_429"
    assert exporter.cache.get() is not None


def test_unresolvable_mapping_is_a_schema_error() -> None:
    exporter, session = _exporter(FakeResponse(200, {"properties": {"Name": {"type": "title"}}}))

    result = exporter.export(META)

    assert result.ok is False
    assert result.error == "notion_schema_error"
    assert len(session.requests) == 1


def test_network_failure_is_reported() -> None:
    exporter, _ = _exporter(requests.ConnectionError("offline"))

    result = exporter.export(META)

    assert result.error == "notion_request_failed"
