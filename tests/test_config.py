from __future__ import annotations

import pytest

from papermind_pipeline.domain.config import (
    ConfigError,
    DriveConfig,
    ExtractionConfig,
    ProcessingConfig,
    ServerConfig,
    WorkbookConfig,
    build_app_config,
    load_app_config,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(0, 1), (-3, 1), (1, 1), (2, 2), (5, 5), (9, 5), ("3", 3), ("", 2), ("  ", 2)],
)
def test_batch_size_is_clamped_to_one_through_five(raw, expected) -> None:
    assert ProcessingConfig(batch_size=raw).batch_size == expected


def test_non_numeric_batch_size_is_a_config_error() -> None:
    with pytest.raises(ConfigError):
        ProcessingConfig(batch_size="many")


def test_document_extension_is_lowercased() -> None:
    assert ProcessingConfig(document_extension=".PDF").document_extension == ".pdf"


def test_drive_paths_are_normalized() -> None:
    config = DriveConfig(inbox_path="Docs/Inbox/", processed_path="/Docs/Done")

    assert config.inbox_path == "/Docs/Inbox"
    assert config.processed_path == "/Docs/Done"


def test_empty_drive_path_is_rejected() -> None:
    with pytest.raises(ConfigError):
        DriveConfig(inbox_path="  ")


def test_unknown_extraction_provider_is_rejected() -> None:
    with pytest.raises(ConfigError):
        ExtractionConfig(provider="tesseract")


def test_workbook_path_joins_folder_and_file() -> None:
    assert WorkbookConfig(folder="/PaperMind/", file_name="register.xlsx").path == (
        "PaperMind/register.xlsx"
    )


def test_build_app_config_from_plain_dict() -> None:
    config = build_app_config(
        {
            "processing": {"batch_size": 7},
            "notion": {
                "token": "secret",
                "database_id": "db",
                "properties": {"title": "Name", "authors": ""},
            },
            "command": "status",
        }
    )

    assert config.processing.batch_size == 5
    assert config.notion.enabled is True
    assert config.notion.properties.title == "Name"
    assert config.notion.properties.authors == ""
    assert config.notion.properties.keywords == "Keywords"
    assert config.command == "status"


def test_unknown_key_is_a_config_error() -> None:
    with pytest.raises(ConfigError):
        build_app_config({"drive": {"inbox": "/x"}})


def test_packaged_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("ONEDRIVE_ENTRADA_PATH", "/Team/Inbox")
    monkeypatch.setenv("BATCH_SIZE", "4")
    monkeypatch.delenv("MISTRAL_API_KEY", raising=False)
    monkeypatch.delenv("NOTION_TOKEN", raising=False)

    config = load_app_config()

    assert config.drive.inbox_path == "/Team/Inbox"
    assert config.drive.processed_path == "/Documentos/PaperMind/Processados"
    assert config.processing.batch_size == 4
    assert config.processing.document_extension == ".pdf"
    assert config.upload.chunk_size == 2 * 1024 * 1024
    assert config.mistral.enabled is False
    assert config.notion.enabled is False


def test_packaged_config_accepts_overrides(monkeypatch) -> None:
    monkeypatch.delenv("BATCH_SIZE", raising=False)

    config = load_app_config(["processing.batch_size=3", "command=status"])

    assert config.processing.batch_size == 3
    assert config.command == "status"


def test_blank_numeric_environment_values_fall_back_to_defaults(monkeypatch) -> None:
    for name in ("BATCH_SIZE", "PORT", "MAX_PDF_MB"):
        monkeypatch.setenv(name, "")

    config = load_app_config()

    assert config.processing.batch_size == 2
    assert config.server.port == 3333
    assert config.server.max_upload_mb == 25


def test_numeric_environment_values_are_coerced(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("MAX_PDF_MB", "10")

    config = load_app_config()

    assert config.server.port == 8080
    assert config.server.max_upload_mb == 10


def test_non_numeric_port_is_a_config_error() -> None:
    with pytest.raises(ConfigError):
        ServerConfig(port="web")
