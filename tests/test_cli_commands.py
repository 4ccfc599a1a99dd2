from __future__ import annotations

import logging

import pytest

from papermind_pipeline.cli.commands import (
    _determine_exit_code,
    status_command,
    tick_command,
    upload_command,
)
from papermind_pipeline.domain.config import AppConfig, ConfigError, DriveConfig, UploadConfig
from papermind_pipeline.domain.metadata_generator import MetadataGenerator
from papermind_pipeline.domain.models import ProcessingResult, TickReport
from papermind_pipeline.orchestration.pipeline import BatchProcessor

from conftest import FakeDrive, FakeExtractor, build_batch_processor

INBOX = "/Documentos/PaperMind/Entrada"
logger = logging.getLogger("test_cli")


def _report(*oks: bool) -> TickReport:
    results = [
        ProcessingResult(ok=ok, file=f"{i}.pdf", error=None if ok else "exception")
        for i, ok in enumerate(oks)
    ]
    return TickReport(
        found=len(results),
        processed=len(results),
        success=sum(oks),
        results=results,
    )


@pytest.mark.parametrize(
    "oks, expected",
    [
        ((), 0),
        ((True, True), 0),
        ((True, False), 1),
        ((False, False), 2),
    ],
)
def test_exit_code_reflects_tick_outcome(oks, expected) -> None:
    assert _determine_exit_code(_report(*oks)) == expected


def test_tick_without_token_exits_with_config_code(fake_drive: FakeDrive) -> None:
    cfg = AppConfig()

    assert tick_command(cfg, logger, build_batch_processor(cfg, fake_drive)) == 3
    assert fake_drive.calls == []


def test_tick_processes_the_batch(fake_drive: FakeDrive) -> None:
    cfg = AppConfig(drive=DriveConfig(access_token="cli-token"))
    fake_drive.add_file(INBOX, "a.pdf")
    fake_drive.add_file(INBOX, "b.pdf")

    assert tick_command(cfg, logger, build_batch_processor(cfg, fake_drive)) == 0
    assert fake_drive.tokens == ["cli-token"]
    assert fake_drive.names_in(INBOX) == []


def test_tick_listing_failure_exits_with_two(fake_drive: FakeDrive, network_error) -> None:
    cfg = AppConfig(drive=DriveConfig(access_token="cli-token"))
    fake_drive.list_error = network_error

    assert tick_command(cfg, logger, build_batch_processor(cfg, fake_drive)) == 2


def test_status_without_token_only_prints_settings(fake_drive: FakeDrive) -> None:
    cfg = AppConfig()

    assert status_command(cfg, logger, build_batch_processor(cfg, fake_drive)) == 0
    assert fake_drive.calls == []


def test_status_previews_the_inbox_without_moving(fake_drive: FakeDrive, caplog) -> None:
    cfg = AppConfig(drive=DriveConfig(access_token="t"))
    fake_drive.add_file(INBOX, "queued.pdf")

    with caplog.at_level(logging.INFO, logger="test_cli"):
        assert status_command(cfg, logger, build_batch_processor(cfg, fake_drive)) == 0

    assert "queued.pdf" in caplog.text
    assert fake_drive.names_in(INBOX) == ["queued.pdf"]
    assert fake_drive.calls_named("move") == []


def test_upload_requires_a_file() -> None:
    cfg = AppConfig(drive=DriveConfig(access_token="t"))

    with pytest.raises(ConfigError):
        upload_command(cfg, logger, build_batch_processor(cfg, FakeDrive()))


def test_upload_rejects_missing_path(tmp_path) -> None:
    cfg = AppConfig(
        drive=DriveConfig(access_token="t"),
        upload=UploadConfig(file=str(tmp_path / "absent.pdf")),
    )

    with pytest.raises(ConfigError):
        upload_command(cfg, logger, build_batch_processor(cfg, FakeDrive()))


def test_upload_sends_the_file(tmp_path, monkeypatch, fake_drive: FakeDrive) -> None:
    source = tmp_path / "report.pdf"
    source.write_bytes(b"%PDF-1.4 report")
    uploads = []

    class RecordingUploader:
        def __init__(self, drive_client, config):
            pass

        def upload(self, path, data):
            uploads.append((path, data))
            return {"id": "up", "webUrl": "https://drive.example/report.pdf"}

    monkeypatch.setattr("papermind_pipeline.cli.commands.ChunkedUploader", RecordingUploader)
    cfg = AppConfig(
        drive=DriveConfig(access_token="t"),
        upload=UploadConfig(file=str(source), folder="/Archive/"),
    )

    assert upload_command(cfg, logger, build_batch_processor(cfg, fake_drive)) == 0
    assert uploads == [("Archive/report.pdf", b"%PDF-1.4 report")]
    assert ("ensure_folder", "Archive") in fake_drive.calls


def test_blank_token_exits_with_config_code_using_the_real_drive_client() -> None:
    cfg = AppConfig(drive=DriveConfig(access_token="   "))
    batch_processor = BatchProcessor(
        config=cfg,
        extractor=FakeExtractor(),
        generator=MetadataGenerator(cfg.metadata),
    )

    assert tick_command(cfg, logger, batch_processor) == 3
