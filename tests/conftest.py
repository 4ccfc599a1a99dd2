from __future__ import annotations

from collections import defaultdict
import json
from types import SimpleNamespace
from typing import Any

import pytest

from papermind_pipeline.clients.exceptions import DriveAPIError, DriveClientError
from papermind_pipeline.clients.text_extractor import TextExtractor
from papermind_pipeline.domain.config import AppConfig, DriveConfig, MetadataConfig
from papermind_pipeline.domain.metadata_generator import MetadataGenerator
from papermind_pipeline.domain.models import DocumentMetadata, DriveItem, ExportResult
from papermind_pipeline.orchestration.pipeline import BatchProcessor

PDF_BYTES = b"%PDF-1.4\n% fake document\n"


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        json_data: Any = None,
        content: bytes = b"",
        text: str | None = None,
        reason: str = "",
    ) -> None:
        self.status_code = status_code
        self._json = json_data
        self.content = content
        self.reason = reason
        if text is not None:
            self.text = text
        elif json_data is not None:
            self.text = json.dumps(json_data)
        else:
            self.text = content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class FakeSession:
    """Stands in for requests.Session: records calls, replays queued responses."""

    def __init__(self, responses: list[Any] | None = None, handler=None) -> None:
        self.headers: dict[str, str] = {}
        self.requests: list[SimpleNamespace] = []
        self._responses = list(responses or [])
        self._handler = handler

    def request(self, method: str, url: str, **kwargs) -> FakeResponse:
        self.requests.append(SimpleNamespace(method=method, url=url, kwargs=kwargs))
        if self._handler is not None:
            return self._handler(method, url, kwargs)
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeDrive:
    """In-memory drive with the DriveClient surface used by the pipeline."""

    def __init__(self) -> None:
        self.folders: dict[str, list[DriveItem]] = defaultdict(list)
        self.contents: dict[str, bytes] = {}
        self.blobs: dict[str, bytes] = {}
        self.calls: list[tuple[str, ...]] = []
        self.tokens: list[str] = []
        self.list_error: Exception | None = None
        self.move_errors: dict[str, Exception] = {}
        self.download_status: dict[str, int] = {}
        self.put_error: Exception | None = None
        self._next_id = 0

    def factory(self, config: DriveConfig, access_token: str) -> FakeDrive:
        self.tokens.append(access_token)
        return self

    def add_file(self, folder: str, name: str, content: bytes = PDF_BYTES) -> DriveItem:
        self._next_id += 1
        item = DriveItem(
            id=f"item-{self._next_id}",
            name=name,
            web_url=f"https://drive.example{folder}/{name}",
            is_file=True,
        )
        self.folders[folder].append(item)
        self.contents[item.id] = content
        return item

    def add_folder(self, folder: str, name: str) -> DriveItem:
        self._next_id += 1
        item = DriveItem(id=f"folder-{self._next_id}", name=name, is_folder=True)
        self.folders[folder].append(item)
        return item

    def names_in(self, folder: str) -> list[str]:
        return [item.name for item in self.folders[folder]]

    def calls_named(self, name: str) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == name]

    def list_children(self, folder_path: str) -> list[DriveItem]:
        self.calls.append(("list", folder_path))
        if self.list_error is not None:
            raise self.list_error
        return list(self.folders[folder_path])

    def move_item(
        self, item_id: str, destination_folder_path: str, new_name: str | None = None
    ) -> DriveItem:
        self.calls.append(("move", item_id, destination_folder_path))
        if item_id in self.move_errors:
            raise self.move_errors[item_id]
        for folder, items in self.folders.items():
            for item in items:
                if item.id == item_id:
                    items.remove(item)
                    name = new_name or item.name
                    moved = DriveItem(
                        id=item.id,
                        name=name,
                        web_url=f"https://drive.example{destination_folder_path}/{name}",
                        is_file=item.is_file,
                    )
                    self.folders[destination_folder_path].append(moved)
                    return moved
        raise DriveAPIError(f"No item {item_id}", status_code=404)

    def download(self, item_id: str) -> bytes:
        self.calls.append(("download", item_id))
        if item_id in self.download_status:
            raise DriveAPIError(
                f"Download of {item_id} failed", status_code=self.download_status[item_id]
            )
        return self.contents[item_id]

    def get_content(self, path: str) -> bytes | None:
        self.calls.append(("get_content", path))
        return self.blobs.get(path)

    def put_content(self, path: str, data: bytes) -> DriveItem:
        self.calls.append(("put_content", path))
        if self.put_error is not None:
            raise self.put_error
        self.blobs[path] = data
        return DriveItem(id=f"blob:{path}", name=path.rsplit("/", 1)[-1], is_file=True)

    def ensure_folder(self, folder_path: str) -> str:
        self.calls.append(("ensure_folder", folder_path))
        return f"folder:{folder_path}"

    def create_upload_session(self, path: str) -> str:
        self.calls.append(("create_upload_session", path))
        return "https://upload.example/session/1"


class FakeExtractor(TextExtractor):
    def __init__(
        self,
        texts: dict[str, str] | None = None,
        default: str = "A Study of Paper Pipelines\nWe describe a pipeline.",
        errors: dict[str, Exception] | None = None,
    ) -> None:
        self.texts = texts or {}
        self.default = default
        self.errors = errors or {}
        self.seen: list[str] = []

    @property
    def provider(self) -> str:
        return "fake"

    def extract_text(self, data: bytes, filename: str) -> str:
        self.seen.append(filename)
        if filename in self.errors:
            raise self.errors[filename]
        return self.texts.get(filename, self.default)


class FakeExporter:
    def __init__(self, result: ExportResult | None = None) -> None:
        self.result = result or ExportResult.success("page-1")
        self.exported: list[DocumentMetadata] = []

    def export(self, meta: DocumentMetadata) -> ExportResult:
        self.exported.append(meta)
        return self.result


class FakeMetadataModel:
    def __init__(self, fields: Any = None, error: Exception | None = None) -> None:
        self.fields = fields
        self.error = error
        self.excerpts: list[str] = []

    def extract_metadata(self, excerpt: str, file_name: str) -> dict[str, Any]:
        self.excerpts.append(excerpt)
        if self.error is not None:
            raise self.error
        return self.fields


def build_batch_processor(
    config: AppConfig,
    drive: FakeDrive,
    extractor: TextExtractor | None = None,
    exporter: FakeExporter | None = None,
    model: FakeMetadataModel | None = None,
) -> BatchProcessor:
    return BatchProcessor(
        config=config,
        extractor=extractor or FakeExtractor(),
        generator=MetadataGenerator(MetadataConfig(), model=model),
        exporter=exporter,
        drive_client_factory=drive.factory,
    )


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig()


@pytest.fixture
def fake_drive() -> FakeDrive:
    return FakeDrive()


@pytest.fixture
def network_error() -> DriveClientError:
    return DriveClientError("Request failed: GET /me/drive")
