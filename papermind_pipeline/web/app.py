"""
Flask HTTP surface for the PaperMind pipeline.

Endpoints:
- POST /excel/watch/tick: run one tick with the caller's Graph token
- GET  /excel/watch/status: report that no background loop runs
- POST /excel/watch/start, /excel/watch/stop: no-ops kept for older clients
- POST /upload: extract metadata from a posted PDF without touching the drive
- POST /ms/drive/upload: upload a file into the drive (resumable session)
- POST /ms/excel/append: append one row to the register workbook
- GET  /health: liveness check

The app keeps no state between requests. Ticks are meant to be triggered by
an external scheduler (e.g. a cron job posting to the tick route).
"""

import logging
from typing import Any

from flask import Flask, jsonify, request
from flask_cors import CORS

from papermind_pipeline.clients.chunked_uploader import ChunkedUploader
from papermind_pipeline.clients.exceptions import DriveClientError, TextExtractionError
from papermind_pipeline.domain.config import AppConfig, load_app_config
from papermind_pipeline.domain.models import ErrorKind, utc_now_iso
from papermind_pipeline.domain.workbook import LIST_SEPARATOR
from papermind_pipeline.orchestration.builder import build_batch_processor
from papermind_pipeline.orchestration.pipeline import BatchProcessor, TickAbortedError
from papermind_pipeline.orchestration.tabular_appender import TabularAppender
from papermind_pipeline.utils.logging import log_tick_summary, setup_logging

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "ms_access_token"
TOKEN_HEADER = "X-MS-Access-Token"

STATUS_HINT = "Configure a scheduler to POST /excel/watch/tick (e.g. every minute)."
PDF_MIMETYPE = "application/pdf"


def access_token_from_request() -> str | None:
    """Read the Graph token from the cookie, the dedicated header or a bearer header."""
    token = request.cookies.get(TOKEN_COOKIE) or request.headers.get(TOKEN_HEADER)
    if token:
        return token.strip()

    authorization = request.headers.get("Authorization", "")
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


def _joined(value: Any) -> str:
    if isinstance(value, list):
        return LIST_SEPARATOR.join(str(v) for v in value)
    return str(value or "")


def _error(error: str, status: int) -> tuple[Any, int]:
    return jsonify({"ok": False, "error": error}), status


def create_app(
    config: AppConfig | None = None, batch_processor: BatchProcessor | None = None
) -> Flask:
    """Create and configure the Flask app instance.

    Args:
        config: Application configuration; composed from the packaged Hydra
            config when omitted.
        batch_processor: Tick runner; built from ``config`` when omitted. Its
            drive client factory is also used by the upload and append routes.

    Returns:
        The configured Flask application.
    """
    setup_logging()
    if config is None:
        config = load_app_config()
    if batch_processor is None:
        batch_processor = build_batch_processor(config)
    drive_client_factory = batch_processor.drive_client_factory

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.server.max_upload_mb * 1024 * 1024
    CORS(app, origins=[config.server.cors_origin], supports_credentials=True)

    @app.errorhandler(413)
    def too_large(_exc) -> Any:
        return _error("file_too_large", 413)

    @app.get("/")
    def index() -> Any:
        return jsonify({"ok": True, "name": "PaperMind API", "ts": utc_now_iso()})

    @app.get("/health")
    def health() -> Any:
        return jsonify({"ok": True})

    @app.post("/excel/watch/tick")
    def watch_tick() -> Any:
        try:
            report = batch_processor.run_tick(access_token_from_request())
        except TickAbortedError as e:
            status = 401 if e.kind == ErrorKind.MISSING_CREDENTIAL else 500
            return _error(e.kind, status)
        except Exception:
            logger.exception("Tick failed with an unexpected error")
            return _error("tick_exception", 500)

        log_tick_summary(logger, report)
        return jsonify(report.to_dict())

    @app.get("/excel/watch/status")
    def watch_status() -> Any:
        return jsonify({"ok": True, "running": False, "mode": "serverless", "hint": STATUS_HINT})

    @app.post("/excel/watch/start")
    def watch_start() -> Any:
        return jsonify({"ok": True, "mode": "serverless", "note": STATUS_HINT})

    @app.post("/excel/watch/stop")
    def watch_stop() -> Any:
        return jsonify({"ok": True, "stopped": True, "mode": "serverless"})

    @app.post("/upload")
    def analyze_upload() -> Any:
        if "file" not in request.files:
            return _error("file_missing", 400)

        file = request.files["file"]
        if file.mimetype != PDF_MIMETYPE:
            return _error("not_pdf", 400)

        filename = file.filename or "document.pdf"
        data = file.read()
        try:
            text = batch_processor.extractor.extract_text(data, filename)
        except TextExtractionError as e:
            logger.error(f"Text extraction failed for uploaded {filename}: {e}")
            return _error("extraction_failed", 500)

        meta = batch_processor.generator.generate(text, filename)
        return jsonify(
            {
                "ok": True,
                "filename": filename,
                "bytes": len(data),
                "data": {
                    "title": meta.title,
                    "authors": list(meta.authors),
                    "keywords": list(meta.keywords),
                    "abstract": meta.abstract,
                    "conclusion": meta.conclusion,
                },
            }
        )

    @app.post("/ms/drive/upload")
    def drive_upload() -> Any:
        token = access_token_from_request()
        if not token:
            return _error(ErrorKind.MISSING_CREDENTIAL, 401)
        if "file" not in request.files:
            return _error("file_missing", 400)

        file = request.files["file"]
        filename = (file.filename or "").replace("\\", "/").rsplit("/", 1)[-1] or "document.pdf"
        folder = (request.args.get("folder") or config.workbook.folder).strip("/")
        target_path = f"{folder}/{filename}"

        try:
            drive_client = drive_client_factory(config.drive, token)
            drive_client.ensure_folder(folder)
            item = ChunkedUploader(drive_client, config.upload).upload(target_path, file.read())
        except DriveClientError as e:
            logger.error(f"Upload of {target_path} failed: {e}")
            return _error("upload_failed", 500)

        return jsonify({"ok": True, "path": target_path, "item": item})

    @app.post("/ms/excel/append")
    def excel_append() -> Any:
        token = access_token_from_request()
        if not token:
            return _error(ErrorKind.MISSING_CREDENTIAL, 401)

        body = request.get_json(silent=True) or {}
        title = body.get("title") if isinstance(body, dict) else None
        if not title:
            return _error("title_missing", 400)

        row = [
            str(title),
            _joined(body.get("authors")),
            _joined(body.get("keywords")),
            str(body.get("summary") or ""),
            str(body.get("conclusion") or ""),
            str(body.get("pdfUrl") or ""),
            utc_now_iso(),
        ]
        try:
            drive_client = drive_client_factory(config.drive, token)
            drive_client.ensure_folder(config.workbook.folder)
        except DriveClientError as e:
            logger.error(f"Workbook folder {config.workbook.folder} unavailable: {e}")
            return _error("excel_append_failed", 500)

        appender = TabularAppender(drive_client, config.workbook)
        result = appender.append(row)
        if not result.ok:
            return _error("excel_append_failed", 500)
        return jsonify({"ok": True, "excelPath": appender.path, "itemId": result.resource_id})

    return app
