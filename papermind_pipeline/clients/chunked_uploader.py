"""Chunked upload of large binaries into the drive.

Implements the Graph upload-session protocol: open a session for the target
path (replacing any existing file), then PUT successive byte ranges until the
service reports the item as created.
"""

import logging
from typing import Any

import requests

from ..domain.config import UploadConfig
from .drive_client import MAX_ERROR_BODY_CHARS, DriveClient
from .exceptions import UploadSessionError

logger = logging.getLogger(__name__)

# Statuses that end a session successfully; 202 means "send the next range"
COMPLETED_STATUSES = (200, 201)
CONTINUE_STATUS = 202


class ChunkedUploader:
    """Uploads a byte payload to a drive path in fixed-size chunks.

    There is no partial resume: any chunk answered with a status other than
    200, 201 or 202 aborts the whole upload.

    Example:
        >>> uploader = ChunkedUploader(drive_client, UploadConfig())
        >>> item = uploader.upload("PaperMind/paper.pdf", pdf_bytes)
    """

    def __init__(
        self,
        drive_client: DriveClient,
        config: UploadConfig,
        session: requests.Session | None = None,
        timeout: int = 120,
    ) -> None:
        """Initialize the uploader.

        Args:
            drive_client: Client used to open the upload session.
            config: Upload configuration (chunk size).
            session: Optional session for the chunk PUTs. Upload URLs are
                pre-authenticated, so this session carries no bearer token.
            timeout: Timeout in seconds for each chunk PUT.
        """
        self.drive_client = drive_client
        self.chunk_size = config.chunk_size
        self.timeout = timeout
        self._session = session or requests.Session()

    def upload(self, target_path: str, data: bytes) -> dict[str, Any]:
        """Upload ``data`` to ``target_path``.

        Args:
            target_path: File path relative to the drive root.
            data: Complete file content.

        Returns:
            The created item description returned by the final chunk.

        Raises:
            UploadSessionError: If the payload is empty, a chunk is rejected,
                or the session ends without reporting completion.
            DriveClientError: If the session cannot be opened.
        """
        total = len(data)
        if total == 0:
            raise UploadSessionError(f"Refusing to upload empty payload to {target_path}")

        upload_url = self.drive_client.create_upload_session(target_path)
        logger.info(
            f"Uploading {target_path} ({total} bytes) in chunks of {self.chunk_size}"
        )

        start = 0
        while start < total:
            end = min(start + self.chunk_size, total) - 1
            chunk = data[start : end + 1]
            headers = {
                "Content-Length": str(len(chunk)),
                "Content-Range": f"bytes {start}-{end}/{total}",
            }

            try:
                response = self._session.request(
                    "PUT", upload_url, data=chunk, headers=headers, timeout=self.timeout
                )
            except requests.RequestException as e:
                raise UploadSessionError(
                    f"Chunk {start}-{end} of {target_path} failed", original_exception=e
                ) from e

            logger.debug(
                f"Uploaded bytes {start}-{end}/{total} -> {response.status_code}"
            )

            if response.status_code in COMPLETED_STATUSES:
                logger.info(f"Upload of {target_path} completed")
                try:
                    return response.json()
                except ValueError:
                    return {}
            if response.status_code != CONTINUE_STATUS:
                body = (response.text or "")[:MAX_ERROR_BODY_CHARS]
                raise UploadSessionError(
                    f"Upload of {target_path} failed ({response.status_code}): {body}",
                    status_code=response.status_code,
                    body=body,
                )

            start += self.chunk_size

        raise UploadSessionError(
            f"Upload session for {target_path} ended without a completed item"
        )
