"""
Microsoft Graph drive client for the PaperMind pipeline.

This module provides a thin request wrapper over the Graph drive API with the
operations the watch tick needs: listing a folder, downloading an item,
relocating an item and writing content by path. Every instance is bound to the
bearer token supplied by its caller; the client never refreshes, stores or
retries anything.
"""

import logging
from typing import Any
from urllib.parse import quote

import requests

from ..domain.config import DriveConfig
from ..domain.models import DriveItem
from .exceptions import (
    DriveAPIError,
    DriveAuthError,
    DriveClientError,
    DriveItemNotFoundError,
)

logger = logging.getLogger(__name__)

# Response bodies attached to exceptions are clipped to keep logs readable
MAX_ERROR_BODY_CHARS = 500


def encode_drive_path(path: str) -> str:
    """Percent-encode a drive path for use inside ``root:{path}:`` segments.

    Slashes are preserved; a single leading slash is guaranteed.
    """
    normalized = "/" + path.strip().strip("/")
    return quote(normalized, safe="/")


class DriveClient:
    """Client for the Microsoft Graph drive of the signed-in user.

    Example:
        >>> client = DriveClient(DriveConfig(), access_token="eyJ0...")
        >>> items = client.list_children("/Documentos/PaperMind/Entrada")
        >>> data = client.download(items[0].id)
    """

    def __init__(
        self,
        config: DriveConfig,
        access_token: str,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the drive client.

        Args:
            config: Drive configuration (API root, timeout, page size).
            access_token: Bearer token supplied by the caller.
            session: Optional pre-built session (used by tests).

        Raises:
            DriveClientError: If the access token is empty.
        """
        if not access_token or not access_token.strip():
            raise DriveClientError("A Microsoft Graph access token is required")

        self.config = config
        self._session = session or requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {access_token.strip()}"})

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """Centralized API request handler.

        Constructs the full URL, makes the request, maps error statuses to
        typed exceptions and returns the response object.

        Args:
            method: HTTP method (GET, POST, PATCH, PUT).
            endpoint: API path below the configured base URL (e.g. "/me/drive/...").
            **kwargs: Additional arguments passed to requests.Session.request().

        Returns:
            Response object for a 2xx answer.

        Raises:
            DriveAuthError: On 401/403.
            DriveItemNotFoundError: On 404.
            DriveAPIError: On any other non-2xx status.
            DriveClientError: On network failures.
        """
        url = f"{self.config.base_url}{endpoint}"
        kwargs.setdefault("timeout", self.config.timeout)

        try:
            response = self._session.request(method, url, **kwargs)
        except requests.RequestException as e:
            error_msg = f"Request failed: {method} {endpoint}"
            logger.error(f"{error_msg}: {e}")
            raise DriveClientError(error_msg, original_exception=e) from e

        logger.debug(f"Graph request: {method} {endpoint} -> {response.status_code}")

        if 200 <= response.status_code < 300:
            return response

        body = (response.text or "")[:MAX_ERROR_BODY_CHARS]
        if response.status_code in (401, 403):
            error_cls: type[DriveAPIError] = DriveAuthError
            error_msg = f"Authentication failed: {method} {endpoint}"
        elif response.status_code == 404:
            error_cls = DriveItemNotFoundError
            error_msg = f"Resource not found: {method} {endpoint}"
        else:
            error_cls = DriveAPIError
            error_msg = f"Graph API error: {method} {endpoint}"

        raise error_cls(error_msg, status_code=response.status_code, body=body)

    def list_children(self, folder_path: str) -> list[DriveItem]:
        """List the children of a drive folder.

        A folder that does not exist yet yields an empty list so the first run
        against a fresh drive is well-defined.

        Args:
            folder_path: Folder path relative to the drive root.

        Returns:
            Drive items in the order returned by Graph (at most
            ``config.list_page_size``).

        Raises:
            DriveAPIError: If the listing fails for any reason other than 404.
            DriveClientError: On network failures.
        """
        endpoint = f"/me/drive/root:{encode_drive_path(folder_path)}:/children"
        try:
            response = self._make_request(
                "GET", endpoint, params={"$top": self.config.list_page_size}
            )
        except DriveItemNotFoundError:
            logger.info(f"Folder {folder_path} does not exist yet; treating as empty")
            return []

        try:
            payload = response.json()
        except ValueError as e:
            raise DriveClientError(
                f"Invalid JSON listing children of {folder_path}", original_exception=e
            ) from e

        items = [
            DriveItem.from_graph(entry)
            for entry in payload.get("value", [])
            if isinstance(entry, dict)
        ]
        logger.debug(f"Listed {len(items)} items in {folder_path}")
        return items

    def download(self, item_id: str) -> bytes:
        """Download the content of a drive item.

        Args:
            item_id: Drive item identifier.

        Returns:
            Raw item bytes.

        Raises:
            DriveAPIError: On any non-2xx answer (status kept on the exception).
            DriveClientError: On network failures.
        """
        endpoint = f"/me/drive/items/{quote(item_id, safe='')}/content"
        response = self._make_request("GET", endpoint)
        return response.content

    def move_item(
        self, item_id: str, destination_folder_path: str, new_name: str | None = None
    ) -> DriveItem:
        """Relocate a drive item into another folder, optionally renaming it.

        Args:
            item_id: Drive item identifier.
            destination_folder_path: Target folder path relative to the drive root.
            new_name: Optional new item name.

        Returns:
            The relocated item as reported by Graph (with its new web URL).

        Raises:
            DriveAPIError: If Graph rejects the move.
            DriveClientError: On network failures.
        """
        body: dict[str, Any] = {
            "parentReference": {"path": f"/drive/root:{encode_drive_path(destination_folder_path)}"}
        }
        if new_name:
            body["name"] = new_name

        endpoint = f"/me/drive/items/{quote(item_id, safe='')}"
        response = self._make_request("PATCH", endpoint, json=body)
        logger.debug(f"Moved item {item_id} to {destination_folder_path}")
        return self._item_from_response(response, fallback_id=item_id, fallback_name=new_name)

    def put_content(self, path: str, data: bytes) -> DriveItem:
        """Create or replace a file at ``path`` with ``data`` in a single request.

        Args:
            path: File path relative to the drive root.
            data: File content.

        Returns:
            The created or replaced item.

        Raises:
            DriveAPIError: If Graph rejects the write.
            DriveClientError: On network failures.
        """
        endpoint = f"/me/drive/root:{encode_drive_path(path)}:/content"
        response = self._make_request(
            "PUT",
            endpoint,
            data=data,
            headers={"Content-Type": "application/octet-stream"},
        )
        return self._item_from_response(response, fallback_name=path.rsplit("/", 1)[-1])

    def get_content(self, path: str) -> bytes | None:
        """Download a file by path.

        Args:
            path: File path relative to the drive root.

        Returns:
            The file bytes, or None when no file exists at ``path``.

        Raises:
            DriveAPIError: On any non-2xx answer other than 404.
            DriveClientError: On network failures.
        """
        endpoint = f"/me/drive/root:{encode_drive_path(path)}:/content"
        try:
            response = self._make_request("GET", endpoint)
        except DriveItemNotFoundError:
            return None
        return response.content

    def get_item(self, path: str) -> DriveItem:
        """Fetch the item at ``path``.

        Raises:
            DriveItemNotFoundError: If nothing exists at ``path``.
        """
        endpoint = f"/me/drive/root:{encode_drive_path(path)}"
        response = self._make_request("GET", endpoint)
        return self._item_from_response(response)

    def ensure_folder(self, folder_path: str) -> str:
        """Make sure a folder path exists, creating missing segments.

        Args:
            folder_path: Folder path relative to the drive root.

        Returns:
            Identifier of the (possibly new) folder.
        """
        try:
            return self.get_item(folder_path).id
        except DriveItemNotFoundError:
            pass

        parent_id = "root"
        current = ""
        for part in [p for p in folder_path.split("/") if p]:
            current = f"{current}/{part}"
            try:
                parent_id = self.get_item(current).id
                continue
            except DriveItemNotFoundError:
                pass

            response = self._make_request(
                "POST",
                f"/me/drive/items/{quote(parent_id, safe='')}/children",
                json={
                    "name": part,
                    "folder": {},
                    "@microsoft.graph.conflictBehavior": "rename",
                },
            )
            parent_id = self._item_from_response(response).id
            logger.info(f"Created drive folder {current}")
        return parent_id

    def create_upload_session(self, path: str) -> str:
        """Open a resumable upload session that replaces any existing file.

        Args:
            path: Target file path relative to the drive root.

        Returns:
            The pre-authenticated upload URL for the session.

        Raises:
            DriveAPIError: If Graph refuses to open the session.
            DriveClientError: If the answer carries no upload URL.
        """
        endpoint = f"/me/drive/root:{encode_drive_path(path)}:/createUploadSession"
        response = self._make_request(
            "POST",
            endpoint,
            json={
                "item": {
                    "@microsoft.graph.conflictBehavior": "replace",
                    "name": path.rstrip("/").rsplit("/", 1)[-1],
                }
            },
        )
        try:
            upload_url = response.json().get("uploadUrl")
        except ValueError as e:
            raise DriveClientError(
                f"Invalid upload session response for {path}", original_exception=e
            ) from e
        if not upload_url:
            raise DriveClientError(f"Upload session for {path} returned no uploadUrl")
        return str(upload_url)

    @staticmethod
    def _item_from_response(
        response: requests.Response,
        fallback_id: str = "",
        fallback_name: str | None = None,
    ) -> DriveItem:
        """Parse a driveItem body, tolerating empty or non-JSON answers."""
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            return DriveItem(id=fallback_id, name=fallback_name or "")
        return DriveItem.from_graph(payload)
