"""
Custom exception classes for client operations (Graph drive, Mistral, Notion).

This module defines domain-specific exceptions that provide clear error context
for API interactions, making error handling and debugging easier in the
orchestration layer.

Exception Hierarchy:
- DriveClientError (network failures and base for all drive errors)
  ├── DriveAPIError (non-2xx response, carries status_code and body)
  │   ├── DriveAuthError
  │   └── DriveItemNotFoundError
  └── UploadSessionError
- TextExtractionError
- MetadataClientError
- NotionClientError
  ├── NotionAPIError
  └── NotionSchemaError
"""


class PipelineClientError(Exception):
    """Base exception for all client errors.

    Carries a human-readable message and, optionally, the exception that
    caused it so the original context is never lost.
    """

    def __init__(self, message: str, original_exception: Exception | None = None):
        """Initialize the exception.

        Args:
            message: Human-readable error message describing what went wrong.
            original_exception: Optional original exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception

    def __str__(self) -> str:
        """Return string representation with context."""
        if self.original_exception:
            orig_type = type(self.original_exception).__name__
            orig_msg = str(self.original_exception)
            return f"{self.message} (Original: {orig_type}: {orig_msg})"
        return self.message


class DriveClientError(PipelineClientError):
    """Base exception for all drive client errors.

    Raised directly for network failures (connection errors, timeouts) where
    no HTTP status is available.
    """


class DriveAPIError(DriveClientError):
    """Exception raised when the Graph API answers with a non-2xx status.

    The remote status code and response body are kept so callers can report
    them (e.g. ``download_failed_404``).
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        body: str = "",
        original_exception: Exception | None = None,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message describing what went wrong.
            status_code: HTTP status returned by the Graph API.
            body: Response body (truncated) returned by the Graph API.
            original_exception: Optional original exception that caused this error.
        """
        super().__init__(message, original_exception)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        """Return string representation with status and body."""
        base = super().__str__()
        if self.body:
            return f"{base} [HTTP {self.status_code}: {self.body}]"
        return f"{base} [HTTP {self.status_code}]"


class DriveAuthError(DriveAPIError):
    """Exception raised for authentication/authorization failures.

    Raised when the bearer token is invalid, expired, or lacks the scopes
    needed for the operation (401 Unauthorized, 403 Forbidden).
    """

    pass


class DriveItemNotFoundError(DriveAPIError):
    """Exception raised when a drive item or path does not exist (404)."""

    pass


class UploadSessionError(DriveClientError):
    """Exception raised when a chunked upload session fails.

    Any chunk answered with a status other than 200, 201 or 202 aborts the
    whole upload; there is no resume.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str = "",
        original_exception: Exception | None = None,
    ):
        super().__init__(message, original_exception)
        self.status_code = status_code
        self.body = body


class TextExtractionError(PipelineClientError):
    """Exception raised when text cannot be extracted from a document.

    This covers data that is not a PDF, documents the parser cannot open,
    and OCR provider failures.
    """

    pass


class MetadataClientError(PipelineClientError):
    """Exception raised when the language model cannot produce metadata.

    Raised for API failures and for responses that are not a JSON object.
    The metadata generator catches it and falls back to its heuristic.
    """

    pass


class NotionClientError(PipelineClientError):
    """Base exception for all Notion exporter errors."""

    pass


class NotionAPIError(NotionClientError):
    """Exception raised when the Notion API answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        code: str = "",
        original_exception: Exception | None = None,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message describing what went wrong.
            status_code: HTTP status returned by Notion.
            code: Notion error code from the response body (e.g. 'validation_error').
            original_exception: Optional original exception that caused this error.
        """
        super().__init__(message, original_exception)
        self.status_code = status_code
        self.code = code


class NotionSchemaError(NotionClientError):
    """Exception raised when the declared property mapping does not match the
    target database schema (missing property or unsupported type)."""

    pass
