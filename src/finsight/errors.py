"""Error types for FinSight.

Every error carries a ``user_message``: the line shown to the user.  The
exception text itself may hold more technical detail for the logs.
"""

from __future__ import annotations

UPLOAD_FAILED_MESSAGE = "Failed to upload file. Please try again."
PROCESSING_FAILED_MESSAGE = "Processing failed. Please try uploading again."


class FinsightError(Exception):
    """Base class for all FinSight errors."""

    default_user_message = "Something went wrong."

    def __init__(self, message: str = "", user_message: str | None = None) -> None:
        super().__init__(message or user_message or self.default_user_message)
        self.user_message = user_message or self.default_user_message


class ValidationError(FinsightError):
    """A selected file was rejected before upload."""


class InvalidFileTypeError(ValidationError):
    default_user_message = "Please upload a PDF, CSV, or Excel file."


class FileTooLargeError(ValidationError):
    default_user_message = "File size must be less than 10MB."


class UploadInProgressError(FinsightError):
    """A new upload was started while another one is still running."""

    default_user_message = "An upload is already in progress."


class UploadError(FinsightError):
    """The upload step failed (network error, bad response, ...)."""

    default_user_message = UPLOAD_FAILED_MESSAGE


class ProcessingError(FinsightError):
    """Checking the analysis status failed or the backend reported failure."""

    default_user_message = PROCESSING_FAILED_MESSAGE


class FetchError(FinsightError):
    """Loading analysis data from the backend failed."""

    default_user_message = "Could not load the analysis."


class HttpError(FetchError):
    """The backend answered with a non-success status."""

    def __init__(self, status: int, reason: str = "", url: str = "") -> None:
        self.status = status
        self.reason = reason
        self.url = url
        text = f"HTTP {status} {reason}".rstrip()
        detail = f"{text} for {url}" if url else text
        super().__init__(detail, user_message=f"Failed to load analysis: {text}")


class NetworkError(FetchError):
    """The backend could not be reached."""

    default_user_message = "Could not reach the analysis service."


class ExportError(FinsightError):
    default_user_message = "Export failed."


class DeleteError(FinsightError):
    default_user_message = "Failed to delete the statement. Please try again."
