"""HTTP client for the financial-analysis backend.

Wraps the backend's statement endpoints with httpx:

- ``POST   /v1/statements``                    upload a statement file
- ``GET    /v1/statements/{id}/status``        processing status
- ``GET    /v1/statements/{id}/analysis``      analysis summary
- ``GET    /v1/statements/{id}/transactions``  paginated transaction listing
- ``DELETE /v1/statements/{id}``               delete a statement

Transport failures and non-2xx answers are translated into the
:mod:`finsight.errors` taxonomy; payload mapping is delegated to
:mod:`finsight.normalize`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx

from finsight.errors import (
    DeleteError,
    FetchError,
    HttpError,
    NetworkError,
    ProcessingError,
    UploadError,
)
from finsight.models import AnalysisRecord, Transaction
from finsight.normalize import normalize_analysis, normalize_transactions

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"


class AnalysisClient:
    """Client for one analysis backend.

    Args:
        base_url: Backend root URL, e.g. ``"https://api.example.com"``.
        timeout: HTTP request timeout in seconds. Default: 30.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def statement_url(self, statement_id: str, suffix: str = "") -> str:
        return f"{self.base_url}/v1/statements/{statement_id}{suffix}"

    # -- analysis ------------------------------------------------------------

    def fetch_analysis(self, statement_id: str) -> AnalysisRecord:
        """Fetch and normalize the analysis of *statement_id*.

        Raises:
            HttpError: The backend answered with a non-2xx status.
            NetworkError: The backend could not be reached.
            FetchError: The body is not valid JSON.
        """
        body = self._get_json(self.statement_url(statement_id, "/analysis"))
        return normalize_analysis(body, statement_id=statement_id)

    def fetch_transactions(self, statement_id: str, page_size: int = 100) -> list[Transaction]:
        """Fetch every page of the itemized transaction listing.

        Pages are requested until the reported ``totalPages`` is reached or
        a page comes back empty.

        Raises:
            HttpError, NetworkError, FetchError: As for :meth:`fetch_analysis`.
        """
        url = self.statement_url(statement_id, "/transactions")
        transactions: list[Transaction] = []
        page = 1
        while True:
            body = self._get_json(url, params={"page": page, "limit": page_size})
            data = body.get("data") if isinstance(body, dict) else None
            data = data if isinstance(data, dict) else {}
            rows = normalize_transactions(data.get("transactions"), offset=len(transactions))
            transactions.extend(rows)

            pagination = data.get("pagination")
            total_pages = pagination.get("totalPages", 1) if isinstance(pagination, dict) else 1
            if not rows or not isinstance(total_pages, int) or page >= total_pages:
                break
            page += 1

        logger.debug("Fetched %d transactions for %s", len(transactions), statement_id)
        return transactions

    # -- status --------------------------------------------------------------

    def get_status(self, statement_id: str) -> dict[str, Any]:
        """Return the ``data`` object of the status endpoint.

        Raises:
            ProcessingError: On any HTTP, transport or decoding failure.
        """
        try:
            body = self._get_json(self.statement_url(statement_id, "/status"))
        except HttpError as exc:
            raise ProcessingError(
                str(exc),
                user_message=f"Status check failed: HTTP {exc.status} {exc.reason}".rstrip(),
            ) from exc
        except NetworkError as exc:
            raise ProcessingError(
                str(exc),
                user_message="Lost connection while checking analysis status. "
                "Please try uploading again.",
            ) from exc
        except FetchError as exc:
            raise ProcessingError(
                str(exc),
                user_message="The analysis service sent an unreadable status response. "
                "Please try uploading again.",
            ) from exc

        data = body.get("data") if isinstance(body, dict) else None
        return data if isinstance(data, dict) else {}

    # -- upload / delete -----------------------------------------------------

    def upload_statement(self, path: Path) -> str:
        """Upload the file at *path* and return the new statement id.

        Raises:
            UploadError: On any HTTP, transport or decoding failure, or when
                the response carries no statement id.
        """
        url = f"{self.base_url}/v1/statements"
        path = Path(path)
        try:
            with open(path, "rb") as f:
                response = httpx.post(
                    url,
                    files={"file": (path.name, f)},
                    timeout=self.timeout,
                )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("Upload returned HTTP %d", exc.response.status_code)
            raise UploadError(
                f"HTTP {exc.response.status_code} {exc.response.reason_phrase}",
                user_message=(
                    f"Upload rejected by the server (HTTP {exc.response.status_code}). "
                    "Please try again."
                ),
            ) from exc
        except httpx.TimeoutException as exc:
            logger.warning("Upload timed out")
            raise UploadError(
                str(exc), user_message="Upload timed out. Please try again."
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Upload failed: %s", exc)
            raise UploadError(
                str(exc),
                user_message="Could not reach the analysis service. Please try again.",
            ) from exc
        except (OSError, ValueError) as exc:
            raise UploadError(str(exc)) from exc

        data = body.get("data") if isinstance(body, dict) else None
        data = data if isinstance(data, dict) else {}
        statement_id = data.get("statementId") or data.get("id")
        if not statement_id:
            raise UploadError("Upload response carried no statement id")
        return str(statement_id)

    def delete_statement(self, statement_id: str) -> None:
        """Delete *statement_id* on the backend.

        Raises:
            DeleteError: On any non-2xx answer or transport failure.
        """
        url = self.statement_url(statement_id)
        try:
            response = httpx.delete(url, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Delete of %s returned HTTP %d", statement_id, exc.response.status_code
            )
            raise DeleteError(
                f"HTTP {exc.response.status_code} {exc.response.reason_phrase}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Delete of %s failed: %s", statement_id, exc)
            raise DeleteError(str(exc)) from exc

    # -- internals -----------------------------------------------------------

    def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = httpx.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("GET %s returned HTTP %d", url, exc.response.status_code)
            raise HttpError(
                exc.response.status_code, exc.response.reason_phrase, url=url
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("GET %s failed: %s", url, exc)
            raise NetworkError(str(exc)) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(f"Invalid JSON from {url}: {exc}") from exc
