"""Session-scoped dashboard state.

Each view owns one session object for its lifetime:

- :class:`UploadSession` -- the selected file, the validation error, and the
  :class:`~finsight.status.ProcessingStateMachine` of the upload view.
- :class:`ResultsSession` -- the loaded analysis, the table filters, export
  and delete flows, and the notifications of the results view.

Nothing here is process-wide; closing a session discards its state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

from finsight.client import AnalysisClient
from finsight.errors import DeleteError, ExportError, FetchError, ValidationError
from finsight.export import export_csv, export_pdf
from finsight.filters import (
    available_categories,
    default_filters,
    filter_transactions,
    has_active_filters,
)
from finsight.models import (
    ALL,
    AdvancedFilters,
    AnalysisRecord,
    AppConfig,
    Notification,
    ProcessingState,
    Transaction,
    UploadCandidate,
)
from finsight.status import PollHandle, ProcessingStateMachine, sleep_ms
from finsight.validator import validate_path, validate_upload

logger = logging.getLogger(__name__)


class UploadSession:
    """State of the upload view.

    Args:
        machine: State machine driving the upload/analysis lifecycle.
        config: Supplies the accepted extensions and size limit.
    """

    def __init__(self, machine: ProcessingStateMachine, config: AppConfig | None = None) -> None:
        self.machine = machine
        self.config = config or AppConfig()
        self.candidate: UploadCandidate | None = None
        self.error: str | None = None

    @property
    def state(self) -> ProcessingState:
        return self.machine.state

    def select_file(self, path: Path) -> UploadCandidate | None:
        """Validate a local file and hold it as the candidate.

        Raises:
            FileNotFoundError: If *path* does not exist.
        """
        return self._select(
            lambda: validate_path(
                path,
                allowed_extensions=self.config.allowed_extensions,
                max_bytes=self.config.max_upload_bytes,
            )
        )

    def select(self, name: str, size_bytes: int) -> UploadCandidate | None:
        """Validate a file known only by name and size."""
        return self._select(
            lambda: validate_upload(
                name,
                size_bytes,
                allowed_extensions=self.config.allowed_extensions,
                max_bytes=self.config.max_upload_bytes,
            )
        )

    def analyze(self, handle: PollHandle | None = None) -> ProcessingState:
        """Upload the held candidate and follow it to a terminal state.

        Raises:
            ValueError: If no file is selected.
            UploadInProgressError: If a cycle is already running.
        """
        if self.candidate is None:
            raise ValueError("No file selected")
        return self.machine.run(self.candidate, handle)

    def reset(self) -> None:
        """Back to ``idle``: drop candidate, error, and statement id."""
        self.candidate = None
        self.error = None
        self.machine.reset()

    def _select(self, validate: Callable[[], UploadCandidate]) -> UploadCandidate | None:
        self.error = None
        self.candidate = None
        self.machine.reset()
        try:
            candidate = validate()
        except ValidationError as exc:
            logger.info("Rejected file: %s", exc)
            self.error = exc.user_message
            return None
        self.candidate = candidate
        return candidate


class ResultsSession:
    """State of the results view for one statement.

    Args:
        client: Backend client.
        statement_id: Statement to show.
        config: Supplies filter defaults, page size, and delays.
        sleep: Millisecond sleep used for the post-delete pause.
    """

    def __init__(
        self,
        client: AnalysisClient,
        statement_id: str,
        config: AppConfig | None = None,
        sleep: Callable[[float], None] = sleep_ms,
    ) -> None:
        self.client = client
        self.statement_id = statement_id
        self.config = config or AppConfig()
        self.sleep = sleep

        self.analysis: AnalysisRecord | None = None
        self.error: FetchError | None = None
        self.notifications: list[Notification] = []

        self.defaults = default_filters(
            self.config.filter_amount_min, self.config.filter_amount_max
        )
        self.search = ""
        self.category = ALL
        self.advanced: AdvancedFilters = self.defaults

        self.exporting = False
        self.delete_dialog_open = False
        self.closed = False

    # -- loading -------------------------------------------------------------

    def load(self) -> AnalysisRecord | None:
        """Fetch the analysis (and its transactions, if configured).

        On failure the error is kept in :attr:`error` and None is returned.
        A result arriving after :meth:`close` is discarded.
        """
        self.error = None
        try:
            record = self.client.fetch_analysis(self.statement_id)
            if self.config.fetch_transactions and not self.closed:
                transactions = self.client.fetch_transactions(
                    self.statement_id, page_size=self.config.transactions_page_size
                )
                record = replace(record, transactions=tuple(transactions))
        except FetchError as exc:
            if self.closed:
                return None
            logger.warning("Loading analysis %s failed: %s", self.statement_id, exc)
            self.error = exc
            return None

        if self.closed:
            logger.debug("Ignoring analysis for %s after close", self.statement_id)
            return None
        self.analysis = record
        return record

    def close(self) -> None:
        """Dispose of the session; late results are ignored afterwards."""
        self.closed = True

    # -- filtering -----------------------------------------------------------

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self.analysis.transactions if self.analysis else ()

    def filtered_transactions(self) -> list[Transaction]:
        return filter_transactions(self.transactions, self.search, self.category, self.advanced)

    def categories(self) -> list[str]:
        return available_categories(self.transactions)

    def has_active_filters(self) -> bool:
        return has_active_filters(self.advanced, self.defaults)

    def clear_filters(self) -> None:
        """Restore the advanced filters to their defaults."""
        self.advanced = self.defaults

    # -- exports -------------------------------------------------------------

    def export_pdf(self, output_dir: str | Path) -> Path | None:
        return self._export(export_pdf, output_dir, "PDF report")

    def export_csv(self, output_dir: str | Path) -> Path | None:
        return self._export(export_csv, output_dir, "CSV data")

    def _export(
        self,
        generator: Callable[[AnalysisRecord, str | Path], Path],
        output_dir: str | Path,
        label: str,
    ) -> Path | None:
        if self.analysis is None:
            self._notify("error", f"Cannot export {label}: no analysis loaded.")
            return None
        if self.exporting:
            self._notify("info", "An export is already in progress.")
            return None

        self.exporting = True
        try:
            path = generator(self.analysis, output_dir)
        except ExportError as exc:
            logger.warning("Export of %s failed: %s", label, exc)
            self._notify("error", exc.user_message)
            return None
        finally:
            self.exporting = False

        self._notify("success", f"{label} exported to {path}")
        return path

    # -- deletion ------------------------------------------------------------

    def request_delete(self) -> None:
        self.delete_dialog_open = True

    def cancel_delete(self) -> None:
        self.delete_dialog_open = False

    def delete(self) -> bool:
        """Delete the statement on the backend.

        On success, notifies, pauses for the redirect delay so the message
        can be read, closes the session and returns True.  On failure the
        delete dialog stays open for a retry and False is returned.
        """
        try:
            self.client.delete_statement(self.statement_id)
        except DeleteError as exc:
            logger.warning("Deleting %s failed: %s", self.statement_id, exc)
            self._notify("error", exc.user_message)
            self.delete_dialog_open = True
            return False

        self.delete_dialog_open = False
        self._notify("success", "Statement deleted successfully.")
        self.sleep(self.config.delete_redirect_delay_ms)
        self.close()
        return True

    def _notify(self, level: str, message: str) -> None:
        self.notifications.append(Notification(level=level, message=message))
