"""Upload/processing status state machine.

Tracks one statement through ``idle -> uploading -> processing ->
completed | failed``.  Two seams make the lifecycle pluggable, in the same
way an adapter protocol hides a remote service:

- an :class:`Uploader` moves the file and reports progress steps;
- a :class:`StatusSource` answers each processing poll.

:class:`SimulatedUploader` and :class:`SimulatedStatusSource` drive the
lifecycle from a timer alone; :class:`ApiUploader` and
:class:`ApiStatusSource` talk to the backend.  Time is injected (``clock``
returns milliseconds, ``sleep`` takes milliseconds) so the whole lifecycle
runs deterministically in tests.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import replace
from typing import Protocol

from finsight.client import AnalysisClient
from finsight.errors import (
    PROCESSING_FAILED_MESSAGE,
    UPLOAD_FAILED_MESSAGE,
    ProcessingError,
    UploadError,
    UploadInProgressError,
)
from finsight.models import (
    COMPLETED,
    FAILED,
    PROCESSING,
    UPLOADING,
    ProcessingState,
    StatusUpdate,
    UploadCandidate,
)

logger = logging.getLogger(__name__)

UPLOAD_ESTIMATE_SECONDS = 30
PROCESSING_ESTIMATE_SECONDS = 120
UPLOAD_STEP_PERCENT = 10
PROCESSING_PROGRESS_CAP = 95.0

UPLOADING_MESSAGE = "Uploading your bank statement..."
UPLOAD_DONE_MESSAGE = "Upload complete! Starting analysis..."
PROCESSING_MESSAGE = "Your statements are being analyzed. Please hold on for insights."
COMPLETED_MESSAGE = "Analysis complete! Your financial insights are ready."

Clock = Callable[[], float]
Sleep = Callable[[float], None]


def monotonic_ms() -> float:
    return time.monotonic() * 1000


def sleep_ms(ms: float) -> None:
    time.sleep(ms / 1000)


def progress_message(progress: float) -> str:
    """Return the status line for a processing *progress* percentage."""
    if progress < 30:
        return "Extracting transaction data..."
    if progress < 60:
        return "Categorizing transactions with AI..."
    if progress < 90:
        return "Generating insights and trends..."
    return "Finalizing your analysis..."


def clamp_progress(progress: float) -> float:
    return max(0.0, min(100.0, float(progress)))


class PollHandle:
    """Cancellation token for a running upload/poll chain.

    The machine checks :attr:`cancelled` between upload steps and before
    every poll reschedule; once cancelled, no further transition happens.
    """

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


# ---------------------------------------------------------------------------
# Uploaders
# ---------------------------------------------------------------------------


class Uploader(Protocol):
    """Moves a candidate file to the backend.

    Implementations call *on_progress* with upload percentages and return
    the statement id.  On failure they raise :class:`UploadError`.
    """

    def upload(
        self,
        candidate: UploadCandidate,
        on_progress: Callable[[float], None],
        handle: PollHandle,
    ) -> str: ...


class SimulatedUploader:
    """Reports 0, 10, ... 100 with a fixed delay between steps.

    Args:
        step_delay_ms: Delay before each step. Default: 200.
        sleep: Millisecond sleep.
        wall_clock_ms: Epoch-millisecond clock for ``stmt_<ms>`` ids.
    """

    def __init__(
        self,
        step_delay_ms: float = 200,
        sleep: Sleep = sleep_ms,
        wall_clock_ms: Clock = lambda: time.time() * 1000,
    ) -> None:
        self.step_delay_ms = step_delay_ms
        self.sleep = sleep
        self.wall_clock_ms = wall_clock_ms

    def upload(
        self,
        candidate: UploadCandidate,
        on_progress: Callable[[float], None],
        handle: PollHandle,
    ) -> str:
        for step in range(0, 101, UPLOAD_STEP_PERCENT):
            if handle.cancelled:
                return ""
            self.sleep(self.step_delay_ms)
            on_progress(step)
        return f"stmt_{int(self.wall_clock_ms())}"


class ApiUploader:
    """Uploads the candidate's file through :class:`AnalysisClient`."""

    def __init__(self, client: AnalysisClient) -> None:
        self.client = client

    def upload(
        self,
        candidate: UploadCandidate,
        on_progress: Callable[[float], None],
        handle: PollHandle,
    ) -> str:
        if candidate.path is None:
            raise UploadError(f"No local file for {candidate.name!r}")
        on_progress(0)
        statement_id = self.client.upload_statement(candidate.path)
        on_progress(100)
        return statement_id


# ---------------------------------------------------------------------------
# Status sources
# ---------------------------------------------------------------------------


class StatusSource(Protocol):
    """Answers one processing poll.

    *elapsed_ms* is the time since processing started.  Implementations
    return a :class:`StatusUpdate`; on failure they raise
    :class:`ProcessingError`.
    """

    def check(self, statement_id: str, elapsed_ms: float) -> StatusUpdate: ...


class SimulatedStatusSource:
    """Derives progress from elapsed wall-clock time only.

    Progress is ``min(elapsed / max_duration * 100, 95)``; completion is
    reported once *max_duration_ms* has elapsed.
    """

    def __init__(self, max_duration_ms: float = 120_000) -> None:
        self.max_duration_ms = max_duration_ms

    def check(self, statement_id: str, elapsed_ms: float) -> StatusUpdate:
        if elapsed_ms >= self.max_duration_ms:
            return StatusUpdate(status=COMPLETED, progress=100.0)

        progress = min(elapsed_ms / self.max_duration_ms * 100, PROCESSING_PROGRESS_CAP)
        remaining = math.ceil((self.max_duration_ms - elapsed_ms) / 1000)
        return StatusUpdate(
            status=PROCESSING,
            progress=progress,
            estimated_time=remaining,
            message=progress_message(progress),
        )


# Backend status values and what they mean for the lifecycle.
_API_STATUS_MAP = {
    "completed": COMPLETED,
    "complete": COMPLETED,
    "done": COMPLETED,
    "failed": FAILED,
    "error": FAILED,
}


class ApiStatusSource:
    """Polls ``GET /v1/statements/{id}/status``.

    Any backend status other than the completed/failed values listed in
    ``_API_STATUS_MAP`` counts as still processing.  Progress is capped at
    95 until the backend reports completion.
    """

    def __init__(self, client: AnalysisClient) -> None:
        self.client = client

    def check(self, statement_id: str, elapsed_ms: float) -> StatusUpdate:
        data = self.client.get_status(statement_id)
        raw_status = str(data.get("status", "")).lower()
        status = _API_STATUS_MAP.get(raw_status, PROCESSING)

        if status == FAILED:
            detail = data.get("message") or data.get("error") or ""
            raise ProcessingError(
                f"Backend reported failure for {statement_id}: {detail}",
                user_message="The analysis service could not process this statement. "
                "Please try uploading again.",
            )
        if status == COMPLETED:
            return StatusUpdate(status=COMPLETED, progress=100.0)

        try:
            progress = float(data.get("progress", 0))
        except (TypeError, ValueError):
            progress = 0.0
        if not math.isfinite(progress):
            progress = 0.0
        progress = min(clamp_progress(progress), PROCESSING_PROGRESS_CAP)

        estimated = data.get("estimatedTime")
        return StatusUpdate(
            status=PROCESSING,
            progress=progress,
            estimated_time=estimated if type(estimated) is int else None,
            message=progress_message(progress),
        )


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class ProcessingStateMachine:
    """Drives a :class:`ProcessingState` through one upload/analysis cycle.

    Args:
        uploader: Moves the file; see :class:`Uploader`.
        status_source: Answers processing polls; see :class:`StatusSource`.
        poll_interval_ms: Delay between the end of one poll and the next.
        clock: Millisecond monotonic clock.
        sleep: Millisecond sleep.
    """

    def __init__(
        self,
        uploader: Uploader,
        status_source: StatusSource,
        poll_interval_ms: float = 2500,
        clock: Clock = monotonic_ms,
        sleep: Sleep = sleep_ms,
    ) -> None:
        self.uploader = uploader
        self.status_source = status_source
        self.poll_interval_ms = poll_interval_ms
        self.clock = clock
        self.sleep = sleep
        self.state = ProcessingState()
        self._handle: PollHandle | None = None
        self._listeners: list[Callable[[ProcessingState], None]] = []

    def subscribe(self, listener: Callable[[ProcessingState], None]) -> None:
        """Call *listener* with every new state."""
        self._listeners.append(listener)

    @property
    def is_busy(self) -> bool:
        return self.state.is_active

    # -- transitions ---------------------------------------------------------

    def run(self, candidate: UploadCandidate, handle: PollHandle | None = None) -> ProcessingState:
        """Run a full cycle for *candidate* and return the final state.

        Returns early, leaving the state as it was, when *handle* is
        cancelled.

        Raises:
            UploadInProgressError: If a cycle is already uploading or
                processing.
        """
        if self.is_busy:
            raise UploadInProgressError(
                f"Cannot start {candidate.name!r}: status is {self.state.status}"
            )
        handle = handle or PollHandle()
        self._handle = handle

        self._set(
            ProcessingState(
                status=UPLOADING,
                progress=0.0,
                message=UPLOADING_MESSAGE,
                estimated_time=UPLOAD_ESTIMATE_SECONDS,
            )
        )
        try:
            statement_id = self.uploader.upload(candidate, self._on_upload_progress, handle)
        except UploadError as exc:
            logger.warning("Upload of %s failed: %s", candidate.name, exc)
            self._fail(exc.user_message)
            return self.state
        except Exception:
            logger.exception("Upload of %s failed unexpectedly", candidate.name)
            self._fail(UPLOAD_FAILED_MESSAGE)
            return self.state
        if handle.cancelled:
            logger.info("Upload of %s cancelled", candidate.name)
            return self.state

        self._set(
            ProcessingState(
                status=PROCESSING,
                progress=0.0,
                message=PROCESSING_MESSAGE,
                estimated_time=PROCESSING_ESTIMATE_SECONDS,
                statement_id=statement_id,
            )
        )
        self._poll_until_done(statement_id, handle)
        return self.state

    def cancel(self) -> None:
        """Stop the running chain, if any.

        The state is left as it was, so :attr:`is_busy` stays True for a
        chain cancelled mid-flight; call :meth:`reset` before starting again.
        """
        if self._handle is not None:
            self._handle.cancel()

    def reset(self) -> None:
        """Cancel any running chain and return to ``idle``."""
        self.cancel()
        self._handle = None
        self._set(ProcessingState())

    # -- internals -----------------------------------------------------------

    def _on_upload_progress(self, progress: float) -> None:
        progress = clamp_progress(progress)
        if progress < self.state.progress:
            return
        message = UPLOAD_DONE_MESSAGE if progress >= 100 else UPLOADING_MESSAGE
        self._set(replace(self.state, progress=progress, message=message))

    def _poll_until_done(self, statement_id: str, handle: PollHandle) -> None:
        started = self.clock()
        while not handle.cancelled:
            elapsed = self.clock() - started
            try:
                update = self.status_source.check(statement_id, elapsed)
            except ProcessingError as exc:
                logger.warning("Processing of %s failed: %s", statement_id, exc)
                self._fail(exc.user_message or PROCESSING_FAILED_MESSAGE)
                return
            except Exception:
                logger.exception("Status check for %s failed unexpectedly", statement_id)
                self._fail(PROCESSING_FAILED_MESSAGE)
                return

            if update.status == COMPLETED:
                self._set(
                    ProcessingState(
                        status=COMPLETED,
                        progress=100.0,
                        message=COMPLETED_MESSAGE,
                        statement_id=statement_id,
                    )
                )
                return
            if update.status == FAILED:
                self._fail(update.message or PROCESSING_FAILED_MESSAGE)
                return

            progress = max(self.state.progress, clamp_progress(update.progress))
            self._set(
                replace(
                    self.state,
                    progress=progress,
                    estimated_time=update.estimated_time,
                    message=update.message or progress_message(progress),
                )
            )

            if handle.cancelled:
                break
            self.sleep(self.poll_interval_ms)

        logger.info("Polling for %s cancelled", statement_id)

    def _fail(self, message: str) -> None:
        self._set(ProcessingState(status=FAILED, progress=0.0, message=message))

    def _set(self, state: ProcessingState) -> None:
        if state.status != self.state.status:
            logger.info("Status %s -> %s", self.state.status, state.status)
        self.state = state
        for listener in self._listeners:
            listener(state)

