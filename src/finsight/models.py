"""Core data models for FinSight.

This module defines the dataclasses shared by every other module. It has
zero internal imports -- everything depends on it, but it depends on nothing
within the package.

Analysis data is loaded from the backend once and never mutated, so those
models are frozen and hold tuples rather than lists.  Session state
(:class:`ProcessingState`, :class:`AdvancedFilters`) is replaced wholesale
on every change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path

# ---------------------------------------------------------------------------
# Status and type vocabularies
# ---------------------------------------------------------------------------

IDLE = "idle"
UPLOADING = "uploading"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"

STATUSES = (IDLE, UPLOADING, PROCESSING, COMPLETED, FAILED)
ACTIVE_STATUSES = (UPLOADING, PROCESSING)
TERMINAL_STATUSES = (COMPLETED, FAILED)

CREDIT = "credit"
DEBIT = "debit"
ALL = "all"

TRANSACTION_TYPES = (ALL, DEBIT, CREDIT)
INSIGHT_TYPES = ("positive", "negative", "neutral")

BYTES_PER_MIB = 1024 * 1024


# ---------------------------------------------------------------------------
# Upload / processing
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UploadCandidate:
    """A file the user selected for upload, already validated.

    Attributes:
        name: File name as selected, e.g. ``"march.pdf"``.
        extension: Lowercase extension without the dot, e.g. ``"pdf"``.
        size_bytes: File size in bytes.
        path: Local path of the file, or None when only name and size are
            known (e.g. in tests).
    """

    name: str
    extension: str
    size_bytes: int
    path: Path | None = None

    @property
    def size_mib(self) -> float:
        """Size in MiB rounded to 2 decimals, for display."""
        return round(self.size_bytes / BYTES_PER_MIB, 2)


@dataclass(frozen=True)
class ProcessingState:
    """Snapshot of the upload/analysis lifecycle.

    Attributes:
        status: One of :data:`STATUSES`.
        progress: Percentage in ``[0, 100]``.
        message: Human-readable status line.
        estimated_time: Remaining seconds; only set while uploading or
            processing.
        statement_id: Backend identifier of the uploaded statement, once
            known.
    """

    status: str = IDLE
    progress: float = 0.0
    message: str = ""
    estimated_time: int | None = None
    statement_id: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass(frozen=True)
class StatusUpdate:
    """One poll result from a status source.

    ``status`` is ``processing``, ``completed`` or ``failed``; ``progress``
    and ``estimated_time`` are only meaningful while processing.
    """

    status: str
    progress: float = 0.0
    estimated_time: int | None = None
    message: str = ""


# ---------------------------------------------------------------------------
# Analysis record
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatementPeriod:
    start: date
    end: date


@dataclass(frozen=True)
class Summary:
    """Headline figures for a statement.

    All amounts are non-negative except ``net_flow``.
    """

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_flow: Decimal = Decimal("0")
    transaction_count: int = 0
    average_transaction: Decimal = Decimal("0")


@dataclass(frozen=True)
class CategoryAmount:
    category: str
    amount: Decimal
    percentage: float


@dataclass(frozen=True)
class MonthlyTrend:
    month: str
    income: Decimal
    expenses: Decimal


@dataclass(frozen=True)
class MerchantTotal:
    merchant: str
    amount: Decimal
    transactions: int


@dataclass(frozen=True)
class Insight:
    type: str
    title: str
    description: str


@dataclass(frozen=True)
class RecurringPayment:
    merchant: str
    amount: Decimal
    frequency: str
    next_expected: str


@dataclass(frozen=True)
class UnusualTransaction:
    id: str
    reason: str
    amount: Decimal
    description: str
    date: str = ""


@dataclass(frozen=True)
class Transaction:
    """A single itemized transaction of an analyzed statement.

    Attributes:
        id: Backend identifier.
        date: ISO date string as sent by the backend.
        description: Original description line.
        amount: Signed amount. Negative means debit, positive means credit.
        category: Category assigned by the backend.
        merchant: Merchant/payee name.
        type: ``"credit"`` or ``"debit"``.
        is_recurring: True if part of a detected recurring pattern.
        is_unusual: True if flagged as anomalous.
        unusual_reason: Why the transaction was flagged, or empty string.
    """

    id: str
    date: str
    description: str
    amount: Decimal
    category: str
    merchant: str
    type: str
    is_recurring: bool = False
    is_unusual: bool = False
    unusual_reason: str = ""


@dataclass(frozen=True)
class AnalysisRecord:
    """Normalized analysis of one statement.

    Built by :func:`finsight.normalize.normalize_analysis` and immutable
    afterwards.  ``transactions`` is filled separately from the paginated
    transaction listing.
    """

    statement_id: str
    file_name: str
    upload_date: str
    statement_period: StatementPeriod
    processing_time: int
    summary: Summary
    category_breakdown: tuple[CategoryAmount, ...] = ()
    monthly_trends: tuple[MonthlyTrend, ...] = ()
    top_merchants: tuple[MerchantTotal, ...] = ()
    insights: tuple[Insight, ...] = ()
    recurring_transactions: tuple[RecurringPayment, ...] = ()
    unusual_transactions: tuple[UnusualTransaction, ...] = ()
    transactions: tuple[Transaction, ...] = ()


# ---------------------------------------------------------------------------
# Dashboard state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AmountRange:
    min: Decimal
    max: Decimal


@dataclass(frozen=True)
class AdvancedFilters:
    """Non-text filters applied to the transaction table.

    Attributes:
        transaction_type: ``"all"``, ``"debit"`` or ``"credit"``.
        amount_range: Inclusive bounds compared against the signed amount.
        show_recurring: Only keep recurring transactions.
        show_unusual: Only keep unusual transactions.
    """

    transaction_type: str = ALL
    amount_range: AmountRange = field(
        default_factory=lambda: AmountRange(Decimal("-Infinity"), Decimal("Infinity"))
    )
    show_recurring: bool = False
    show_unusual: bool = False


@dataclass(frozen=True)
class Notification:
    """Transient user-visible message (``success``, ``error`` or ``info``)."""

    level: str
    message: str


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass
class AppConfig:
    """Application configuration loaded from ``config.toml``.

    Attributes:
        api_base_url: Root URL of the analysis backend.
        api_timeout: HTTP timeout in seconds.
        allowed_extensions: Accepted upload extensions, lowercase, no dot.
        max_upload_bytes: Largest accepted upload. Default: 10 MiB.
        upload_step_delay_ms: Delay between simulated upload progress steps.
        upload_mode: ``"simulated"`` or ``"api"``.
        processing_mode: ``"simulated"`` (wall-clock) or ``"api"`` (polls
            the status endpoint).
        poll_interval_ms: Delay between status polls.
        max_duration_ms: Duration of a simulated analysis.
        export_dir: Directory for PDF/CSV exports.
        delete_redirect_delay_ms: Pause after a successful delete before
            leaving the results view.
        fetch_transactions: Load the itemized transaction listing together
            with the analysis for ``show`` and ``export``.  The
            ``transactions`` command always loads it.
        transactions_page_size: Page size for the transaction listing.
        filter_amount_min: Default lower bound of the amount filter.
            Default: unbounded.
        filter_amount_max: Default upper bound of the amount filter.
            Default: unbounded.
    """

    api_base_url: str = "http://localhost:8000"
    api_timeout: float = 30.0
    allowed_extensions: list[str] = field(
        default_factory=lambda: ["pdf", "csv", "xlsx", "xls"]
    )
    max_upload_bytes: int = 10 * BYTES_PER_MIB
    upload_step_delay_ms: int = 200
    upload_mode: str = "simulated"
    processing_mode: str = "simulated"
    poll_interval_ms: int = 2500
    max_duration_ms: int = 120_000
    export_dir: str = "exports"
    delete_redirect_delay_ms: int = 1000
    fetch_transactions: bool = True
    transactions_page_size: int = 100
    filter_amount_min: Decimal = Decimal("-Infinity")
    filter_amount_max: Decimal = Decimal("Infinity")
