"""Mapping of loosely-typed backend payloads onto the strict analysis models.

The analysis endpoint returns nested JSON where any level may be missing or
have the wrong type.  :func:`normalize_analysis` is a pure, total function:
it never raises on a missing or malformed field and always produces the same
:class:`~finsight.models.AnalysisRecord` for the same payload.

Default table (field -> value used when absent or malformed):

==========================================  ==============================
``statement_id``                            the id passed by the caller
``file_name``                               ``""``
``upload_date``                             ``""``
``statement_period``                        :data:`FALLBACK_PERIOD`
``processing_time``                         ``0``
``summary.*`` (amounts and counts)          ``0``
``category_breakdown``, ``monthly_trends``  ``()``
``top_merchants``, ``insights``             ``()``
``recurring_transactions``                  ``()``
``unusual_transactions``                    ``()``
``transactions``                            ``()`` (always; listed separately)
insight given as a bare string              ``neutral`` / ``"Insight"``
==========================================  ==============================
"""

from __future__ import annotations

import math
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from finsight.models import (
    CREDIT,
    DEBIT,
    INSIGHT_TYPES,
    AnalysisRecord,
    CategoryAmount,
    Insight,
    MerchantTotal,
    MonthlyTrend,
    RecurringPayment,
    StatementPeriod,
    Summary,
    Transaction,
    UnusualTransaction,
)

FALLBACK_PERIOD = StatementPeriod(start=date(1970, 1, 1), end=date(1970, 1, 31))
DEFAULT_INSIGHT_TITLE = "Insight"
DEFAULT_INSIGHT_TYPE = "neutral"

DEFAULTS: dict[str, Any] = {
    "file_name": "",
    "upload_date": "",
    "statement_period": FALLBACK_PERIOD,
    "processing_time": 0,
    "summary": Summary(),
    "category_breakdown": (),
    "monthly_trends": (),
    "top_merchants": (),
    "insights": (),
    "recurring_transactions": (),
    "unusual_transactions": (),
    "transactions": (),
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_analysis(payload: Any, statement_id: str = "") -> AnalysisRecord:
    """Build an :class:`AnalysisRecord` from a raw analysis response body.

    Args:
        payload: Decoded JSON of ``GET /v1/statements/{id}/analysis``.
            Expected shape: ``{"data": {"statement": {...}, "summary":
            {...}, "analysis": {...}}}``; anything else degrades to the
            defaults.
        statement_id: Id used when the payload does not carry one.

    Returns:
        The normalized record.  ``transactions`` is always empty.
    """
    data = _dict(_dict(payload).get("data"))
    statement = _dict(data.get("statement"))
    summary = _dict(data.get("summary"))
    analysis = _dict(data.get("analysis"))
    patterns = _dict(analysis.get("patterns"))

    return AnalysisRecord(
        statement_id=_str(_first(statement, "id", "statementId"), statement_id),
        file_name=_str(_first(statement, "fileName", "filename"), DEFAULTS["file_name"]),
        upload_date=_str(_first(statement, "uploadDate", "uploadedAt"), DEFAULTS["upload_date"]),
        statement_period=_period(statement),
        processing_time=_int(statement.get("processingTime")),
        summary=Summary(
            total_income=_decimal(summary.get("totalIncome")),
            total_expenses=_decimal(summary.get("totalExpenses")),
            net_flow=_decimal(summary.get("netFlow")),
            transaction_count=_int(summary.get("transactionCount")),
            average_transaction=_decimal(summary.get("averageTransaction")),
        ),
        category_breakdown=tuple(
            CategoryAmount(
                category=_str(_first(item, "category", "name")),
                amount=_decimal(item.get("amount")),
                percentage=_float(item.get("percentage")),
            )
            for item in _dicts(analysis.get("categories"))
        ),
        monthly_trends=tuple(
            MonthlyTrend(
                month=_str(item.get("month")),
                income=_decimal(item.get("income")),
                expenses=_decimal(item.get("expenses")),
            )
            for item in _dicts(analysis.get("monthlyBreakdown"))
        ),
        top_merchants=tuple(
            MerchantTotal(
                merchant=_str(_first(item, "merchant", "name")),
                amount=_decimal(item.get("amount")),
                transactions=_int(_first(item, "transactions", "count")),
            )
            for item in _dicts(analysis.get("topMerchants"))
        ),
        insights=tuple(
            insight
            for insight in map(_insight, _list(analysis.get("insights")))
            if insight is not None
        ),
        recurring_transactions=tuple(
            RecurringPayment(
                merchant=_str(item.get("merchant")),
                amount=_decimal(item.get("amount")),
                frequency=_str(item.get("frequency")),
                next_expected=_str(item.get("nextExpected")),
            )
            for item in _dicts(patterns.get("recurringPayments"))
        ),
        unusual_transactions=tuple(
            UnusualTransaction(
                id=_str(item.get("id"), f"unusual_{index + 1}"),
                reason=_str(item.get("reason")),
                amount=_decimal(item.get("amount")),
                description=_str(item.get("description")),
                date=_str(item.get("date")),
            )
            for index, item in enumerate(_dicts(patterns.get("unusualTransactions")))
        ),
        transactions=DEFAULTS["transactions"],
    )


def normalize_transaction(raw: Any, index: int = 0) -> Transaction:
    """Build a :class:`Transaction` from one row of the transaction listing.

    ``type`` falls back to the sign of the amount when the backend does not
    send a valid one.  *index* seeds the id of rows without one.
    """
    item = _dict(raw)
    amount = _decimal(item.get("amount"))
    txn_type = _str(item.get("type")).lower()
    if txn_type not in (CREDIT, DEBIT):
        txn_type = DEBIT if amount < 0 else CREDIT

    return Transaction(
        id=_str(item.get("id"), str(index + 1)),
        date=_str(item.get("date")),
        description=_str(item.get("description")),
        amount=amount,
        category=_str(item.get("category"), "Uncategorized"),
        merchant=_str(item.get("merchant")),
        type=txn_type,
        is_recurring=item.get("isRecurring") is True,
        is_unusual=item.get("isUnusual") is True,
        unusual_reason=_str(item.get("unusualReason")),
    )


def normalize_transactions(rows: Any, offset: int = 0) -> list[Transaction]:
    """Normalize a list of transaction rows, skipping non-object entries."""
    return [
        normalize_transaction(row, offset + index)
        for index, row in enumerate(_list(rows))
        if isinstance(row, dict)
    ]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _dicts(value: Any) -> list[dict]:
    return [item for item in _list(value) if isinstance(item, dict)]


def _first(item: dict, *keys: str) -> Any:
    """Return the first non-None value among *keys*."""
    for key in keys:
        if item.get(key) is not None:
            return item[key]
    return None


def _str(value: Any, default: str = "") -> str:
    if value is None or isinstance(value, (dict, list)):
        return default
    return str(value)


def _decimal(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, float) and not math.isfinite(value):
        return Decimal("0")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return result if result.is_finite() else Decimal("0")


def _int(value: Any) -> int:
    return int(_decimal(value))


def _float(value: Any) -> float:
    return float(_decimal(value))


def _date(value: Any) -> date | None:
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _period(statement: dict) -> StatementPeriod:
    """Read the statement period, falling back per field."""
    period = _dict(statement.get("period"))
    start = _date(statement.get("periodStart")) or _date(period.get("start"))
    end = _date(statement.get("periodEnd")) or _date(period.get("end"))
    return StatementPeriod(
        start=start or FALLBACK_PERIOD.start,
        end=end or FALLBACK_PERIOD.end,
    )


def _insight(item: Any) -> Insight | None:
    """Build an insight from a dict or a bare description string."""
    if isinstance(item, str):
        return Insight(type=DEFAULT_INSIGHT_TYPE, title=DEFAULT_INSIGHT_TITLE, description=item)
    if not isinstance(item, dict):
        return None
    insight_type = _str(item.get("type"), DEFAULT_INSIGHT_TYPE)
    if insight_type not in INSIGHT_TYPES:
        insight_type = DEFAULT_INSIGHT_TYPE
    return Insight(
        type=insight_type,
        title=_str(item.get("title"), DEFAULT_INSIGHT_TITLE) or DEFAULT_INSIGHT_TITLE,
        description=_str(item.get("description")),
    )
