"""Shared pytest fixtures for FinSight tests.

Provides reusable fixtures for:
- analysis_payload / transactions_payload: raw backend response bodies for a
  March 2024 statement, as returned by the analysis and transaction
  endpoints.
- sample_transactions / sample_analysis: the same statement as normalized
  model objects.
- fake_clock: a millisecond clock whose ``sleep`` advances time instead of
  blocking, for driving the status machine deterministically.
- tmp_project_dir: a temporary directory holding a fast ``config.toml``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from finsight.models import (
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

# ---------------------------------------------------------------------------
# Raw backend payloads
# ---------------------------------------------------------------------------

RAW_TRANSACTIONS = [
    {
        "id": "1",
        "date": "2024-03-31",
        "description": "Salary Deposit",
        "amount": 5420.5,
        "category": "Income",
        "merchant": "Employer Inc",
        "type": "credit",
    },
    {
        "id": "2",
        "date": "2024-03-30",
        "description": "Whole Foods Market",
        "amount": -85.4,
        "category": "Food & Dining",
        "merchant": "Whole Foods Market",
        "type": "debit",
    },
    {
        "id": "3",
        "date": "2024-03-29",
        "description": "Shell Gas Station",
        "amount": -45.2,
        "category": "Transportation",
        "merchant": "Shell Gas Station",
        "type": "debit",
    },
    {
        "id": "4",
        "date": "2024-03-28",
        "description": "Amazon Purchase",
        "amount": -125.99,
        "category": "Shopping",
        "merchant": "Amazon",
        "type": "debit",
    },
    {
        "id": "5",
        "date": "2024-03-27",
        "description": "Electric Bill",
        "amount": -120.5,
        "category": "Utilities",
        "merchant": "City Electric",
        "type": "debit",
        "isRecurring": True,
    },
    {
        "id": "6",
        "date": "2024-03-26",
        "description": "Large Grocery Purchase",
        "amount": -450.0,
        "category": "Food & Dining",
        "merchant": "Whole Foods Market",
        "type": "debit",
        "isUnusual": True,
        "unusualReason": "Amount 3x higher than usual",
    },
    {
        "id": "7",
        "date": "2024-03-25",
        "description": "Netflix Subscription",
        "amount": -15.99,
        "category": "Entertainment",
        "merchant": "Netflix",
        "type": "debit",
        "isRecurring": True,
    },
]


@pytest.fixture
def analysis_payload() -> dict:
    """Body of ``GET /v1/statements/stmt_demo/analysis``."""
    return {
        "data": {
            "statement": {
                "id": "stmt_demo",
                "fileName": "bank_statement_march_2024.pdf",
                "uploadDate": "2024-04-02T10:15:00Z",
                "periodStart": "2024-03-01",
                "periodEnd": "2024-03-31",
                "processingTime": 45,
            },
            "summary": {
                "totalIncome": 5420.5,
                "totalExpenses": 4180.25,
                "netFlow": 1240.25,
                "transactionCount": 127,
                "averageTransaction": 42.68,
            },
            "analysis": {
                "categories": [
                    {"category": "Food & Dining", "amount": 1250.3, "percentage": 29.9},
                    {"category": "Transportation", "amount": 890.45, "percentage": 21.3},
                    {"category": "Shopping", "amount": 675.2, "percentage": 16.1},
                ],
                "monthlyBreakdown": [
                    {"month": "Jan", "income": 5200, "expenses": 4100},
                    {"month": "Feb", "income": 5350, "expenses": 3950},
                    {"month": "Mar", "income": 5420, "expenses": 4180},
                ],
                "topMerchants": [
                    {"merchant": "Whole Foods Market", "amount": 485.6, "transactions": 12},
                    {"merchant": "Shell Gas Station", "amount": 320.4, "transactions": 8},
                    {"merchant": "Amazon", "amount": 275.8, "transactions": 15},
                    {"merchant": "Starbucks", "amount": 156.9, "transactions": 18},
                ],
                "insights": [
                    {
                        "type": "positive",
                        "title": "Strong Savings Rate",
                        "description": "You saved 22.9% of your income this month.",
                    },
                    {
                        "type": "negative",
                        "title": "High Food Spending",
                        "description": "Food & dining represents 29.9% of expenses.",
                    },
                    "Your income has been stable over the past 3 months.",
                ],
                "patterns": {
                    "recurringPayments": [
                        {
                            "merchant": "Netflix",
                            "amount": 15.99,
                            "frequency": "Monthly",
                            "nextExpected": "2024-04-15",
                        },
                    ],
                    "unusualTransactions": [
                        {
                            "id": "unusual_1",
                            "reason": "Amount 3x higher than usual",
                            "amount": 450.0,
                            "description": "Large grocery purchase",
                            "date": "2024-03-26",
                        },
                    ],
                },
            },
        }
    }


@pytest.fixture
def transactions_payload() -> dict:
    """Single-page body of ``GET /v1/statements/stmt_demo/transactions``."""
    return {
        "data": {
            "transactions": [dict(row) for row in RAW_TRANSACTIONS],
            "pagination": {"page": 1, "limit": 100, "total": 7, "totalPages": 1},
        }
    }


# ---------------------------------------------------------------------------
# Normalized models
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_transactions() -> list[Transaction]:
    """The seven transactions of the demo statement, newest first."""
    return [
        Transaction("1", "2024-03-31", "Salary Deposit", Decimal("5420.5"),
                    "Income", "Employer Inc", "credit"),
        Transaction("2", "2024-03-30", "Whole Foods Market", Decimal("-85.4"),
                    "Food & Dining", "Whole Foods Market", "debit"),
        Transaction("3", "2024-03-29", "Shell Gas Station", Decimal("-45.2"),
                    "Transportation", "Shell Gas Station", "debit"),
        Transaction("4", "2024-03-28", "Amazon Purchase", Decimal("-125.99"),
                    "Shopping", "Amazon", "debit"),
        Transaction("5", "2024-03-27", "Electric Bill", Decimal("-120.5"),
                    "Utilities", "City Electric", "debit", is_recurring=True),
        Transaction("6", "2024-03-26", "Large Grocery Purchase", Decimal("-450.0"),
                    "Food & Dining", "Whole Foods Market", "debit",
                    is_unusual=True, unusual_reason="Amount 3x higher than usual"),
        Transaction("7", "2024-03-25", "Netflix Subscription", Decimal("-15.99"),
                    "Entertainment", "Netflix", "debit", is_recurring=True),
    ]


@pytest.fixture
def sample_analysis(sample_transactions: list[Transaction]) -> AnalysisRecord:
    """A fully-populated analysis record including transactions."""
    return AnalysisRecord(
        statement_id="stmt_demo",
        file_name="bank_statement_march_2024.pdf",
        upload_date="2024-04-02T10:15:00Z",
        statement_period=StatementPeriod(date(2024, 3, 1), date(2024, 3, 31)),
        processing_time=45,
        summary=Summary(
            total_income=Decimal("5420.5"),
            total_expenses=Decimal("4180.25"),
            net_flow=Decimal("1240.25"),
            transaction_count=127,
            average_transaction=Decimal("42.68"),
        ),
        category_breakdown=(
            CategoryAmount("Food & Dining", Decimal("1250.3"), 29.9),
            CategoryAmount("Transportation", Decimal("890.45"), 21.3),
        ),
        monthly_trends=(
            MonthlyTrend("Feb", Decimal("5350"), Decimal("3950")),
            MonthlyTrend("Mar", Decimal("5420"), Decimal("4180")),
        ),
        top_merchants=(
            MerchantTotal("Whole Foods Market", Decimal("485.6"), 12),
            MerchantTotal("Amazon", Decimal("275.8"), 15),
        ),
        insights=(
            Insight("positive", "Strong Savings Rate", "You saved 22.9% of your income."),
        ),
        recurring_transactions=(
            RecurringPayment("Netflix", Decimal("15.99"), "Monthly", "2024-04-15"),
        ),
        unusual_transactions=(
            UnusualTransaction("unusual_1", "Amount 3x higher than usual",
                               Decimal("450.0"), "Large grocery purchase"),
        ),
        transactions=tuple(sample_transactions),
    )


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------


class FakeClock:
    """Millisecond clock that only moves when :meth:`sleep` is called."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, ms: float) -> None:
        self.sleeps.append(ms)
        self.now += ms


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# tmp_project_dir -- working directory with a fast config.toml
# ---------------------------------------------------------------------------

FAST_CONFIG = """\
[api]
base_url = "http://backend.test"
timeout_seconds = 5

[upload]
step_delay_ms = 0
mode = "simulated"

[processing]
mode = "simulated"
poll_interval_ms = 1
max_duration_ms = 3

[results]
export_dir = "exports"
delete_redirect_delay_ms = 0
"""


@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """A directory containing a ``config.toml`` with near-zero delays."""
    (tmp_path / "config.toml").write_text(FAST_CONFIG, encoding="utf-8")
    return tmp_path
