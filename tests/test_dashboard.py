"""Tests for finsight.dashboard and finsight.formatting -- text rendering."""

from __future__ import annotations

import dataclasses
from decimal import Decimal

import pytest

from finsight.dashboard import print_analysis, print_transactions, status_line
from finsight.formatting import (
    format_currency,
    format_percentage,
    format_signed_currency,
    format_time,
)
from finsight.models import COMPLETED, FAILED, UPLOADING, AnalysisRecord, ProcessingState

# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormatting:
    @pytest.mark.parametrize(
        "amount,expected",
        [
            (Decimal("1234.5"), "$1,234.50"),
            (Decimal("-450"), "-$450.00"),
            (0, "$0.00"),
            (15.99, "$15.99"),
        ],
    )
    def test_currency(self, amount, expected: str):
        assert format_currency(amount) == expected

    def test_signed_currency(self):
        assert format_signed_currency(Decimal("1240.25")) == "+$1,240.25"
        assert format_signed_currency(Decimal("-3")) == "-$3.00"

    @pytest.mark.parametrize(
        "seconds,expected", [(125, "2m 5s"), (45, "45s"), (60, "1m 0s"), (0, "0s")]
    )
    def test_time(self, seconds: int, expected: str):
        assert format_time(seconds) == expected

    def test_percentage(self):
        assert format_percentage(29.94) == "29.9%"


# ---------------------------------------------------------------------------
# Status line
# ---------------------------------------------------------------------------


class TestStatusLine:
    def test_idle_is_blank(self):
        assert status_line(ProcessingState()) == ""

    def test_uploading(self):
        state = ProcessingState(
            status=UPLOADING, progress=40, message="Uploading your bank statement...",
            estimated_time=30,
        )
        assert status_line(state) == (
            "[ 40%] Uploading File: Uploading your bank statement... (~30s remaining)"
        )

    def test_completed_has_no_estimate(self):
        state = ProcessingState(status=COMPLETED, progress=100, message="Done", estimated_time=5)
        assert status_line(state) == "[100%] Analysis Complete: Done"

    def test_failed(self):
        state = ProcessingState(status=FAILED, message="Processing failed.")
        assert status_line(state) == "[  0%] Processing Error: Processing failed."


# ---------------------------------------------------------------------------
# Analysis and transactions
# ---------------------------------------------------------------------------


class TestPrintAnalysis:
    def test_overview(self, sample_analysis: AnalysisRecord, capsys):
        print_analysis(sample_analysis)
        out = capsys.readouterr().out
        assert "bank_statement_march_2024.pdf" in out
        assert "2024-03-01 - 2024-03-31" in out
        assert "$5,420.50" in out
        assert "+$1,240.25" in out
        assert "Strong Savings Rate" in out
        assert "Netflix" in out
        assert "Amount 3x higher than usual" in out
        assert "Food & Dining:" in out

    def test_top_merchants_limited(self, sample_analysis: AnalysisRecord, capsys):
        print_analysis(sample_analysis, top_merchants=1)
        out = capsys.readouterr().out
        assert "Whole Foods Market" in out
        assert "Amazon" not in out

    def test_empty_patterns(self, sample_analysis: AnalysisRecord, capsys):
        record = dataclasses.replace(
            sample_analysis, recurring_transactions=(), unusual_transactions=()
        )
        print_analysis(record)
        out = capsys.readouterr().out
        assert "No recurring transactions detected" in out
        assert "No unusual transactions detected" in out


class TestPrintTransactions:
    def test_table(self, sample_transactions, capsys):
        print_transactions(sample_transactions[4:6], total=7, filters_active=True)
        out = capsys.readouterr().out
        assert "Showing 2 of 7 transactions (advanced filters active)" in out
        assert "[recurring]" in out
        assert "[unusual: Amount 3x higher than usual]" in out
        assert "-$450.00" in out

    def test_no_matches(self, capsys):
        print_transactions([], total=7, filters_active=False)
        out = capsys.readouterr().out
        assert "Showing 0 of 7 transactions\n" in out
        assert "No transactions match" in out
