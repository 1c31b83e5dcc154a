"""PDF report and CSV data export of an analysis.

- :func:`export_pdf` renders a fixed-layout report with fpdf2: title, file
  metadata, summary, up to five insights, and a second page with up to ten
  top merchants.
- :func:`export_csv` writes a sectioned CSV where every field is quoted, so
  any category or merchant name survives a round trip through a standard
  CSV reader.

Both write into *output_dir* and return the written path.  Failures are
raised as :class:`~finsight.errors.ExportError`.
"""

from __future__ import annotations

import csv
import logging
import textwrap
from pathlib import Path

from fpdf import FPDF
from fpdf.errors import FPDFException

from finsight.errors import ExportError
from finsight.formatting import format_currency, format_percentage
from finsight.models import AnalysisRecord

logger = logging.getLogger(__name__)

MAX_PDF_INSIGHTS = 5
MAX_PDF_MERCHANTS = 10
INSIGHT_WRAP_WIDTH = 80

CSV_SECTIONS = ("FINANCIAL SUMMARY", "SPENDING BY CATEGORY", "TOP MERCHANTS")


def report_filename(record: AnalysisRecord) -> str:
    return f"finsight-report-{_safe_name(record)}.pdf"


def data_filename(record: AnalysisRecord) -> str:
    return f"finsight-data-{_safe_name(record)}.csv"


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------


def csv_rows(record: AnalysisRecord) -> list[list[str]]:
    """Build the rows of the CSV document.

    Sections are separated by an empty row; each section starts with its
    header row from :data:`CSV_SECTIONS`.
    """
    summary = record.summary
    period = record.statement_period
    rows: list[list[str]] = [
        ["FINANCIAL SUMMARY"],
        ["File Name", record.file_name],
        ["Statement Period", f"{period.start.isoformat()} - {period.end.isoformat()}"],
        ["Total Income", str(summary.total_income)],
        ["Total Expenses", str(summary.total_expenses)],
        ["Net Flow", str(summary.net_flow)],
        ["Transaction Count", str(summary.transaction_count)],
        ["Average Transaction", str(summary.average_transaction)],
        [],
        ["SPENDING BY CATEGORY"],
        ["Category", "Amount", "Percentage"],
    ]
    for item in record.category_breakdown:
        rows.append([item.category, str(item.amount), f"{item.percentage}"])

    rows.extend([[], ["TOP MERCHANTS"], ["Merchant", "Amount", "Transactions"]])
    for merchant in record.top_merchants:
        rows.append([merchant.merchant, str(merchant.amount), str(merchant.transactions)])

    return rows


def export_csv(record: AnalysisRecord, output_dir: str | Path) -> Path:
    """Write ``finsight-data-<fileName>.csv`` into *output_dir*.

    Every field is quoted; embedded quotes are doubled.

    Raises:
        ExportError: If the file cannot be written.
    """
    output_path = Path(output_dir) / data_filename(record)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f, quoting=csv.QUOTE_ALL)
            writer.writerows(csv_rows(record))
    except OSError as exc:
        logger.warning("CSV export to %s failed: %s", output_path, exc)
        raise ExportError(str(exc), user_message="Failed to export CSV data.") from exc

    logger.info("Wrote CSV export %s", output_path)
    return output_path


# ---------------------------------------------------------------------------
# PDF export
# ---------------------------------------------------------------------------


def export_pdf(record: AnalysisRecord, output_dir: str | Path) -> Path:
    """Write ``finsight-report-<fileName>.pdf`` into *output_dir*.

    Sections with no data (insights, merchants) are omitted.

    Raises:
        ExportError: If rendering or writing fails.
    """
    output_path = Path(output_dir) / report_filename(record)
    try:
        pdf = _render_report(record)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        pdf.output(str(output_path))
    except (OSError, FPDFException) as exc:
        logger.warning("PDF export to %s failed: %s", output_path, exc)
        raise ExportError(str(exc), user_message="Failed to export PDF report.") from exc

    logger.info("Wrote PDF report %s", output_path)
    return output_path


def _render_report(record: AnalysisRecord) -> FPDF:
    summary = record.summary
    period = record.statement_period

    pdf = FPDF(format="A4")
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    pdf.set_font("Helvetica", style="B", size=20)
    _line(pdf, "FinSight Financial Report", height=12)

    pdf.set_font("Helvetica", size=11)
    _line(pdf, f"File: {record.file_name}")
    _line(pdf, f"Statement Period: {period.start.isoformat()} - {period.end.isoformat()}")
    if record.upload_date:
        _line(pdf, f"Uploaded: {record.upload_date}")
    pdf.ln(6)

    _heading(pdf, "Financial Summary")
    _line(pdf, f"Total Income: {format_currency(summary.total_income)}")
    _line(pdf, f"Total Expenses: {format_currency(summary.total_expenses)}")
    _line(pdf, f"Net Flow: {format_currency(summary.net_flow)}")
    _line(pdf, f"Transactions: {summary.transaction_count}")
    _line(pdf, f"Average Transaction: {format_currency(summary.average_transaction)}")

    if record.category_breakdown:
        pdf.ln(6)
        _heading(pdf, "Spending by Category")
        for item in record.category_breakdown:
            _line(
                pdf,
                f"{item.category}: {format_currency(item.amount)} "
                f"({format_percentage(item.percentage)})",
            )

    insights = record.insights[:MAX_PDF_INSIGHTS]
    if insights:
        pdf.ln(6)
        _heading(pdf, "Key Insights")
        for index, insight in enumerate(insights, start=1):
            wrapped = textwrap.wrap(insight.description, INSIGHT_WRAP_WIDTH) or [""]
            _line(pdf, f"{index}. {wrapped[0]}")
            for rest in wrapped[1:]:
                _line(pdf, f"   {rest}")

    merchants = record.top_merchants[:MAX_PDF_MERCHANTS]
    if merchants:
        pdf.add_page()
        _heading(pdf, "Top Merchants")
        for index, merchant in enumerate(merchants, start=1):
            _line(
                pdf,
                f"{index}. {merchant.merchant}: {format_currency(merchant.amount)} "
                f"({merchant.transactions} transactions)",
            )

    return pdf


def _heading(pdf: FPDF, text: str) -> None:
    pdf.set_font("Helvetica", style="B", size=14)
    _line(pdf, text, height=9)
    pdf.set_font("Helvetica", size=11)


def _line(pdf: FPDF, text: str, height: float = 7) -> None:
    # Core fonts only cover latin-1.
    safe = text.encode("latin-1", "replace").decode("latin-1")
    pdf.cell(0, height, safe)
    pdf.ln(height)


def _safe_name(record: AnalysisRecord) -> str:
    name = record.file_name or record.statement_id or "statement"
    return name.replace("/", "_").replace("\\", "_")
