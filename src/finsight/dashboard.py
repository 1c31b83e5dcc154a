"""Plain-text rendering of processing status, analyses, and transactions.

Pure consumers of the models: nothing here changes state.
"""

from __future__ import annotations

from finsight.formatting import (
    format_currency,
    format_percentage,
    format_signed_currency,
    format_time,
)
from finsight.models import (
    COMPLETED,
    FAILED,
    IDLE,
    PROCESSING,
    UPLOADING,
    AnalysisRecord,
    ProcessingState,
    Transaction,
)

STATUS_TITLES = {
    UPLOADING: "Uploading File",
    PROCESSING: "Analyzing Statement",
    COMPLETED: "Analysis Complete",
    FAILED: "Processing Error",
}


def status_line(state: ProcessingState) -> str:
    """One-line rendering of a processing state, or ``""`` when idle."""
    if state.status == IDLE:
        return ""
    line = f"[{round(state.progress):>3}%] {STATUS_TITLES[state.status]}: {state.message}"
    if state.estimated_time and state.status not in (COMPLETED, IDLE):
        line += f" (~{format_time(state.estimated_time)} remaining)"
    return line


def print_analysis(record: AnalysisRecord, top_merchants: int = 3) -> None:
    """Print the results overview of *record* to stdout.

    Includes statement metadata, the summary figures, insights, recurring
    payments, unusual activity, the category breakdown, monthly trends and
    the first *top_merchants* merchants.
    """
    summary = record.summary
    period = record.statement_period

    print()
    print(f"== Financial Analysis: {record.file_name or record.statement_id} ==")
    print(f"Statement: {record.statement_id}")
    print(f"Period:    {period.start.isoformat()} - {period.end.isoformat()}")
    print(f"Processed in {record.processing_time}s, {summary.transaction_count} transactions")

    print()
    print(f"  {'Total Income:':<22} {format_currency(summary.total_income)}")
    print(f"  {'Total Expenses:':<22} {format_currency(summary.total_expenses)}")
    print(f"  {'Net Flow:':<22} {format_signed_currency(summary.net_flow)}")
    print(f"  {'Avg Transaction:':<22} {format_currency(summary.average_transaction)}")

    if record.insights:
        print()
        print("Key insights:")
        for insight in record.insights:
            print(f"  [{insight.type}] {insight.title}: {insight.description}")

    print()
    print("Recurring payments:")
    if record.recurring_transactions:
        for item in record.recurring_transactions:
            print(
                f"  {item.merchant:<25} {format_currency(item.amount):>12}  "
                f"{item.frequency}, next {item.next_expected}"
            )
    else:
        print("  No recurring transactions detected")

    print()
    print("Unusual activity:")
    if record.unusual_transactions:
        for item in record.unusual_transactions:
            print(f"  {item.description:<25} {format_currency(item.amount):>12}  {item.reason}")
    else:
        print("  No unusual transactions detected")

    if record.category_breakdown:
        print()
        print("Spending by category:")
        for item in record.category_breakdown:
            print(
                f"  {item.category + ':':<25} {format_currency(item.amount):>12}  "
                f"{format_percentage(item.percentage)}"
            )

    if record.monthly_trends:
        print()
        print("Monthly trends:")
        for trend in record.monthly_trends:
            print(
                f"  {trend.month:<10} income {format_currency(trend.income):>12}  "
                f"expenses {format_currency(trend.expenses):>12}"
            )

    if record.top_merchants:
        print()
        print("Top merchants:")
        for i, merchant in enumerate(record.top_merchants[:top_merchants], start=1):
            print(
                f"  {i:>2}. {merchant.merchant:<30} ({merchant.transactions} txns, "
                f"{format_currency(merchant.amount)})"
            )

    print()


def print_transactions(transactions: list[Transaction], total: int, filters_active: bool) -> None:
    """Print the transaction table with a count header."""
    suffix = " (advanced filters active)" if filters_active else ""
    print(f"Showing {len(transactions)} of {total} transactions{suffix}")
    if not transactions:
        print("  No transactions match the current filters")
        return
    for txn in transactions:
        flags = ""
        if txn.is_recurring:
            flags += " [recurring]"
        if txn.is_unusual:
            flags += f" [unusual: {txn.unusual_reason}]" if txn.unusual_reason else " [unusual]"
        print(
            f"  {txn.date:<10}  {txn.description:<30} {txn.category:<18} "
            f"{format_currency(txn.amount):>12}{flags}"
        )
