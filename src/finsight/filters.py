"""Transaction filtering for the results table.

A transaction is shown iff it passes every predicate: free-text search on
the description, category selector, and the :class:`AdvancedFilters`
(type, amount range, recurring flag, unusual flag).  Filtering is stable:
the input order is kept.

:func:`default_filters` is the single source of the default tuple; both
"clear" and :func:`has_active_filters` compare against it.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from finsight.models import ALL, AdvancedFilters, AmountRange, Transaction

DEFAULT_AMOUNT_MIN = Decimal("-Infinity")
DEFAULT_AMOUNT_MAX = Decimal("Infinity")


def default_filters(
    amount_min: Decimal = DEFAULT_AMOUNT_MIN,
    amount_max: Decimal = DEFAULT_AMOUNT_MAX,
) -> AdvancedFilters:
    """Return the advanced filters in their cleared state."""
    return AdvancedFilters(
        transaction_type=ALL,
        amount_range=AmountRange(min=Decimal(amount_min), max=Decimal(amount_max)),
        show_recurring=False,
        show_unusual=False,
    )


def has_active_filters(
    advanced: AdvancedFilters,
    defaults: AdvancedFilters | None = None,
) -> bool:
    """True if any advanced field differs from *defaults*."""
    defaults = defaults or default_filters()
    return (
        advanced.transaction_type != defaults.transaction_type
        or advanced.amount_range.min != defaults.amount_range.min
        or advanced.amount_range.max != defaults.amount_range.max
        or advanced.show_recurring != defaults.show_recurring
        or advanced.show_unusual != defaults.show_unusual
    )


def matches(
    txn: Transaction,
    search: str,
    category: str,
    advanced: AdvancedFilters,
) -> bool:
    """Return True if *txn* passes all six predicates."""
    if search and search.lower() not in txn.description.lower():
        return False
    if category != ALL and txn.category != category:
        return False
    if advanced.transaction_type != ALL and txn.type != advanced.transaction_type:
        return False
    if not advanced.amount_range.min <= txn.amount <= advanced.amount_range.max:
        return False
    if advanced.show_recurring and not txn.is_recurring:
        return False
    if advanced.show_unusual and not txn.is_unusual:
        return False
    return True


def filter_transactions(
    transactions: Iterable[Transaction],
    search: str = "",
    category: str = ALL,
    advanced: AdvancedFilters | None = None,
) -> list[Transaction]:
    """Return the transactions that pass every filter, in input order.

    Args:
        transactions: Transactions of the loaded analysis.
        search: Case-insensitive substring of the description; empty
            matches everything.
        category: Exact category, or ``"all"``.
        advanced: Advanced filters; defaults to :func:`default_filters`.

    Returns:
        A new list; the input is not modified.
    """
    advanced = advanced or default_filters()
    return [txn for txn in transactions if matches(txn, search, category, advanced)]


def available_categories(transactions: Iterable[Transaction]) -> list[str]:
    """Distinct categories in first-seen order, for the category selector."""
    seen: dict[str, None] = {}
    for txn in transactions:
        if txn.category:
            seen.setdefault(txn.category, None)
    return list(seen)
