"""Display formatting shared by the dashboard, exports, and CLI."""

from __future__ import annotations

from decimal import Decimal


def format_currency(amount: Decimal | float | int) -> str:
    """Format *amount* as ``$1,234.56``; negatives as ``-$1,234.56``."""
    value = Decimal(str(amount))
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_signed_currency(amount: Decimal | float | int) -> str:
    """Like :func:`format_currency` but with an explicit ``+`` for gains."""
    text = format_currency(amount)
    return text if Decimal(str(amount)) < 0 else f"+{text}"


def format_time(seconds: int) -> str:
    """Format a remaining duration as ``2m 5s`` or ``45s``."""
    mins, secs = divmod(max(int(seconds), 0), 60)
    return f"{mins}m {secs}s" if mins > 0 else f"{secs}s"


def format_percentage(value: float) -> str:
    return f"{value:.1f}%"
