"""Aggregation queries package."""

from katha.queries.aggregation import (
    daily_ledger,
    daily_transactions,
    month_bounds,
    month_days,
    month_label,
    monthly_stats,
    shift_month,
    transactions_in_month,
)

__all__ = [
    "daily_ledger",
    "daily_transactions",
    "month_bounds",
    "month_days",
    "month_label",
    "monthly_stats",
    "shift_month",
    "transactions_in_month",
]
