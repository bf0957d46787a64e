"""
Aggregation Engine

DESIGN DECISION: Every view is a pure function of a snapshot.
Nothing here reads storage, caches results, or mutates a record.
Callers (the Streamlit page, tests) pass the store's current
snapshot and a reference day each time they render.

GUARANTEES:
- Month ranges are inclusive of the first and last day
- Insertion order of the snapshot is preserved in every list returned
- Amounts are summed as-is; a NaN amount makes its total NaN
"""

import calendar
import datetime
from typing import Iterable, Union

from katha.models.transaction import (
    DailyLedgerEntry,
    MonthlyStats,
    Transaction,
    TransactionType,
)


DateLike = Union[datetime.date, datetime.datetime]


def _as_day(value: DateLike) -> datetime.date:
    """Drop any time component."""
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def _sum_amounts(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType,
) -> float:
    total = 0.0
    for transaction in transactions:
        if transaction.type == transaction_type:
            total += transaction.amount
    return total


def month_bounds(reference: DateLike) -> tuple[datetime.date, datetime.date]:
    """First and last calendar day of the month containing reference."""
    day = _as_day(reference)
    first = day.replace(day=1)
    last = day.replace(day=calendar.monthrange(day.year, day.month)[1])
    return first, last


def month_days(reference: DateLike) -> list[datetime.date]:
    """Every day of the month containing reference, ascending."""
    first, last = month_bounds(reference)
    return [
        first + datetime.timedelta(days=offset)
        for offset in range((last - first).days + 1)
    ]


def shift_month(reference: DateLike, months: int) -> datetime.date:
    """
    First day of the month `months` away from reference.

    shift_month(d, -1) is the previous month, shift_month(d, 1) the next.
    """
    day = _as_day(reference)
    index = day.year * 12 + (day.month - 1) + months
    return datetime.date(index // 12, index % 12 + 1, 1)


def month_label(reference: DateLike) -> str:
    """Heading for a month, e.g. 'March 2024'."""
    return _as_day(reference).strftime("%B %Y")


def transactions_in_month(
    transactions: Iterable[Transaction],
    reference: DateLike,
) -> list[Transaction]:
    """Records dated within the month containing reference, in list order."""
    first, last = month_bounds(reference)
    return [
        t for t in transactions
        if first <= t.date <= last
    ]


def monthly_stats(
    transactions: Iterable[Transaction],
    reference: DateLike,
) -> MonthlyStats:
    """
    Income, expense and balance for the month containing reference.

    balance is exactly income - expense; no rounding.
    """
    in_month = transactions_in_month(transactions, reference)

    income = _sum_amounts(in_month, TransactionType.INCOME)
    expense = _sum_amounts(in_month, TransactionType.EXPENSE)

    return MonthlyStats(
        income=income,
        expense=expense,
        balance=income - expense,
    )


def daily_transactions(
    transactions: Iterable[Transaction],
    day: DateLike,
) -> list[Transaction]:
    """Records dated on the given calendar day, in list order."""
    target = _as_day(day)
    return [
        t for t in transactions
        if t.date == target
    ]


def daily_ledger(
    transactions: Iterable[Transaction],
    reference: DateLike,
) -> list[DailyLedgerEntry]:
    """
    Day-by-day ledger for the month containing reference.

    One entry per day that has at least one record, ascending by day,
    with that day's income and expense sums. Days without records are
    skipped.
    """
    snapshot = list(transactions)
    entries = []

    for day in month_days(reference):
        todays = daily_transactions(snapshot, day)
        if not todays:
            continue
        entries.append(DailyLedgerEntry(
            day=day,
            transactions=todays,
            income=_sum_amounts(todays, TransactionType.INCOME),
            expense=_sum_amounts(todays, TransactionType.EXPENSE),
        ))

    return entries
