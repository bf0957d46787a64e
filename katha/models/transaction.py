"""
Core Data Models for Katha

These models define the schemas for all data flowing through the tracker.
They are designed to:
1. Enforce type safety at the storage boundary
2. Be serializable to the exact persisted JSON shape
3. Keep form input separate from stored records

DESIGN DECISION: A TransactionCandidate is raw form input and is
never persisted. Only a Transaction, built from a candidate or checked
on load/import, lives in the store.
"""

import datetime
import json
import re
from enum import Enum
from typing import Any, Iterable, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_calendar_date(value: Any) -> datetime.date:
    """Accept a date object or a YYYY-MM-DD string, nothing else."""
    if isinstance(value, datetime.datetime):
        raise ValueError("Date must not carry a time component")
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        if ISO_DATE_PATTERN.match(value):
            try:
                return datetime.date.fromisoformat(value)
            except ValueError:
                pass
        raise ValueError(f"Date is not a valid YYYY-MM-DD value: {value!r}")
    raise ValueError(f"Date must be a YYYY-MM-DD string, got {type(value).__name__}")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of money for a transaction.

    DESIGN DECISION: Exactly two variants. Anything else is rejected
    at the storage boundary.
    """
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# CORE TRANSACTION MODEL
# =============================================================================

class Transaction(BaseModel):
    """
    A single stored income or expense record.

    The id is an opaque token used only for delete-by-id. It never
    orders anything; the store keeps insertion order.

    Amount is a plain float and may be NaN when the user typed
    something that is not a number. Sign and range are not checked.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier"
    )
    date: datetime.date = Field(
        ...,
        description="Calendar day of the transaction (no time component)"
    )
    type: TransactionType = Field(
        ...,
        description="income or expense"
    )
    amount: float = Field(
        ...,
        description="Amount, not validated for sign"
    )
    category: str = Field(
        ...,
        description="Free-text category label"
    )
    description: str = Field(
        ...,
        description="Free-text note"
    )

    @field_validator('date', mode='before')
    @classmethod
    def validate_calendar_date(cls, v: Any) -> datetime.date:
        return parse_calendar_date(v)

    @field_validator('amount', mode='before')
    @classmethod
    def reject_boolean_amount(cls, v: Any) -> Any:
        """JSON true/false is not an amount."""
        if isinstance(v, bool):
            raise ValueError("Amount must be a number")
        return v

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    def to_record(self) -> dict:
        """
        Convert to the persisted JSON object.

        Key order matches the stored and exported files:
        id, date, type, amount, category, description
        """
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "type": self.type.value,
            "amount": self.amount,
            "category": self.category,
            "description": self.description,
        }


class TransactionCandidate(BaseModel):
    """
    Raw input from the entry form.

    CRITICAL: This is UNVERIFIED data. It becomes a Transaction only
    through TransactionValidator.build_transaction, which assigns the id.

    Amount stays as entered (text or number). Parsing it is the
    validator's job and a failed parse yields NaN, not an error.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    date: Optional[Union[datetime.date, str]] = Field(
        default_factory=datetime.date.today,
        description="Calendar day, defaults to today"
    )
    type: str = Field(
        default=TransactionType.EXPENSE.value,
        description="income or expense, defaults to expense"
    )
    amount: Union[str, float, int] = Field(
        default="",
        description="Amount as entered"
    )
    category: str = Field(
        default="",
        description="Category label"
    )
    description: str = Field(
        default="",
        description="Details about this transaction"
    )

    @field_validator('type', mode='before')
    @classmethod
    def unwrap_enum(cls, v: Any) -> Any:
        if isinstance(v, TransactionType):
            return v.value
        return v


# =============================================================================
# VIEW MODELS
# =============================================================================

class MonthlyStats(BaseModel):
    """
    Totals for one calendar month.

    balance is always income - expense, never rounded here.
    Two-decimal display is the presentation layer's concern.
    """

    income: float = 0.0
    expense: float = 0.0
    balance: float = 0.0


class DailyLedgerEntry(BaseModel):
    """One row of the day-by-day ledger: a day that has transactions."""

    day: datetime.date
    transactions: list[Transaction] = Field(default_factory=list)
    income: float = 0.0
    expense: float = 0.0

    @property
    def net(self) -> float:
        return self.income - self.expense


# =============================================================================
# VALIDATION / IMPORT MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class RejectedRecord(BaseModel):
    """A stored or imported record that is not a valid transaction."""

    index: int = Field(
        ...,
        ge=0,
        description="Position of the record in the source list"
    )
    record: Any = Field(
        default=None,
        description="The record as it was read"
    )
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def reason(self) -> str:
        return "; ".join(issue.message for issue in self.issues)


class ImportResult(BaseModel):
    """
    Outcome of a successful import.

    Import failure (unparseable text) is an exception, never a result.
    """

    accepted_count: int = Field(
        ...,
        ge=0,
        description="Number of records now in the store"
    )
    rejected: list[RejectedRecord] = Field(
        default_factory=list,
        description="Records that were dropped"
    )

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)

    @property
    def is_clean(self) -> bool:
        """True if every record in the file was accepted."""
        return not self.rejected


# =============================================================================
# SERIALIZATION
# =============================================================================

def dump_transactions(
    transactions: Iterable[Transaction],
    indent: Optional[int] = None,
) -> str:
    """
    Serialize transactions to a JSON array.

    indent=None gives the compact persisted form; indent=2 gives the
    export form. Non-ASCII text is written as-is.
    """
    return json.dumps(
        [transaction.to_record() for transaction in transactions],
        indent=indent,
        ensure_ascii=False,
    )
