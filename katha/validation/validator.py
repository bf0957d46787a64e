"""
Validation at the Store Boundary

DESIGN DECISION: Data enters the store through exactly two doors,
and each has its own check:

FORM INPUT (add):
- Date present and a real calendar day
- Type is income or expense
- Category and description not empty
- Amount text parsed leniently; unparseable text becomes NaN

STORED / IMPORTED RECORDS (load, import):
- Each record must be a JSON object shaped like a Transaction
- Ids must be unique within the list
- Bad records are dropped and reported, never silently fixed

IMPORTANT: Amounts are never rejected for their value. A NaN amount
is stored as-is and poisons the totals it takes part in.
"""

import math
import re
from typing import Any, Union

from pydantic import ValidationError

from katha.models.transaction import (
    RejectedRecord,
    Transaction,
    TransactionCandidate,
    TransactionType,
    ValidationIssue,
    parse_calendar_date,
)


# Longest numeric prefix, the way a browser's parseFloat reads form text
_FLOAT_PREFIX = re.compile(
    r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
)


class FormValidationError(ValueError):
    """The entry form broke its contract (missing or invalid fields)."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        summary = "; ".join(issue.message for issue in issues)
        super().__init__(f"Invalid transaction: {summary}")


def parse_amount(raw: Union[str, float, int, None]) -> float:
    """
    Parse an entered amount to a float.

    Leading whitespace is skipped and the longest numeric prefix is
    used ("12.50 rs" -> 12.5). Anything without a numeric prefix
    gives NaN.
    """
    if raw is None or isinstance(raw, bool):
        return math.nan
    if isinstance(raw, (int, float)):
        return float(raw)

    match = _FLOAT_PREFIX.match(str(raw).lstrip())
    if not match:
        return math.nan

    text = match.group(0)
    if text.endswith("Infinity"):
        return -math.inf if text.startswith("-") else math.inf
    return float(text)


class TransactionValidator:
    """
    Checks form candidates and persisted records.

    Stateless; one instance can serve the whole session.
    """

    def validate_candidate(
        self,
        candidate: TransactionCandidate,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Check a form candidate against the form contract.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        # Date
        if candidate.date is None or candidate.date == "":
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="Date is required",
            ))
        else:
            try:
                parse_calendar_date(candidate.date)
            except ValueError as e:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="invalid_format",
                    message=str(e),
                ))

        # Type
        allowed_types = {t.value for t in TransactionType}
        if candidate.type not in allowed_types:
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_value",
                message=f"Type must be one of {sorted(allowed_types)}, got {candidate.type!r}",
            ))

        # Amount
        if isinstance(candidate.amount, str) and not candidate.amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
            ))
        elif math.isnan(parse_amount(candidate.amount)):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="not_a_number",
                message=f"Amount {candidate.amount!r} is not a number and will be stored as NaN",
                severity="warning",
            ))

        # Free text
        if not candidate.category:
            issues.append(ValidationIssue(
                field="category",
                issue_type="missing",
                message="Category is required",
            ))
        if not candidate.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def build_transaction(
        self,
        candidate: TransactionCandidate,
        transaction_id: str,
    ) -> Transaction:
        """
        Turn a form candidate into a stored Transaction.

        Raises:
            FormValidationError: If the candidate has error-level issues
        """
        is_valid, issues = self.validate_candidate(candidate)
        if not is_valid:
            raise FormValidationError(
                [issue for issue in issues if issue.severity == "error"]
            )

        return Transaction(
            id=transaction_id,
            date=candidate.date,
            type=TransactionType(candidate.type),
            amount=parse_amount(candidate.amount),
            category=candidate.category,
            description=candidate.description,
        )

    def check_records(
        self,
        records: list[Any],
    ) -> tuple[list[Transaction], list[RejectedRecord]]:
        """
        Validate a list of persisted or imported records.

        Order of the accepted records is the order of the input.
        A record whose id was already seen earlier in the list is
        rejected as a duplicate.

        Returns: (accepted, rejected)
        """
        accepted = []
        rejected = []
        seen_ids = set()

        for index, record in enumerate(records):
            if not isinstance(record, dict):
                rejected.append(RejectedRecord(
                    index=index,
                    record=record,
                    issues=[ValidationIssue(
                        field="record",
                        issue_type="invalid_type",
                        message=f"Record is not an object ({type(record).__name__})",
                    )],
                ))
                continue

            try:
                transaction = Transaction.model_validate(record)
            except ValidationError as e:
                rejected.append(RejectedRecord(
                    index=index,
                    record=record,
                    issues=[
                        ValidationIssue(
                            field=".".join(str(part) for part in error["loc"]) or "record",
                            issue_type=error["type"],
                            message=error["msg"],
                        )
                        for error in e.errors()
                    ],
                ))
                continue

            if transaction.id in seen_ids:
                rejected.append(RejectedRecord(
                    index=index,
                    record=record,
                    issues=[ValidationIssue(
                        field="id",
                        issue_type="duplicate_id",
                        message=f"Duplicate transaction id {transaction.id!r}",
                    )],
                ))
                continue

            seen_ids.add(transaction.id)
            accepted.append(transaction)

        return accepted, rejected

    def get_user_friendly_summary(
        self,
        issues: list[ValidationIssue],
    ) -> str:
        """
        Generate a short summary of form issues for display.
        """
        if not issues:
            return "All fields look good."

        lines = []

        errors = [issue for issue in issues if issue.severity == "error"]
        warnings = [issue for issue in issues if issue.severity == "warning"]

        if errors:
            lines.append("Please fix the following:")
            for issue in errors:
                lines.append(f"   • {issue.message}")

        if warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for issue in warnings:
                lines.append(f"   • {issue.message}")

        return "\n".join(lines)
