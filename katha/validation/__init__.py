"""Validation package."""

from katha.validation.validator import (
    FormValidationError,
    TransactionValidator,
    parse_amount,
)

__all__ = ["FormValidationError", "TransactionValidator", "parse_amount"]
