"""Tests for form and record validation."""

import math
import pytest
from datetime import date

from katha.models.transaction import TransactionCandidate, TransactionType
from katha.validation import FormValidationError, TransactionValidator, parse_amount


@pytest.fixture
def validator():
    return TransactionValidator()


def valid_candidate(**overrides) -> TransactionCandidate:
    fields = {
        "date": "2024-03-01",
        "type": "expense",
        "amount": "12.50",
        "category": "Food",
        "description": "Lunch",
    }
    fields.update(overrides)
    return TransactionCandidate(**fields)


class TestParseAmount:
    """Tests for lenient amount parsing."""

    @pytest.mark.parametrize("text, expected", [
        ("12.50", 12.5),
        ("  7", 7.0),
        ("0", 0.0),
        ("-3.25", -3.25),
        (".5", 0.5),
        ("1e3", 1000.0),
        ("12.50 rs", 12.5),
        ("3.", 3.0),
    ])
    def test_numeric_text(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "rs 12", ".", "-", None])
    def test_non_numeric_text_is_nan(self, text):
        assert math.isnan(parse_amount(text))

    def test_infinity(self):
        assert parse_amount("Infinity") == math.inf
        assert parse_amount("-Infinity") == -math.inf

    def test_numbers_pass_through(self):
        assert parse_amount(5) == 5.0
        assert parse_amount(2.5) == 2.5

    def test_boolean_is_nan(self):
        assert math.isnan(parse_amount(True))


class TestValidateCandidate:
    """Tests for the entry form contract."""

    def test_valid_candidate(self, validator):
        is_valid, issues = validator.validate_candidate(valid_candidate())
        assert is_valid is True
        assert issues == []

    def test_missing_date(self, validator):
        is_valid, issues = validator.validate_candidate(valid_candidate(date=""))
        assert is_valid is False
        assert issues[0].field == "date"
        assert issues[0].issue_type == "missing"

    def test_invalid_date(self, validator):
        is_valid, issues = validator.validate_candidate(valid_candidate(date="2024-13-01"))
        assert is_valid is False
        assert issues[0].issue_type == "invalid_format"

    def test_unknown_type(self, validator):
        is_valid, issues = validator.validate_candidate(valid_candidate(type="refund"))
        assert is_valid is False
        assert issues[0].field == "type"

    def test_empty_category_and_description(self, validator):
        is_valid, issues = validator.validate_candidate(
            valid_candidate(category="   ", description="")
        )
        assert is_valid is False
        assert {issue.field for issue in issues} == {"category", "description"}

    def test_missing_amount_is_an_error(self, validator):
        is_valid, issues = validator.validate_candidate(valid_candidate(amount=""))
        assert is_valid is False
        assert issues[0].field == "amount"

    def test_non_numeric_amount_is_only_a_warning(self, validator):
        """Test that garbage amount text does not block the add."""
        is_valid, issues = validator.validate_candidate(valid_candidate(amount="abc"))
        assert is_valid is True
        assert issues[0].severity == "warning"
        assert issues[0].issue_type == "not_a_number"


class TestBuildTransaction:
    """Tests for turning a candidate into a Transaction."""

    def test_builds_transaction(self, validator):
        transaction = validator.build_transaction(valid_candidate(), "tx-1")
        assert transaction.id == "tx-1"
        assert transaction.date == date(2024, 3, 1)
        assert transaction.type == TransactionType.EXPENSE
        assert transaction.amount == 12.5
        assert transaction.category == "Food"

    def test_accepts_date_object(self, validator):
        transaction = validator.build_transaction(
            valid_candidate(date=date(2024, 2, 29)), "tx-1"
        )
        assert transaction.date == date(2024, 2, 29)

    def test_nan_amount_is_stored(self, validator):
        transaction = validator.build_transaction(valid_candidate(amount="oops"), "tx-1")
        assert math.isnan(transaction.amount)

    def test_raises_with_issues(self, validator):
        with pytest.raises(FormValidationError) as exc_info:
            validator.build_transaction(valid_candidate(category=""), "tx-1")
        assert [issue.field for issue in exc_info.value.issues] == ["category"]
        assert "Category is required" in str(exc_info.value)


class TestCheckRecords:
    """Tests for validating stored and imported records."""

    def test_accepts_valid_records_in_order(self, validator):
        records = [
            {"id": "b", "date": "2024-03-02", "type": "income", "amount": 5,
             "category": "c", "description": "d"},
            {"id": "a", "date": "2024-03-01", "type": "expense", "amount": 3,
             "category": "c", "description": "d"},
        ]
        accepted, rejected = validator.check_records(records)
        assert [t.id for t in accepted] == ["b", "a"]
        assert rejected == []

    def test_rejects_non_objects(self, validator):
        accepted, rejected = validator.check_records([1, "x", None])
        assert accepted == []
        assert [r.index for r in rejected] == [0, 1, 2]
        assert rejected[0].issues[0].issue_type == "invalid_type"

    def test_rejects_missing_fields(self, validator):
        accepted, rejected = validator.check_records([{"id": "1", "date": "2024-03-01"}])
        assert accepted == []
        fields = {issue.field for issue in rejected[0].issues}
        assert {"type", "amount", "category", "description"} <= fields

    def test_rejects_unparsable_date(self, validator):
        records = [{"id": "1", "date": "not a date", "type": "expense", "amount": 1,
                    "category": "c", "description": "d"}]
        accepted, rejected = validator.check_records(records)
        assert accepted == []
        assert rejected[0].issues[0].field == "date"

    def test_rejects_duplicate_ids(self, validator):
        record = {"id": "1", "date": "2024-03-01", "type": "expense", "amount": 1,
                  "category": "c", "description": "d"}
        accepted, rejected = validator.check_records([record, dict(record, amount=2)])
        assert len(accepted) == 1
        assert accepted[0].amount == 1.0
        assert rejected[0].index == 1
        assert rejected[0].issues[0].issue_type == "duplicate_id"

    def test_keeps_the_record_for_reporting(self, validator):
        _, rejected = validator.check_records([{"id": ""}])
        assert rejected[0].record == {"id": ""}


class TestUserFriendlySummary:
    """Tests for the form summary text."""

    def test_no_issues(self, validator):
        assert validator.get_user_friendly_summary([]) == "All fields look good."

    def test_errors_and_warnings(self, validator):
        _, issues = validator.validate_candidate(valid_candidate(amount="abc", category=""))
        summary = validator.get_user_friendly_summary(issues)
        assert "Please fix the following:" in summary
        assert "Category is required" in summary
        assert "Please verify the following:" in summary


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
