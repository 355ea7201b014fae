"""
Tests for Bliq Money

Test strategy:
1. Unit tests for individual components (models, ledger, validator)
2. Integration tests for the session flow (with in-memory collaborators)
3. No real API calls in tests (use stubs)
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from bliq_money.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from bliq_money.models.ledger import (
    DEFAULT_CATEGORIES,
    MONTHS,
    FinanceState,
    MonthKey,
    MonthSettings,
    MonthTotals,
    Transaction,
    TransactionDraft,
    TransactionStatus,
    TransactionType,
    TypeFilter,
    ValidationIssue,
    ValidationResult,
)
from bliq_money.models.user import UserProfile


class TestMonthKey:
    """Tests for the closed set of month buckets."""

    def test_twelve_months_in_calendar_order(self):
        assert len(MONTHS) == 12
        assert MONTHS[0] == MonthKey.JANEIRO
        assert MONTHS[2].value == "Março"
        assert MONTHS[11] == MonthKey.DEZEMBRO

    def test_ordinal_and_previous(self):
        assert MonthKey.JANEIRO.ordinal == 0
        assert MonthKey.DEZEMBRO.ordinal == 11
        assert MonthKey.JANEIRO.previous is None
        assert MonthKey.MARCO.previous == MonthKey.FEVEREIRO

    def test_from_date(self):
        assert MonthKey.from_date(date(2024, 3, 31)) == MonthKey.MARCO
        assert MonthKey.from_date(date(2024, 12, 1)) == MonthKey.DEZEMBRO

    def test_from_index_out_of_range(self):
        assert MonthKey.from_index(4) == MonthKey.MAIO
        with pytest.raises(ValueError):
            MonthKey.from_index(12)

    def test_unknown_month_name_rejected(self):
        with pytest.raises(ValueError):
            MonthKey("Marco")


class TestTransactionModels:
    """Tests for transaction Pydantic models."""

    def test_draft_strips_whitespace(self):
        draft = TransactionDraft(
            description="  Mercado  ",
            amount=Decimal("10.50"),
            date=date(2024, 1, 1),
            category=" Alimentação ",
            type=TransactionType.EXPENSE,
        )
        assert draft.description == "Mercado"
        assert draft.category == "Alimentação"
        assert draft.status == TransactionStatus.CONFIRMED

    def test_draft_rejects_negative_amount(self):
        with pytest.raises(ValueError):
            TransactionDraft(
                description="Test",
                amount=Decimal("-1"),
                date=date(2024, 1, 1),
                category="Outros",
                type=TransactionType.EXPENSE,
            )

    def test_draft_rejects_blank_description(self):
        with pytest.raises(ValueError):
            TransactionDraft(
                description="   ",
                amount=Decimal("1"),
                date=date(2024, 1, 1),
                category="Outros",
                type=TransactionType.EXPENSE,
            )

    def test_transaction_gets_unique_ids(self):
        draft = TransactionDraft(
            description="Test",
            amount=Decimal("1"),
            date=date(2024, 1, 1),
            category="Outros",
            type=TransactionType.INCOME,
        )
        first = Transaction.from_draft(draft)
        second = Transaction.from_draft(draft)
        assert first.id and second.id
        assert first.id != second.id

    def test_signed_amount(self):
        expense = Transaction(
            description="Aluguel",
            amount=Decimal("400"),
            date=date(2024, 1, 1),
            category="Moradia",
            type=TransactionType.EXPENSE,
        )
        assert expense.signed_amount == Decimal("-400")
        assert expense.is_confirmed is True

    def test_type_filter_matches(self):
        assert TypeFilter.ALL.matches(TransactionType.INCOME)
        assert TypeFilter.INCOME.matches(TransactionType.INCOME)
        assert not TypeFilter.EXPENSE.matches(TransactionType.INCOME)


class TestFinanceState:
    """Tests for the ledger root and its snapshot shape."""

    def test_initial_state(self):
        state = FinanceState.initial()
        assert list(state.months) == MONTHS
        assert all(not m.transactions for m in state.months.values())
        assert all(not m.settings.carry_over_balance for m in state.months.values())
        assert [c.id for c in state.categories] == ["1", "2", "3", "4", "5", "6"]

    def test_initial_categories_are_copies(self):
        state = FinanceState.initial()
        state.categories.pop()
        assert len(DEFAULT_CATEGORIES) == 6

    def test_missing_months_are_filled_in_calendar_order(self):
        state = FinanceState.model_validate({
            "months": {
                "Março": {"transactions": [], "settings": {"carryOverBalance": True}},
            },
            "categories": [],
        })
        assert list(state.months) == MONTHS
        assert state.months[MonthKey.MARCO].settings.carry_over_balance is True
        assert state.months[MonthKey.JANEIRO].settings.carry_over_balance is False

    def test_snapshot_shape(self):
        state = FinanceState.initial()
        state.months[MonthKey.JANEIRO].transactions.append(Transaction(
            id="t1",
            description="Salário",
            amount=Decimal("1500.50"),
            date=date(2024, 1, 5),
            category="Salário",
            type=TransactionType.INCOME,
        ))

        snapshot = state.to_snapshot()

        assert list(snapshot) == ["months", "categories"]
        assert list(snapshot["months"]) == [m.value for m in MONTHS]
        january = snapshot["months"]["Janeiro"]
        assert january["settings"] == {"carryOverBalance": False}
        assert january["transactions"][0]["amount"] == "1500.50"
        assert january["transactions"][0]["date"] == "2024-01-05"
        assert january["transactions"][0]["type"] == "INCOME"

    def test_snapshot_accepts_numeric_amounts(self):
        state = FinanceState.model_validate({
            "months": {
                "Janeiro": {
                    "transactions": [{
                        "id": "t1",
                        "description": "Salário",
                        "amount": 1500.5,
                        "date": "2024-01-05",
                        "category": "Salário",
                        "type": "INCOME",
                        "status": "CONFIRMED",
                    }],
                    "settings": {"carryOverBalance": False},
                },
            },
        })
        assert state.months[MonthKey.JANEIRO].transactions[0].amount == Decimal("1500.5")

    def test_month_settings_accepts_field_name(self):
        assert MonthSettings(carry_over_balance=True).carry_over_balance is True


class TestMonthTotals:

    def test_derived_properties(self):
        totals = MonthTotals(
            confirmed_income=Decimal("1000"),
            confirmed_expense=Decimal("400"),
            pending_income=Decimal("200"),
            pending_expense=Decimal("50"),
        )
        assert totals.month_result == Decimal("600")
        assert totals.pending_result == Decimal("150")

    def test_totals_are_frozen(self):
        totals = MonthTotals()
        with pytest.raises(ValueError):
            totals.net = Decimal("1")


class TestUserProfile:

    def test_email_is_normalized(self):
        user = UserProfile(id="u1", name="Ana Souza", email="  Ana@Example.COM ")
        assert user.email == "ana@example.com"
        assert user.first_name == "Ana"

    def test_invalid_email_rejected(self):
        with pytest.raises(ValueError):
            UserProfile(id="u1", name="Ana", email="not-an-email")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            description="Test transaction added",
        )
        assert event.event_type == AuditEventType.TRANSACTION_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.LEDGER_SAVED,
            description="Ledger saved",
            details={"month": "Janeiro"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "ledger_saved"
        assert log_dict["details"]["month"] == "Janeiro"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.CARRY_OVER_TOGGLED,
            user_id="user-1",
            description="Carry-over enabled",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 12
        assert row[2] == "carry_over_toggled"
        assert row[4] == "user-1"
        assert row[11] == "True"

    def test_audit_event_builder_transaction_added(self):
        correlation_id = uuid4()

        event = AuditEventBuilder.transaction_added(
            user_id="user-1",
            month="Janeiro",
            transaction_id="t1",
            amount="100.00",
            transaction_type="EXPENSE",
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.TRANSACTION_ADDED
        assert event.entity_id == "t1"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_audit_event_builder_save_failed(self):
        event = AuditEventBuilder.save_failed("user-1", "disk full", uuid4())
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "disk full"

    def test_ledger_loaded_distinguishes_new_ledgers(self):
        created = AuditEventBuilder.ledger_loaded("user-1", created=True, transaction_count=0)
        loaded = AuditEventBuilder.ledger_loaded("user-1", created=False, transaction_count=3)
        assert created.event_type == AuditEventType.LEDGER_CREATED
        assert loaded.event_type == AuditEventType.LEDGER_LOADED
        assert loaded.details["transaction_count"] == 3


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            schema_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert result.is_valid is False

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            schema_valid=True,
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="outside_month",
                    message="Date outside month",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.is_valid is True
        assert len(result.warnings) == 1

    def test_errors_are_listed_first(self):
        result = ValidationResult(
            schema_valid=False,
            issues=[
                ValidationIssue(field="a", issue_type="x", message="m", severity="info"),
                ValidationIssue(field="b", issue_type="x", message="m", severity="error"),
                ValidationIssue(field="c", issue_type="x", message="m", severity="warning"),
            ],
        )
        assert [i.severity for i in result.issues] == ["error", "warning", "info"]

    def test_invalid_severity_rejected(self):
        with pytest.raises(ValueError):
            ValidationIssue(field="a", issue_type="x", message="m", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
