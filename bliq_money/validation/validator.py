"""
Two-Stage Transaction Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Type and format checks
- Non-negative amount
- These are exactly the checks the ledger itself enforces on add/update

STAGE 2 - SEMANTIC VALIDATION:
- Date outside the month it is being filed under
- Zero amount
- Unusually large amount
- Category not in the registry
- These are warnings only. The user may have good reasons.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the form can show them before saving.
"""

from typing import Optional

from bliq_money.config import AppSettings, get_settings
from bliq_money.ledger.categories import CategoryRegistry
from bliq_money.ledger.errors import ValidationError
from bliq_money.ledger.transactions import DraftInput, parse_draft
from bliq_money.models.ledger import (
    ZERO,
    MonthKey,
    TransactionDraft,
    ValidationIssue,
    ValidationResult,
)


class TransactionValidator:
    """
    Validates transaction input through a two-stage pipeline.

    Stage 1: Schema validation (blocking)
    Stage 2: Semantic validation (warnings)
    """

    def __init__(
        self,
        categories: Optional[CategoryRegistry] = None,
        settings: Optional[AppSettings] = None,
    ):
        """
        Initialize validator.

        Args:
            categories: Registry to check category names against.
                        If None, the orphan check is skipped.
        """
        self._categories = categories
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        data: DraftInput,
    ) -> tuple[Optional[TransactionDraft], list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (draft or None, list_of_issues)
        """
        try:
            return parse_draft(data), []
        except ValidationError as e:
            return None, e.issues

    def _validate_semantic(
        self,
        draft: TransactionDraft,
        month: MonthKey,
    ) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation.

        Returns: list_of_issues (all warnings)
        """
        issues = []

        if MonthKey.from_date(draft.date) != month:
            issues.append(ValidationIssue(
                field="date",
                issue_type="outside_month",
                message=(
                    f"Date {draft.date.strftime('%d/%m/%Y')} is not in {month.value}; "
                    f"it will still be recorded under {month.value}"
                ),
                severity="warning",
                suggested_fix=f"Switch to {MonthKey.from_date(draft.date).value} before saving",
            ))

        if draft.amount == ZERO:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="zero_amount",
                message="Amount is zero and will not change any balance",
                severity="warning",
            ))
        elif draft.amount > self._settings.max_transaction_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=(
                    f"Amount ({self._settings.currency_symbol} {draft.amount:,.2f}) "
                    "seems unusually high"
                ),
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        if self._categories is not None and draft.category not in self._categories.names():
            issues.append(ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message=f"Category '{draft.category}' is not in your category list",
                severity="info",
            ))

        return issues

    def validate(self, data: DraftInput, month: MonthKey) -> ValidationResult:
        """
        Run both stages.

        Stage 2 only runs if stage 1 produced a draft.
        """
        draft, issues = self._validate_schema(data)
        if draft is None:
            return ValidationResult(schema_valid=False, issues=issues)

        issues.extend(self._validate_semantic(draft, MonthKey(month)))
        return ValidationResult(schema_valid=True, issues=issues, draft=draft)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Generate a user-friendly summary of validation results."""
        if result.is_valid and not result.issues:
            return "Everything looks good."

        lines = []
        if result.has_errors:
            lines.append(f"Found {result.error_count} problem(s) that must be fixed:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.field}: {issue.message}")

        notes = [issue for issue in result.issues if issue.severity != "error"]
        if notes:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for issue in notes:
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     {issue.suggested_fix}")

        return "\n".join(lines)
