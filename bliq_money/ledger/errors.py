"""
Ledger Exceptions

Mutations either succeed or raise one of these without touching state.
"""

from pydantic import ValidationError as PydanticValidationError

from bliq_money.models.ledger import ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """
    Malformed input to a ledger mutation.

    Carries the individual issues so the UI can show them per field.
    """

    def __init__(self, message: str, issues: list[ValidationIssue] | None = None):
        super().__init__(message)
        self.issues = issues or []

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError, entity: str) -> "ValidationError":
        """Convert a pydantic error into our own, one issue per failing field."""
        issues = [
            ValidationIssue(
                field=".".join(str(part) for part in error["loc"]) or entity,
                issue_type="missing" if error["type"] == "missing" else "invalid_value",
                message=error["msg"],
                severity="error",
            )
            for error in exc.errors()
        ]
        fields = ", ".join(issue.field for issue in issues)
        return cls(f"Invalid {entity}: {fields}", issues)

    @classmethod
    def single(cls, field: str, issue_type: str, message: str) -> "ValidationError":
        return cls(
            message,
            [ValidationIssue(field=field, issue_type=issue_type, message=message, severity="error")],
        )


class NotFoundError(LedgerError):
    """Referenced id does not exist. Only raised by the strict lookups."""
    pass
