"""
Data Models Package

This package contains all Pydantic models used in Bliq Money.
Everything stored in a ledger snapshot conforms to these schemas.
"""

from bliq_money.models.ledger import (
    DEFAULT_CATEGORIES,
    MONTHS,
    Category,
    FinanceState,
    MonthData,
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
from bliq_money.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from bliq_money.models.user import AuthSession, UserProfile

__all__ = [
    # Ledger models
    "DEFAULT_CATEGORIES",
    "MONTHS",
    "Category",
    "FinanceState",
    "MonthData",
    "MonthKey",
    "MonthSettings",
    "MonthTotals",
    "Transaction",
    "TransactionDraft",
    "TransactionStatus",
    "TransactionType",
    "TypeFilter",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Session models
    "AuthSession",
    "UserProfile",
]
