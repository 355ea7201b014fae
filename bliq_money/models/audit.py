"""
Audit Models for Bliq Money

Every ledger mutation and every call to an external collaborator is
recorded as an audit event. This provides:
1. Traceability of what changed a user's balances
2. Debugging information when a save or an advice call fails
3. A way to reconstruct what happened during a session

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Session
    USER_LOGGED_IN = "user_logged_in"
    USER_SIGNED_UP = "user_signed_up"
    USER_LOGGED_OUT = "user_logged_out"
    AUTH_FAILED = "auth_failed"
    PASSWORD_RESET_REQUESTED = "password_reset_requested"

    # Ledger persistence
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_CREATED = "ledger_created"
    LEDGER_SAVED = "ledger_saved"
    SAVE_FAILED = "save_failed"

    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_CONFIRMED = "transaction_confirmed"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    VALIDATION_FAILED = "validation_failed"

    # Months and categories
    CARRY_OVER_TOGGLED = "carry_over_toggled"
    CATEGORY_ADDED = "category_added"
    CATEGORY_REMOVED = "category_removed"

    # Advice
    ADVICE_REQUESTED = "advice_requested"
    ADVICE_GENERATED = "advice_generated"
    ADVICE_FAILED = "advice_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - which user, which entity?
    user_id: Optional[str] = Field(
        default=None,
        description="Owner of the ledger the event is about"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'category', 'month')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID (or month name) of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, entity_type,
         entity_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_added(user_id, month, tx, correlation_id)
        event = AuditEventBuilder.save_failed(user_id, error, correlation_id)
    """

    @staticmethod
    def user_logged_in(user_id: str, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_IN,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description=f"User logged in: {email}",
            is_user_action=True,
        )

    @staticmethod
    def user_signed_up(user_id: str, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_UP,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description=f"User signed up: {email}",
            is_user_action=True,
        )

    @staticmethod
    def user_logged_out(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_LOGGED_OUT,
            user_id=user_id,
            entity_type="user",
            entity_id=user_id,
            description="User logged out",
            is_user_action=True,
        )

    @staticmethod
    def auth_failed(action: str, email: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUTH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Authentication failed during {action}",
            details={"email": email, "action": action},
            error_message=error_message,
        )

    @staticmethod
    def password_reset_requested(email: str, account_found: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_RESET_REQUESTED,
            entity_type="user",
            description="Password reset requested",
            details={"email": email, "account_found": account_found},
            is_user_action=True,
        )

    @staticmethod
    def ledger_loaded(user_id: str, created: bool, transaction_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.LEDGER_CREATED if created
                else AuditEventType.LEDGER_LOADED
            ),
            user_id=user_id,
            entity_type="ledger",
            entity_id=user_id,
            description=(
                "New ledger created" if created
                else f"Ledger loaded with {transaction_count} transactions"
            ),
            details={"transaction_count": transaction_count},
        )

    @staticmethod
    def ledger_saved(user_id: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_SAVED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            entity_type="ledger",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Ledger snapshot saved",
        )

    @staticmethod
    def save_failed(user_id: str, error_message: str, correlation_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type="ledger",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Ledger snapshot could not be saved; change kept in memory",
            error_message=error_message,
        )

    @staticmethod
    def transaction_added(
        user_id: str,
        month: str,
        transaction_id: str,
        amount: str,
        transaction_type: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"{transaction_type} of R$ {amount} added to {month}",
            details={"month": month, "amount": amount, "type": transaction_type},
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        user_id: str,
        month: str,
        transaction_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction edited in {month}",
            details={"month": month},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        user_id: str,
        month: str,
        transaction_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction deleted from {month}",
            details={"month": month},
            is_user_action=True,
        )

    @staticmethod
    def transaction_confirmed(
        user_id: str,
        month: str,
        transaction_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CONFIRMED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Pending transaction confirmed in {month}",
            details={"month": month},
            is_user_action=True,
        )

    @staticmethod
    def transaction_not_found(
        user_id: str,
        month: str,
        transaction_id: str,
        action: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Ignored {action}: no such transaction in {month}",
            details={"month": month, "action": action},
        )

    @staticmethod
    def validation_failed(
        user_id: str,
        entity_type: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"Validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def carry_over_toggled(
        user_id: str,
        month: str,
        enabled: bool,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CARRY_OVER_TOGGLED,
            user_id=user_id,
            entity_type="month",
            entity_id=month,
            correlation_id=correlation_id,
            description=f"Carry-over {'enabled' if enabled else 'disabled'} for {month}",
            details={"carry_over_balance": enabled},
            is_user_action=True,
        )

    @staticmethod
    def category_added(
        user_id: str,
        category_id: str,
        name: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            user_id=user_id,
            entity_type="category",
            entity_id=category_id,
            correlation_id=correlation_id,
            description=f"Category added: {name}",
            is_user_action=True,
        )

    @staticmethod
    def category_removed(
        user_id: str,
        category_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_REMOVED,
            user_id=user_id,
            entity_type="category",
            entity_id=category_id,
            correlation_id=correlation_id,
            description="Category removed",
            is_user_action=True,
        )

    @staticmethod
    def advice_requested(
        user_id: str,
        month: str,
        transaction_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVICE_REQUESTED,
            user_id=user_id,
            entity_type="month",
            entity_id=month,
            correlation_id=correlation_id,
            description=f"Advice requested for {month}",
            details={"transaction_count": transaction_count},
            is_user_action=True,
        )

    @staticmethod
    def advice_generated(
        user_id: str,
        month: str,
        paragraph_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVICE_GENERATED,
            user_id=user_id,
            entity_type="month",
            entity_id=month,
            correlation_id=correlation_id,
            description=f"Advice generated for {month}",
            details={"paragraph_count": paragraph_count},
        )

    @staticmethod
    def advice_failed(
        user_id: str,
        month: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADVICE_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="month",
            entity_id=month,
            correlation_id=correlation_id,
            description=f"No insight available for {month}",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={"service": service},
            correlation_id=correlation_id,
        )
