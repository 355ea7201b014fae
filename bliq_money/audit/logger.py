"""
Audit Logger

Every change to a user's ledger, every save and every advisor call ends
up here, with one correlation id per user action. When a balance looks
wrong, the audit trail of that user answers which action moved it and
whether it reached storage.

Events go to the structured process log first. The audit storage (the
Audit worksheet, when Google Sheets is the backend) is written second and
is allowed to fail: a lost audit row never undoes or blocks a ledger
change.
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from bliq_money.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from bliq_money.services.storage import AuditStorageInterface


# JSON lines on the stdlib logging handlers
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# structlog method per audit severity
LOG_METHODS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "critical",
}


class AuditLogger:
    """
    Records ledger audit events.

    Without a storage backend (tests, the memory backend) events only reach
    the process log.
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        self._storage = storage
        self._logger = structlog.get_logger("bliq_money.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Record one event.

        Returns False only when the audit storage rejected the event.
        """
        log_dict = event.to_log_dict()
        getattr(self._logger, LOG_METHODS[event.severity])("audit_event", **log_dict)

        if self._storage is None:
            return True

        try:
            return await self._storage.append_event(event)
        except Exception as e:
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=log_dict["event_id"],
                user_id=event.user_id,
                correlation_id=log_dict["correlation_id"],
            )
            return False

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Record an unexpected failure inside the app."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Record a failure of Sheets, Gemini or another outside service."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    New correlation id for one user action.

    The mutation event and the save (or save_failed) event of the same
    action share it.
    """
    return uuid4()
