"""Tests for the audit logger."""

import pytest

from bliq_money.audit import AuditLogger, create_correlation_id
from bliq_money.audit.logger import LOG_METHODS
from bliq_money.models.audit import AuditEventBuilder, AuditEventType, AuditSeverity
from bliq_money.services.storage import InMemoryAuditStorage, StorageError


class BrokenAuditStorage(InMemoryAuditStorage):

    async def append_event(self, event) -> bool:
        raise StorageError("sheet unavailable")


class TestAuditLogger:

    @pytest.mark.asyncio
    async def test_persists_events(self, audit_logger, audit_storage):
        assert await audit_logger.log(AuditEventBuilder.user_logged_out("user-1")) is True
        assert event_types(audit_storage) == [AuditEventType.USER_LOGGED_OUT]

    @pytest.mark.asyncio
    async def test_local_only(self):
        assert await AuditLogger().log(AuditEventBuilder.user_logged_out("user-1")) is True

    @pytest.mark.asyncio
    async def test_storage_failure_does_not_raise(self):
        logger = AuditLogger(BrokenAuditStorage())
        assert await logger.log(AuditEventBuilder.user_logged_out("user-1")) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("severity", list(AuditSeverity))
    async def test_every_severity_is_logged(self, audit_logger, audit_storage, severity):
        event = AuditEventBuilder.user_logged_out("user-1").model_copy(update={"severity": severity})

        assert await audit_logger.log(event) is True
        assert audit_storage.events[-1].severity == severity

    def test_every_severity_has_a_log_method(self):
        assert set(LOG_METHODS) == set(AuditSeverity)

    @pytest.mark.asyncio
    async def test_error_helpers(self, audit_logger, audit_storage):
        correlation_id = create_correlation_id()
        await audit_logger.log_error("KeyError", "boom", {"month": "Maio"}, correlation_id)
        await audit_logger.log_external_service_error("gemini", "timeout", correlation_id)

        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [
            AuditEventType.SYSTEM_ERROR,
            AuditEventType.EXTERNAL_SERVICE_ERROR,
        ]
        assert events[1].details == {"service": "gemini"}


def event_types(audit_storage) -> list[AuditEventType]:
    return [event.event_type for event in audit_storage.events]
