"""
In-Memory Storage

Process-local implementations of the storage interfaces. Used by the tests
and by the app when STORAGE_BACKEND=memory.
"""

from typing import Optional
from uuid import UUID

from bliq_money.models.audit import AuditEvent
from bliq_money.models.ledger import FinanceState
from bliq_money.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """
    Keeps one snapshot per user in a dict.

    Snapshots are deep-copied on the way in and out, so later mutations of
    the live ledger never leak into what was "saved".
    """

    def __init__(self):
        self._snapshots: dict[str, FinanceState] = {}
        self.save_count = 0

    async def load(self, user_id: str) -> Optional[FinanceState]:
        state = self._snapshots.get(user_id)
        return state.model_copy(deep=True) if state is not None else None

    async def save(self, user_id: str, state: FinanceState) -> bool:
        self._snapshots[user_id] = state.model_copy(deep=True)
        self.save_count += 1
        return True

    async def delete(self, user_id: str) -> bool:
        return self._snapshots.pop(user_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_user(
        self,
        user_id: str,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if e.user_id == user_id]
        return sorted(events, key=lambda e: e.timestamp, reverse=True)[:limit]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
