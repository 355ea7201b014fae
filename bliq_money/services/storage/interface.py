"""
Abstract Storage Interface

DESIGN DECISION: Persistence works on whole snapshots.
After every completed mutation the session saves the user's entire
FinanceState; there are no partial writes and no transactions to manage.
This allows us to:
1. Swap a local JSON file for Google Sheets (or a database) freely
2. Use in-memory storage for testing
3. Keep the ledger engine unaware of persistence

The interface is intentionally small: load and save one snapshot per user.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from bliq_money.models.audit import AuditEvent
from bliq_money.models.ledger import FinanceState
from bliq_money.services.errors import ExternalCollaboratorError


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger snapshot storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def load(self, user_id: str) -> Optional[FinanceState]:
        """
        Load the last saved snapshot of a user's ledger.

        Args:
            user_id: Owner of the ledger

        Returns:
            The snapshot, or None if the user has never saved one

        Raises:
            StorageError: If the backend fails or the data is corrupt
        """
        pass

    @abstractmethod
    async def save(self, user_id: str, state: FinanceState) -> bool:
        """
        Replace the stored snapshot of a user's ledger.

        Args:
            user_id: Owner of the ledger
            state: The full ledger state

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        """
        Remove a user's snapshot.

        Returns:
            True if something was deleted
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event to the log. Returns True if logged."""
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """All events of one user action, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_user(
        self,
        user_id: str,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """A user's most recent events (newest first)."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """The most recent events (newest first)."""
        pass


class StorageError(ExternalCollaboratorError):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class PersistenceError(StorageError):
    """
    A mutation was applied in memory but its snapshot could not be saved.

    The ledger keeps working; the change is lost if the app is reloaded
    before the next successful save.
    """
    pass
