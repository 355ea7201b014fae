"""Services package."""

from bliq_money.services.auth import (
    AuthServiceInterface,
    AuthenticationError,
    LocalAuthService,
)
from bliq_money.services.errors import ExternalCollaboratorError
from bliq_money.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    LedgerStorageInterface,
    PersistenceError,
    StorageError,
)

__all__ = [
    "ExternalCollaboratorError",
    # Auth services
    "AuthServiceInterface",
    "AuthenticationError",
    "LocalAuthService",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
    "LedgerStorageInterface",
    "PersistenceError",
    "StorageError",
]
