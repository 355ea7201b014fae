"""
Storage Services Package

Provides abstract interfaces and concrete implementations for ledger
snapshot and audit storage. The JSON file backend is the default; Google
Sheets and in-memory backends are drop-in replacements.
"""

from bliq_money.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStorageInterface,
    PersistenceError,
    StorageError,
)
from bliq_money.services.storage.json_file import JsonFileLedgerStorage
from bliq_money.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
)
from bliq_money.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "PersistenceError",
    "StorageError",
    # Implementations
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
    "JsonFileLedgerStorage",
]
