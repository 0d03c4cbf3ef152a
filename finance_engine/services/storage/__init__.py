"""
Storage Services Package

Provides abstract interfaces and an in-memory implementation for the
records the engine reads and the budgets it creates.
"""

from finance_engine.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    RecordStorageInterface,
    StorageError,
)
from finance_engine.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryRecordStorage",
]
