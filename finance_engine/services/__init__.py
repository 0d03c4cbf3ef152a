"""Services package."""

from finance_engine.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    NotFoundError,
    RecordStorageInterface,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "InMemoryAuditStorage",
    "InMemoryRecordStorage",
    "NotFoundError",
    "RecordStorageInterface",
    "StorageError",
]
