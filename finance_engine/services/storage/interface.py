"""
Abstract Storage Interface

DESIGN DECISION: The engine never talks to a database. Flows read
snapshots and write budgets through this interface, so that:
1. Any record store (SQL, spreadsheet, REST backend) can sit behind it
2. Tests run against in-memory storage
3. Computation stays decoupled from persistence

The interface is intentionally small - just what the flows need.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from uuid import UUID

from finance_engine.models.audit import AuditEvent
from finance_engine.models.records import (
    Budget,
    BudgetDraft,
    Loan,
    SavingsGoal,
    Transaction,
)


class RecordStorageInterface(ABC):
    """
    Abstract interface for the owner-scoped financial records.

    Every read returns only the records of the given owner.
    """

    @abstractmethod
    async def list_transactions(self, owner_id: str) -> list[Transaction]:
        """
        List every transaction of an owner.

        Returns:
            Transactions ordered by date, then id
        """
        pass

    @abstractmethod
    async def list_budgets(self, owner_id: str) -> list[Budget]:
        """List every budget of an owner."""
        pass

    @abstractmethod
    async def list_savings_goals(self, owner_id: str) -> list[SavingsGoal]:
        """List every savings goal of an owner."""
        pass

    @abstractmethod
    async def list_loans(self, owner_id: str) -> list[Loan]:
        """List every loan of an owner."""
        pass

    @abstractmethod
    async def create_budget(self, owner_id: str, draft: BudgetDraft) -> Budget:
        """
        Persist a new budget.

        Args:
            owner_id: Owner of the new budget
            draft: Create payload built by the budget allocator

        Returns:
            The stored budget with its assigned id

        Raises:
            DuplicateError: If an identical budget already exists
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_budget(self, owner_id: str, budget_id: int) -> bool:
        """
        Delete a budget.

        Raises:
            NotFoundError: If the owner has no such budget
        """
        pass

    @abstractmethod
    async def update_loan_balance(
        self,
        owner_id: str,
        loan_id: int,
        balance: Decimal,
    ) -> Loan:
        """
        Store a new outstanding balance for a loan.

        Raises:
            NotFoundError: If the owner has no such loan
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one batch submission).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
