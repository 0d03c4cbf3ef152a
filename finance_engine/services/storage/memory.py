"""
In-Memory Storage Implementation

Holds records in plain dicts keyed by owner. Used by tests and by
callers that already have their records loaded and just want the flows.

Reads return copies of the owner's lists; records themselves are
frozen models, so nothing a caller does can change stored state.
"""

from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from finance_engine.models.audit import AuditEvent
from finance_engine.models.records import (
    Budget,
    BudgetDraft,
    Loan,
    SavingsGoal,
    Transaction,
)
from finance_engine.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    RecordStorageInterface,
)


class InMemoryRecordStorage(RecordStorageInterface):
    """Record storage backed by process memory."""

    def __init__(
        self,
        transactions: Iterable[Transaction] = (),
        budgets: Iterable[Budget] = (),
        goals: Iterable[SavingsGoal] = (),
        loans: Iterable[Loan] = (),
    ):
        self._transactions = list(transactions)
        self._budgets = list(budgets)
        self._goals = list(goals)
        self._loans = list(loans)
        self._next_budget_id = max((b.id for b in self._budgets), default=0) + 1

    async def list_transactions(self, owner_id: str) -> list[Transaction]:
        owned = [t for t in self._transactions if t.owner_id == owner_id]
        return sorted(owned, key=lambda t: (t.date, t.id))

    async def list_budgets(self, owner_id: str) -> list[Budget]:
        return [b for b in self._budgets if b.owner_id == owner_id]

    async def list_savings_goals(self, owner_id: str) -> list[SavingsGoal]:
        return [g for g in self._goals if g.owner_id == owner_id]

    async def list_loans(self, owner_id: str) -> list[Loan]:
        return [loan for loan in self._loans if loan.owner_id == owner_id]

    def _find_budget(self, owner_id: str, budget_id: int) -> Optional[Budget]:
        for budget in self._budgets:
            if budget.owner_id == owner_id and budget.id == budget_id:
                return budget
        return None

    async def create_budget(self, owner_id: str, draft: BudgetDraft) -> Budget:
        for existing in self._budgets:
            if (
                existing.owner_id == owner_id
                and existing.category == draft.category
                and existing.period == draft.period
                and existing.start_date == draft.start_date
                and existing.end_date == draft.end_date
            ):
                raise DuplicateError(
                    f"Budget for {draft.category} ({draft.period.value}, "
                    f"{draft.start_date} to {draft.end_date}) already exists"
                )

        budget = Budget(id=self._next_budget_id, owner_id=owner_id, **draft.model_dump())
        self._next_budget_id += 1
        self._budgets.append(budget)
        return budget

    async def delete_budget(self, owner_id: str, budget_id: int) -> bool:
        budget = self._find_budget(owner_id, budget_id)
        if budget is None:
            raise NotFoundError(f"Budget {budget_id} not found")
        self._budgets.remove(budget)
        return True

    async def update_loan_balance(
        self,
        owner_id: str,
        loan_id: int,
        balance: Decimal,
    ) -> Loan:
        for index, loan in enumerate(self._loans):
            if loan.owner_id == owner_id and loan.id == loan_id:
                updated = loan.model_copy(update={"balance": balance})
                self._loans[index] = updated
                return updated
        raise NotFoundError(f"Loan {loan_id} not found")


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
