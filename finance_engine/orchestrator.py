"""
Main Orchestrator for Finance Engine

This module ties together storage, the computation engine and the audit
logger, and defines the end-to-end flows for:
1. Dashboard (snapshot → loan/goal/budget progress → summary)
2. Budget Allocation (income → plan → validate → conflicts → create)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The engine only ever sees an immutable snapshot, never storage
- No budget is created while any conflict exists
- Every flow run is audited under one correlation ID

Budget creation is NOT atomic. Each draft is written on its own; created
budgets and failures are reported separately and nothing is rolled back.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_engine.audit import AuditLogger, create_correlation_id
from finance_engine.config import StorageSettings, get_settings
from finance_engine.engine import (
    FIFTY_THIRTY_TWENTY,
    CategoryInfo,
    build_budget_drafts,
    calculate_budget_progress,
    calculate_financial_summary,
    calculate_goal_progress,
    calculate_loan_progress,
    conflict_categories,
    describe_payoff,
    find_conflicts,
    plan_allocation,
    scheduled_payment,
    spending_by_category,
    summarize_allocations,
)
from finance_engine.engine.money import money_str
from finance_engine.engine.summary import month_bounds
from finance_engine.errors import PayoffUnreachable, ValidationError
from finance_engine.models import (
    AllocationRule,
    AllocationSummary,
    Budget,
    BudgetAllocation,
    BudgetConflict,
    BudgetDraft,
    BudgetProgress,
    CategorySpending,
    FinancialSummary,
    GoalProgress,
    Loan,
    LoanProgress,
    PayoffEstimate,
    PeriodWindow,
    SavingsGoal,
    SimpleInterestTerms,
    Transaction,
    ValidationResult,
)
from finance_engine.services.storage import (
    ConnectionError,
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    RecordStorageInterface,
    StorageError,
)
from finance_engine.validation import AllocationRequestValidator


# =============================================================================
# SNAPSHOTS
# =============================================================================

class FinanceSnapshot(BaseModel):
    """All records of one owner, read once and never mutated."""
    model_config = ConfigDict(frozen=True)

    owner_id: str
    transactions: tuple[Transaction, ...] = ()
    budgets: tuple[Budget, ...] = ()
    goals: tuple[SavingsGoal, ...] = ()
    loans: tuple[Loan, ...] = ()

    def counts(self) -> dict[str, int]:
        return {
            "transactions": len(self.transactions),
            "budgets": len(self.budgets),
            "goals": len(self.goals),
            "loans": len(self.loans),
        }


async def load_snapshot(storage: RecordStorageInterface, owner_id: str) -> FinanceSnapshot:
    """Fetch the four record collections of an owner concurrently."""
    transactions, budgets, goals, loans = await asyncio.gather(
        storage.list_transactions(owner_id),
        storage.list_budgets(owner_id),
        storage.list_savings_goals(owner_id),
        storage.list_loans(owner_id),
    )
    return FinanceSnapshot(
        owner_id=owner_id,
        transactions=tuple(transactions),
        budgets=tuple(budgets),
        goals=tuple(goals),
        loans=tuple(loans),
    )


# =============================================================================
# DASHBOARD
# =============================================================================

class LoanOverview(BaseModel):
    """Progress of one loan and, when it has a repayment, its payoff horizon."""
    model_config = ConfigDict(frozen=True)

    loan_id: int
    name: str
    progress: Optional[LoanProgress] = None
    payment: Optional[Decimal] = None
    payoff: Optional[PayoffEstimate] = None


class Dashboard(BaseModel):
    """Everything the overview screen shows for one owner."""
    model_config = ConfigDict(frozen=True)

    owner_id: str
    as_of: date
    summary: FinancialSummary
    loans: list[LoanOverview] = Field(default_factory=list)
    goals: list[GoalProgress] = Field(default_factory=list)
    budgets: list[BudgetProgress] = Field(default_factory=list)
    spending: list[CategorySpending] = Field(default_factory=list)
    issues: list[str] = Field(
        default_factory=list,
        description="Loans whose numbers could not be computed, and why"
    )


def repayment_amount(loan: Loan) -> Optional[Decimal]:
    """Payment per repayment period, if the loan defines one."""
    if loan.is_amortized:
        return scheduled_payment(loan)
    if isinstance(loan.terms, SimpleInterestTerms) and loan.terms.current_repayment > 0:
        return loan.terms.current_repayment
    return None


class DashboardFlow:
    """
    Builds the dashboard from one snapshot.

    A loan that cannot be computed (no term, or a payment that never
    retires the balance) is reported in Dashboard.issues; the rest of the
    dashboard is still built.
    """

    def __init__(
        self,
        record_storage: RecordStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._record_storage = record_storage
        self._audit_logger = audit_logger

    async def _loan_overview(
        self,
        loan: Loan,
        transactions: tuple[Transaction, ...],
        issues: list[str],
        owner_id: str,
        correlation_id: UUID,
    ) -> LoanOverview:
        progress = None
        payoff = None
        payment = repayment_amount(loan)

        try:
            progress = calculate_loan_progress(loan, transactions)
        except ValidationError as e:
            issues.append(str(e))
            if self._audit_logger:
                await self._audit_logger.log_loan_progress_unavailable(
                    owner_id=owner_id,
                    loan_id=loan.id,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )

        if payment is not None and loan.balance > 0:
            try:
                payoff = describe_payoff(
                    loan.balance,
                    payment,
                    loan.interest_rate,
                    loan.interest_type,
                    loan.interest_period,
                    loan.repayment_frequency,
                    start_date=loan.next_payment_date,
                    entity=loan.describe(),
                )
            except PayoffUnreachable as e:
                issues.append(str(e))
                if self._audit_logger:
                    await self._audit_logger.log_payoff_unreachable(
                        owner_id=owner_id,
                        loan_id=loan.id,
                        reason=e.reason,
                        error_message=str(e),
                        correlation_id=correlation_id,
                    )

        return LoanOverview(
            loan_id=loan.id,
            name=loan.name,
            progress=progress,
            payment=payment,
            payoff=payoff,
        )

    async def build(
        self,
        owner_id: str,
        as_of: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Dashboard:
        """
        Read the owner's records and compute every dashboard number.

        Returns:
            Dashboard for the month containing as_of (today by default)

        Raises:
            StorageError: the snapshot could not be read
        """
        correlation_id = correlation_id or create_correlation_id()
        as_of = as_of or date.today()

        try:
            snapshot = await load_snapshot(self._record_storage, owner_id)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="load_snapshot",
                    error_message=str(e),
                    owner_id=owner_id,
                    correlation_id=correlation_id,
                )
            raise
        if self._audit_logger:
            await self._audit_logger.log_snapshot_loaded(
                owner_id=owner_id,
                counts=snapshot.counts(),
                correlation_id=correlation_id,
            )

        issues: list[str] = []
        loans = [
            await self._loan_overview(loan, snapshot.transactions, issues, owner_id, correlation_id)
            for loan in snapshot.loans
        ]
        month_start, month_end = month_bounds(as_of)

        dashboard = Dashboard(
            owner_id=owner_id,
            as_of=as_of,
            summary=calculate_financial_summary(
                snapshot.transactions, snapshot.goals, snapshot.loans, as_of
            ),
            loans=loans,
            goals=[calculate_goal_progress(g, snapshot.transactions) for g in snapshot.goals],
            budgets=[calculate_budget_progress(b, snapshot.transactions) for b in snapshot.budgets],
            spending=spending_by_category(snapshot.transactions, month_start, month_end),
            issues=issues,
        )

        if self._audit_logger:
            await self._audit_logger.log_dashboard_built(
                owner_id=owner_id,
                issues=issues,
                correlation_id=correlation_id,
            )

        return dashboard


# =============================================================================
# BUDGET ALLOCATION
# =============================================================================

class AllocationPreview(BaseModel):
    """A proposed plan, checked but not yet submitted."""
    model_config = ConfigDict(frozen=True)

    allocations: list[BudgetAllocation]
    summary: AllocationSummary
    validation: ValidationResult
    conflicts: list[BudgetConflict] = Field(default_factory=list)

    @property
    def conflicting_categories(self) -> list[str]:
        return conflict_categories(self.conflicts)

    @property
    def can_submit(self) -> bool:
        return self.validation.is_valid and not self.conflicts


class BudgetCreateFailure(BaseModel):
    """A draft that could not be written."""
    model_config = ConfigDict(frozen=True)

    category: str
    error_message: str


class BatchCreateResult(BaseModel):
    """
    Outcome of a batch submission.

    submitted is False when conflicts blocked the batch; in that case
    nothing was written.
    """
    model_config = ConfigDict(frozen=True)

    submitted: bool
    conflicts: list[BudgetConflict] = Field(default_factory=list)
    created: list[Budget] = Field(default_factory=list)
    failures: list[BudgetCreateFailure] = Field(default_factory=list)

    @property
    def all_created(self) -> bool:
        return self.submitted and not self.failures


class BudgetAllocationFlow:
    """
    Orchestrates the budget allocation flow.

    Flow:
    1. Plan → split income over categories by the rule
    2. Validate → income, selection and period window
    3. Conflicts → compare with the owner's existing budgets
    4. Submit → refuse on any conflict, else create each draft

    Conflicts are re-checked at submit time against a fresh read.
    """

    def __init__(
        self,
        record_storage: RecordStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[AllocationRequestValidator] = None,
        rule: AllocationRule = FIFTY_THIRTY_TWENTY,
        storage_settings: Optional[StorageSettings] = None,
    ):
        self._record_storage = record_storage
        self._audit_logger = audit_logger
        self._validator = validator or AllocationRequestValidator()
        self._rule = rule
        self._storage_settings = storage_settings or get_settings().storage

    async def _existing_budgets(self, owner_id: str, correlation_id: UUID) -> list[Budget]:
        """Current budgets of the owner; read failures are audited and re-raised."""
        try:
            return await self._record_storage.list_budgets(owner_id)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="list_budgets",
                    error_message=str(e),
                    owner_id=owner_id,
                    correlation_id=correlation_id,
                )
            raise

    async def preview(
        self,
        owner_id: str,
        total_income: Any,
        categories: Iterable[Union[str, CategoryInfo]],
        window: PeriodWindow,
        correlation_id: Optional[UUID] = None,
    ) -> AllocationPreview:
        """
        Plan an allocation and check it without writing anything.

        Raises:
            ValidationError: income is not a non-negative number
            StorageError: the existing budgets could not be read
        """
        correlation_id = correlation_id or create_correlation_id()

        allocations = plan_allocation(total_income, categories, self._rule)
        return await self.check(owner_id, total_income, allocations, window, correlation_id)

    async def check(
        self,
        owner_id: str,
        total_income: Any,
        allocations: list[BudgetAllocation],
        window: PeriodWindow,
        correlation_id: Optional[UUID] = None,
    ) -> AllocationPreview:
        """Validate an (edited) plan and look up its conflicts."""
        correlation_id = correlation_id or create_correlation_id()

        validation = self._validator.validate(total_income, allocations, window)
        summary = summarize_allocations(allocations)
        existing = await self._existing_budgets(owner_id, correlation_id)
        conflicts = find_conflicts(allocations, existing, window)

        if self._audit_logger:
            await self._audit_logger.log_allocation_planned(
                owner_id=owner_id,
                total_income=str(total_income),
                enabled_count=summary.enabled_count,
                total_percentage=str(summary.total_percentage),
                correlation_id=correlation_id,
            )
            if conflicts:
                await self._audit_logger.log_conflicts_detected(
                    owner_id=owner_id,
                    conflicts=conflicts,
                    correlation_id=correlation_id,
                )

        return AllocationPreview(
            allocations=allocations,
            summary=summary,
            validation=validation,
            conflicts=conflicts,
        )

    async def _create_with_retry(self, owner_id: str, draft: BudgetDraft) -> Budget:
        """
        Write one draft, retrying transient connection failures.

        Other storage errors (duplicates, rejected writes) are not retried.
        """
        settings = self._storage_settings
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(settings.retry_attempts),
            wait=wait_exponential(
                multiplier=1, min=settings.retry_wait_min, max=settings.retry_wait_max
            ),
            retry=retry_if_exception_type(ConnectionError),
            reraise=True,
        ):
            with attempt:
                return await self._record_storage.create_budget(owner_id, draft)

    async def submit(
        self,
        owner_id: str,
        total_income: Any,
        allocations: list[BudgetAllocation],
        window: PeriodWindow,
        correlation_id: Optional[UUID] = None,
    ) -> BatchCreateResult:
        """
        Create one budget per enabled allocation.

        CRITICAL: Refuses the whole batch when any enabled allocation
        conflicts with an existing budget.

        Raises:
            ValidationError: the request has blocking validation errors
            StorageError: the existing budgets could not be read
        """
        correlation_id = correlation_id or create_correlation_id()

        validation = self._validator.validate(total_income, allocations, window)
        if not validation.is_valid:
            first = next(i for i in validation.issues if i.severity == "error")
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    field=first.field,
                    error_message=first.message,
                    owner_id=owner_id,
                    correlation_id=correlation_id,
                )
            raise ValidationError(first.field, first.message)

        existing = await self._existing_budgets(owner_id, correlation_id)
        conflicts = find_conflicts(allocations, existing, window)
        if conflicts:
            if self._audit_logger:
                await self._audit_logger.log_conflicts_detected(
                    owner_id=owner_id,
                    conflicts=conflicts,
                    correlation_id=correlation_id,
                )
                await self._audit_logger.log_batch_refused(
                    owner_id=owner_id,
                    categories=conflict_categories(conflicts),
                    correlation_id=correlation_id,
                )
            return BatchCreateResult(submitted=False, conflicts=conflicts)

        drafts = build_budget_drafts(allocations, window)
        created: list[Budget] = []
        failures: list[BudgetCreateFailure] = []

        for draft in drafts:
            try:
                budget = await self._create_with_retry(owner_id, draft)
            except StorageError as e:
                failures.append(BudgetCreateFailure(category=draft.category, error_message=str(e)))
                if self._audit_logger:
                    await self._audit_logger.log_budget_create_failed(
                        owner_id=owner_id,
                        category=draft.category,
                        error_message=str(e),
                        correlation_id=correlation_id,
                    )
                continue

            created.append(budget)
            if self._audit_logger:
                await self._audit_logger.log_budget_created(
                    owner_id=owner_id,
                    budget_id=budget.id,
                    category=budget.category,
                    amount=money_str(budget.amount),
                    correlation_id=correlation_id,
                )

        if self._audit_logger:
            await self._audit_logger.log_batch_completed(
                owner_id=owner_id,
                created=len(created),
                failed=len(failures),
                correlation_id=correlation_id,
            )

        return BatchCreateResult(submitted=True, created=created, failures=failures)


def create_app_components(
    record_storage: Optional[RecordStorageInterface] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> tuple[DashboardFlow, BudgetAllocationFlow]:
    """
    Factory function to create all application components.

    Args:
        record_storage: Record store to read from and write budgets to.
                    Defaults to an empty in-memory store.
        audit_logger: Audit logger shared by the flows.
                    Defaults to one backed by in-memory audit storage.

    Returns:
        (dashboard_flow, budget_allocation_flow)
    """
    record_storage = record_storage or InMemoryRecordStorage()
    audit_logger = audit_logger or AuditLogger(InMemoryAuditStorage())

    dashboard_flow = DashboardFlow(
        record_storage=record_storage,
        audit_logger=audit_logger,
    )

    budget_allocation_flow = BudgetAllocationFlow(
        record_storage=record_storage,
        audit_logger=audit_logger,
    )

    return dashboard_flow, budget_allocation_flow
