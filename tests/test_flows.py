"""
Tests for the dashboard and budget allocation flows.

Flows run against in-memory storage; audit events are checked through
InMemoryAuditStorage.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from finance_engine.audit import AuditLogger
from finance_engine.config import StorageSettings
from finance_engine.errors import ValidationError
from finance_engine.models import AuditEventType, BudgetPeriod, PeriodWindow, TransactionType
from finance_engine.orchestrator import (
    BudgetAllocationFlow,
    DashboardFlow,
    create_app_components,
    load_snapshot,
)
from finance_engine.services.storage import (
    ConnectionError,
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    StorageError,
)


OWNER = "user-1"
MARCH = PeriodWindow(
    period=BudgetPeriod.MONTHLY,
    start_date=date(2024, 3, 1),
    end_date=date(2024, 3, 31),
)
NO_WAIT = StorageSettings(retry_attempts=3, retry_wait_min=0, retry_wait_max=0)
CATEGORIES = ["food", "bills", "entertainment"]


class UnreadableStorage(InMemoryRecordStorage):
    """Cannot list budgets."""

    async def list_budgets(self, owner_id):
        raise ConnectionError("budgets unavailable")


class RejectingStorage(InMemoryRecordStorage):
    """Refuses to write budgets for one category."""

    def __init__(self, rejected, **records):
        super().__init__(**records)
        self.rejected = rejected

    async def create_budget(self, owner_id, draft):
        if draft.category == self.rejected:
            raise StorageError(f"write rejected for {draft.category}")
        return await super().create_budget(owner_id, draft)


class FlakyStorage(InMemoryRecordStorage):
    """Drops the connection a given number of times before writing."""

    def __init__(self, failures, **records):
        super().__init__(**records)
        self.failures = failures
        self.calls = 0

    async def create_budget(self, owner_id, draft):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("connection reset")
        return await super().create_budget(owner_id, draft)


def allocation_flow(storage, audit_storage=None):
    return BudgetAllocationFlow(
        record_storage=storage,
        audit_logger=AuditLogger(audit_storage) if audit_storage is not None else None,
        storage_settings=NO_WAIT,
    )


class TestLoadSnapshot:
    """Tests for snapshot loading."""

    def test_scoped_to_owner(self, make_transaction, make_budget):
        """Test another owner's records never enter a snapshot."""
        storage = InMemoryRecordStorage(
            transactions=[
                make_transaction("10"),
                make_transaction("20", owner_id="someone-else"),
            ],
            budgets=[make_budget(), make_budget(owner_id="someone-else")],
        )
        snapshot = asyncio.run(load_snapshot(storage, OWNER))

        assert snapshot.counts() == {"transactions": 1, "budgets": 1, "goals": 0, "loans": 0}
        assert snapshot.transactions[0].amount == Decimal("10")


class TestDashboardFlow:
    """Tests for DashboardFlow."""

    @pytest.fixture
    def storage(self, make_transaction, make_budget, make_goal, make_loan,
                simple_terms, amortized_terms):
        return InMemoryRecordStorage(
            transactions=[
                make_transaction("5000", TransactionType.INCOME, "salary", on=date(2024, 3, 1)),
                make_transaction("600", category="food", on=date(2024, 3, 5)),
                make_transaction("200", category="bills", on=date(2024, 2, 20)),
                make_transaction("300", TransactionType.SAVINGS_DEPOSIT, "savings",
                                 savings_goal_id=1),
            ],
            budgets=[make_budget("food", "1000")],
            goals=[make_goal("1000", "100")],
            loans=[
                make_loan(amortized_terms(12), principal="10000", rate="12", loan_id=1,
                          next_payment_date=date(2024, 4, 1)),
                make_loan(simple_terms(None), principal="3000", loan_id=2, name="Personal"),
                make_loan(simple_terms(12, current_repayment="500"), principal="100000",
                          rate="12", loan_id=3, name="Mortgage"),
            ],
        )

    def test_builds_dashboard(self, storage):
        """Test the headline numbers and per-record progress."""
        dashboard = asyncio.run(DashboardFlow(storage).build(OWNER, as_of=date(2024, 3, 15)))

        assert dashboard.summary.monthly_income == Decimal("5000")
        assert dashboard.summary.monthly_expenses == Decimal("600")
        assert dashboard.summary.total_savings == Decimal("400")
        assert dashboard.goals[0].percent_complete == Decimal("40")
        assert dashboard.budgets[0].spent == Decimal("600")
        assert [row.category for row in dashboard.spending] == ["food"]

    def test_amortized_loan_payoff(self, storage):
        """Test the scheduled payment retires the loan on its term."""
        dashboard = asyncio.run(DashboardFlow(storage).build(OWNER, as_of=date(2024, 3, 15)))
        overview = dashboard.loans[0]

        assert overview.payment.quantize(Decimal("0.01")) == Decimal("888.49")
        assert overview.payoff.whole_periods == 12
        assert overview.payoff.payoff_date == date(2025, 4, 1)
        assert overview.progress.total_remaining > 0

    def test_uncomputable_loans_are_reported(self, storage):
        """Test a loan without a term and an unpayable loan become issues."""
        dashboard = asyncio.run(DashboardFlow(storage).build(OWNER, as_of=date(2024, 3, 15)))
        personal, mortgage = dashboard.loans[1], dashboard.loans[2]

        assert personal.progress is None
        assert personal.payoff is None
        assert mortgage.progress is not None
        assert mortgage.payoff is None
        assert len(dashboard.issues) == 2
        assert "loan 'Personal' (id=2)" in dashboard.issues[0]
        assert "payoff not reachable" in dashboard.issues[1]

    def test_near_interest_payment_does_not_abort(self, make_loan, simple_terms):
        """Test a payment just above the interest charge becomes an issue."""
        storage = InMemoryRecordStorage(loans=[
            make_loan(simple_terms(12, current_repayment="10000.0000000000000000001"),
                      principal="1000000", rate="12"),
        ])
        dashboard = asyncio.run(DashboardFlow(storage).build(OWNER, as_of=date(2024, 3, 15)))

        assert dashboard.loans[0].progress is not None
        assert dashboard.loans[0].payoff is None
        assert "simulation limit" in dashboard.issues[0]

    def test_audit_trail(self, storage):
        """Test one correlated audit trail per dashboard build."""
        audit_storage = InMemoryAuditStorage()
        flow = DashboardFlow(storage, AuditLogger(audit_storage))
        asyncio.run(flow.build(OWNER, as_of=date(2024, 3, 15)))

        events = audit_storage.events
        assert [e.event_type for e in events] == [
            AuditEventType.SNAPSHOT_LOADED,
            AuditEventType.LOAN_PROGRESS_UNAVAILABLE,
            AuditEventType.PAYOFF_UNREACHABLE,
            AuditEventType.DASHBOARD_BUILT,
        ]
        assert len({e.correlation_id for e in events}) == 1
        assert events[2].error_code == "payment_not_above_interest"

    def test_unreadable_snapshot_is_audited(self):
        """Test a failed read is logged and raised."""
        audit_storage = InMemoryAuditStorage()
        flow = DashboardFlow(UnreadableStorage(), AuditLogger(audit_storage))

        with pytest.raises(ConnectionError, match="budgets unavailable"):
            asyncio.run(flow.build(OWNER, as_of=date(2024, 3, 15)))

        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.STORAGE_ERROR
        assert event.details == {"operation": "load_snapshot"}
        assert event.owner_id == OWNER

    def test_empty_owner(self):
        """Test an owner with no records gets an all-zero dashboard."""
        dashboard = asyncio.run(DashboardFlow(InMemoryRecordStorage()).build(
            OWNER, as_of=date(2024, 3, 15)
        ))
        assert dashboard.summary.net_worth == Decimal("0")
        assert dashboard.loans == []
        assert dashboard.issues == []


class TestBudgetAllocationPreview:
    """Tests for BudgetAllocationFlow.preview."""

    def test_plan_without_conflicts(self):
        """Test a clean plan can be submitted."""
        flow = allocation_flow(InMemoryRecordStorage())
        preview = asyncio.run(flow.preview(OWNER, "10000", CATEGORIES, MARCH))

        assert [a.amount for a in preview.allocations] == [
            Decimal("1000"), Decimal("1000"), Decimal("600"),
        ]
        assert preview.summary.total_percentage == Decimal("26")
        assert preview.validation.warnings == ["Only 26% of income is allocated"]
        assert preview.can_submit is True

    def test_conflicts_are_listed(self, make_budget):
        """Test an overlapping budget of the same period blocks the plan."""
        storage = InMemoryRecordStorage(budgets=[
            make_budget("food", start=date(2024, 3, 15), end=date(2024, 4, 14)),
            make_budget("bills", period=BudgetPeriod.YEARLY,
                        start=date(2024, 1, 1), end=date(2024, 12, 31)),
        ])
        audit_storage = InMemoryAuditStorage()
        preview = asyncio.run(allocation_flow(storage, audit_storage).preview(
            OWNER, "10000", CATEGORIES, MARCH
        ))

        assert preview.conflicting_categories == ["food"]
        assert preview.can_submit is False
        assert [e.event_type for e in audit_storage.events] == [
            AuditEventType.ALLOCATION_PLANNED,
            AuditEventType.CONFLICTS_DETECTED,
        ]

    def test_unreadable_budgets_are_audited(self):
        """Test a failed budget read stops the preview and is logged."""
        audit_storage = InMemoryAuditStorage()
        flow = allocation_flow(UnreadableStorage(), audit_storage)

        with pytest.raises(ConnectionError):
            asyncio.run(flow.preview(OWNER, "10000", CATEGORIES, MARCH))

        assert [e.event_type for e in audit_storage.events] == [AuditEventType.STORAGE_ERROR]
        assert audit_storage.events[0].details == {"operation": "list_budgets"}


class TestBudgetAllocationSubmit:
    """Tests for BudgetAllocationFlow.submit."""

    def plan(self, flow, income="10000"):
        return asyncio.run(flow.preview(OWNER, income, CATEGORIES, MARCH)).allocations

    def test_creates_one_budget_per_category(self):
        """Test every enabled category becomes a budget."""
        storage = InMemoryRecordStorage()
        flow = allocation_flow(storage)
        result = asyncio.run(flow.submit(OWNER, "10000", self.plan(flow), MARCH))

        assert result.submitted is True
        assert result.all_created is True
        assert [(b.category, b.amount) for b in result.created] == [
            ("food", Decimal("1000.00")),
            ("bills", Decimal("1000.00")),
            ("entertainment", Decimal("600.00")),
        ]
        assert result.created[0].description == (
            "Budget allocated via Budget Allocator - 10% of income"
        )
        assert len(asyncio.run(storage.list_budgets(OWNER))) == 3

    def test_refused_on_conflict(self, make_budget):
        """Test nothing is written while any conflict exists."""
        storage = InMemoryRecordStorage(budgets=[make_budget("bills")])
        audit_storage = InMemoryAuditStorage()
        flow = allocation_flow(storage, audit_storage)
        result = asyncio.run(flow.submit(OWNER, "10000", self.plan(flow), MARCH))

        assert result.submitted is False
        assert result.created == []
        assert [c.category for c in result.conflicts] == ["bills"]
        assert len(asyncio.run(storage.list_budgets(OWNER))) == 1
        assert audit_storage.events[-1].event_type == AuditEventType.BATCH_REFUSED

    def test_disabled_category_does_not_conflict(self, make_budget):
        """Test only enabled allocations are checked."""
        storage = InMemoryRecordStorage(budgets=[make_budget("bills")])
        flow = allocation_flow(storage)
        allocations = [
            a.model_copy(update={"enabled": a.category != "bills"}) for a in self.plan(flow)
        ]
        result = asyncio.run(flow.submit(OWNER, "10000", allocations, MARCH))

        assert result.submitted is True
        assert [b.category for b in result.created] == ["food", "entertainment"]

    def test_partial_failure_is_reported(self):
        """Test a failed write does not roll back the others."""
        storage = RejectingStorage("bills")
        audit_storage = InMemoryAuditStorage()
        flow = allocation_flow(storage, audit_storage)
        result = asyncio.run(flow.submit(OWNER, "10000", self.plan(flow), MARCH))

        assert result.submitted is True
        assert result.all_created is False
        assert [b.category for b in result.created] == ["food", "entertainment"]
        assert result.failures[0].category == "bills"
        assert "write rejected" in result.failures[0].error_message
        assert audit_storage.events[-1].details == {"created": 2, "failed": 1}

    def test_transient_connection_error_is_retried(self):
        """Test a dropped connection is retried before giving up."""
        storage = FlakyStorage(failures=2)
        flow = allocation_flow(storage)
        result = asyncio.run(flow.submit(OWNER, "10000", self.plan(flow), MARCH))

        assert result.all_created is True
        assert storage.calls == 5

    def test_retries_are_bounded(self):
        """Test a connection that never recovers becomes a failure."""
        storage = FlakyStorage(failures=3)
        flow = allocation_flow(storage)
        result = asyncio.run(flow.submit(OWNER, "10000", self.plan(flow), MARCH))

        assert [f.category for f in result.failures] == ["food"]
        assert [b.category for b in result.created] == ["bills", "entertainment"]

    def test_invalid_request_raises(self):
        """Test zero income is rejected before anything is read or written."""
        storage = InMemoryRecordStorage()
        audit_storage = InMemoryAuditStorage()
        flow = allocation_flow(storage, audit_storage)

        with pytest.raises(ValidationError, match="total_income") as exc_info:
            asyncio.run(flow.submit(OWNER, "0", self.plan(flow, income="0"), MARCH))

        assert exc_info.value.field == "total_income"
        assert asyncio.run(storage.list_budgets(OWNER)) == []
        assert audit_storage.events[-1].event_type == AuditEventType.VALIDATION_FAILED


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_flows_share_storage(self, make_transaction):
        """Test both flows see the same records."""
        storage = InMemoryRecordStorage(transactions=[
            make_transaction("250", on=date(2024, 3, 2)),
        ])
        dashboard_flow, allocation = create_app_components(storage)
        asyncio.run(allocation.submit(
            OWNER,
            "10000",
            asyncio.run(allocation.preview(OWNER, "10000", ["food"], MARCH)).allocations,
            MARCH,
        ))
        dashboard = asyncio.run(dashboard_flow.build(OWNER, as_of=date(2024, 3, 20)))

        assert dashboard.budgets[0].spent == Decimal("250")
        assert dashboard.budgets[0].amount == Decimal("1000.00")

    def test_defaults(self):
        """Test the factory works without arguments."""
        dashboard_flow, allocation = create_app_components()
        assert isinstance(dashboard_flow, DashboardFlow)
        assert isinstance(allocation, BudgetAllocationFlow)
