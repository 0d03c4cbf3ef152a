"""
Audit Logger

DESIGN DECISION: Every flow run is logged.
This provides:
1. Traceability from a dashboard number back to the snapshot behind it
2. A record of refused and partially failed budget batches
3. Debugging capability for rejected inputs

The audit logger:
- Is async so flows can await it between storage calls
- Gracefully handles failures (a broken audit store never fails a flow)
- Supports correlation IDs to trace the events of one flow run
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_engine.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from finance_engine.models.results import BudgetConflict
from finance_engine.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (JSON lines through the stdlib logging tree)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("finance_engine.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_snapshot_loaded(
        self,
        owner_id: str,
        counts: dict[str, int],
        correlation_id: UUID,
    ) -> None:
        """Log a snapshot read."""
        await self.log(AuditEventBuilder.snapshot_loaded(
            owner_id=owner_id,
            counts=counts,
            correlation_id=correlation_id,
        ))

    async def log_dashboard_built(
        self,
        owner_id: str,
        issues: list[str],
        correlation_id: UUID,
    ) -> None:
        """Log a dashboard build and the loans it could not compute."""
        await self.log(AuditEventBuilder.dashboard_built(
            owner_id=owner_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_allocation_planned(
        self,
        owner_id: str,
        total_income: str,
        enabled_count: int,
        total_percentage: str,
        correlation_id: UUID,
    ) -> None:
        """Log an allocation preview."""
        await self.log(AuditEventBuilder.allocation_planned(
            owner_id=owner_id,
            total_income=total_income,
            enabled_count=enabled_count,
            total_percentage=total_percentage,
            correlation_id=correlation_id,
        ))

    async def log_conflicts_detected(
        self,
        owner_id: str,
        conflicts: list[BudgetConflict],
        correlation_id: UUID,
    ) -> None:
        """Log conflicts between a plan and existing budgets."""
        await self.log(AuditEventBuilder.conflicts_detected(
            owner_id=owner_id,
            conflicts=[c.model_dump(mode="json") for c in conflicts],
            correlation_id=correlation_id,
        ))

    async def log_batch_refused(
        self,
        owner_id: str,
        categories: list[str],
        correlation_id: UUID,
    ) -> None:
        """Log a batch submission blocked by conflicts."""
        await self.log(AuditEventBuilder.batch_refused(
            owner_id=owner_id,
            categories=categories,
            correlation_id=correlation_id,
        ))

    async def log_budget_created(
        self,
        owner_id: str,
        budget_id: int,
        category: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        """Log one budget written by a batch."""
        await self.log(AuditEventBuilder.budget_created(
            owner_id=owner_id,
            budget_id=budget_id,
            category=category,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_budget_create_failed(
        self,
        owner_id: str,
        category: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log one budget a batch could not write."""
        await self.log(AuditEventBuilder.budget_create_failed(
            owner_id=owner_id,
            category=category,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_batch_completed(
        self,
        owner_id: str,
        created: int,
        failed: int,
        correlation_id: UUID,
    ) -> None:
        """Log the outcome of a batch submission."""
        await self.log(AuditEventBuilder.batch_completed(
            owner_id=owner_id,
            created=created,
            failed=failed,
            correlation_id=correlation_id,
        ))

    async def log_payoff_unreachable(
        self,
        owner_id: Optional[str],
        loan_id: Optional[int],
        reason: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a payment that never retires a balance."""
        await self.log(AuditEventBuilder.payoff_unreachable(
            owner_id=owner_id,
            loan_id=loan_id,
            reason=reason,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_loan_progress_unavailable(
        self,
        owner_id: str,
        loan_id: int,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a loan whose progress could not be computed."""
        await self.log(AuditEventBuilder.loan_progress_unavailable(
            owner_id=owner_id,
            loan_id=loan_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        field: str,
        error_message: str,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log rejected input."""
        await self.log(AuditEventBuilder.validation_failed(
            field=field,
            error_message=error_message,
            owner_id=owner_id,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed storage call."""
        await self.log(AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            owner_id=owner_id,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a flow run (e.g., one batch submission).
    Pass it through all subsequent operations.
    """
    return uuid4()
