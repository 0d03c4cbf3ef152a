"""
Audit Models for Finance Engine

Every flow that reads snapshots or submits budgets leaves an audit trail.
This provides:
1. Traceability of which snapshot produced which numbers
2. A record of every blocked or partially failed batch submission
3. Debugging information when inputs are rejected

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Snapshots
    SNAPSHOT_LOADED = "snapshot_loaded"
    DASHBOARD_BUILT = "dashboard_built"

    # Budget allocation
    ALLOCATION_PLANNED = "allocation_planned"
    CONFLICTS_DETECTED = "conflicts_detected"
    BATCH_REFUSED = "batch_refused"
    BUDGET_CREATED = "budget_created"
    BUDGET_CREATE_FAILED = "budget_create_failed"
    BATCH_COMPLETED = "batch_completed"

    # Loan computation
    PAYOFF_UNREACHABLE = "payoff_unreachable"
    LOAN_PROGRESS_UNAVAILABLE = "loan_progress_unavailable"

    # Input problems
    VALIDATION_FAILED = "validation_failed"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    One thing that happened during a flow run, with its owner and entity.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    owner_id: Optional[str] = Field(
        default=None,
        description="Owner whose records were involved"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'budget', 'loan', 'snapshot')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one batch submission)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "owner_id": self.owner_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Constructors for the audit events the flows emit.

    Usage:
        event = AuditEventBuilder.snapshot_loaded(owner_id, counts, correlation_id)
        event = AuditEventBuilder.budget_created(owner_id, budget_id, ...)
    """

    @staticmethod
    def snapshot_loaded(
        owner_id: str,
        counts: dict[str, int],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            owner_id=owner_id,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=(
                f"Snapshot loaded: {counts.get('transactions', 0)} transactions, "
                f"{counts.get('budgets', 0)} budgets, {counts.get('goals', 0)} goals, "
                f"{counts.get('loans', 0)} loans"
            ),
            details=counts,
        )

    @staticmethod
    def dashboard_built(
        owner_id: str,
        issues: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DASHBOARD_BUILT,
            severity=AuditSeverity.WARNING if issues else AuditSeverity.INFO,
            owner_id=owner_id,
            entity_type="dashboard",
            correlation_id=correlation_id,
            description=f"Dashboard built with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def allocation_planned(
        owner_id: str,
        total_income: str,
        enabled_count: int,
        total_percentage: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALLOCATION_PLANNED,
            owner_id=owner_id,
            entity_type="allocation",
            correlation_id=correlation_id,
            description=(
                f"Allocation planned: {enabled_count} categories, "
                f"{total_percentage}% of {total_income}"
            ),
            details={
                "total_income": total_income,
                "enabled_count": enabled_count,
                "total_percentage": total_percentage,
            },
            is_user_action=True,
        )

    @staticmethod
    def conflicts_detected(
        owner_id: str,
        conflicts: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONFLICTS_DETECTED,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            entity_type="allocation",
            correlation_id=correlation_id,
            description=f"{len(conflicts)} budget conflicts detected",
            details={"conflicts": conflicts},
        )

    @staticmethod
    def batch_refused(
        owner_id: str,
        categories: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BATCH_REFUSED,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            entity_type="allocation",
            correlation_id=correlation_id,
            description=f"Budget batch refused, conflicts in: {', '.join(categories)}",
            details={"categories": categories},
            is_user_action=True,
        )

    @staticmethod
    def budget_created(
        owner_id: str,
        budget_id: int,
        category: str,
        amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_CREATED,
            owner_id=owner_id,
            entity_type="budget",
            entity_id=str(budget_id),
            correlation_id=correlation_id,
            description=f"Budget created: {category} - {amount}",
            details={
                "category": category,
                "amount": amount,
            },
        )

    @staticmethod
    def budget_create_failed(
        owner_id: str,
        category: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_CREATE_FAILED,
            severity=AuditSeverity.ERROR,
            owner_id=owner_id,
            entity_type="budget",
            correlation_id=correlation_id,
            description=f"Budget creation failed: {category}",
            error_message=error_message,
            details={"category": category},
        )

    @staticmethod
    def batch_completed(
        owner_id: str,
        created: int,
        failed: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BATCH_COMPLETED,
            severity=AuditSeverity.WARNING if failed else AuditSeverity.INFO,
            owner_id=owner_id,
            entity_type="allocation",
            correlation_id=correlation_id,
            description=f"Budget batch finished: {created} created, {failed} failed",
            details={"created": created, "failed": failed},
        )

    @staticmethod
    def payoff_unreachable(
        owner_id: Optional[str],
        loan_id: Optional[int],
        reason: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYOFF_UNREACHABLE,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            entity_type="loan",
            entity_id=str(loan_id) if loan_id is not None else None,
            correlation_id=correlation_id,
            description="Payment never retires the loan balance",
            error_code=reason,
            error_message=error_message,
        )

    @staticmethod
    def loan_progress_unavailable(
        owner_id: str,
        loan_id: int,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAN_PROGRESS_UNAVAILABLE,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            entity_type="loan",
            entity_id=str(loan_id),
            correlation_id=correlation_id,
            description="Loan progress could not be computed",
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(
        field: str,
        error_message: str,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Input rejected: {field}",
            error_code="invalid_input",
            error_message=error_message,
            details={"field": field},
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            owner_id=owner_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )
