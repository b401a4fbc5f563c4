"""
Audit Models for Rental Ledger

Every money-affecting action is recorded as an audit event.
This provides:
1. Traceability of every payment, delivery and import
2. Detection of cache drift (tenant balance vs. recomputed ledger)
3. Structured records for an external observability collaborator

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Receipts
    RECEIPT_CREATED = "receipt_created"
    RECEIPT_UPDATED = "receipt_updated"
    RECEIPT_CONFIRMED = "receipt_confirmed"
    RECEIPT_DELETED = "receipt_deleted"

    # Payments
    PAYMENT_APPLIED = "payment_applied"
    PAYMENT_REJECTED = "payment_rejected"

    # Cash register
    CASH_INCOME_RECORDED = "cash_income_recorded"
    CASH_DELIVERED = "cash_delivered"
    DELIVERY_REJECTED = "delivery_rejected"

    # Tenants and properties
    TENANT_BALANCE_UPDATED = "tenant_balance_updated"
    BALANCE_DRIFT_DETECTED = "balance_drift_detected"
    PROPERTY_OCCUPANCY_CHANGED = "property_occupancy_changed"
    RENT_REVIEW_DUE = "rent_review_due"

    # Portability
    DATA_EXPORTED = "data_exported"
    DATA_IMPORTED = "data_imported"
    IMPORT_REJECTED = "import_rejected"

    # Reports
    REPORT_GENERATED = "report_generated"

    # System events
    SYSTEM_ERROR = "system_error"


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

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
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
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'receipt', 'tenant', 'cash')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events of one payment)"
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
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


def _amount(value: Decimal) -> str:
    return str(value)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.payment_applied(receipt_id, total, method, remaining, correlation_id)
        event = AuditEventBuilder.cash_delivered(movement_id, amount, currency, delivery_type, correlation_id)
    """

    @staticmethod
    def receipt_created(
        receipt_id: int,
        receipt_number: str,
        tenant: str,
        total: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_CREATED,
            entity_type="receipt",
            entity_id=str(receipt_id),
            correlation_id=correlation_id,
            description=f"Receipt {receipt_number} created for {tenant}",
            details={
                "receipt_number": receipt_number,
                "tenant": tenant,
                "total": _amount(total),
            },
            is_user_action=True,
        )

    @staticmethod
    def receipt_updated(
        receipt_id: int,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_UPDATED,
            entity_type="receipt",
            entity_id=str(receipt_id),
            correlation_id=correlation_id,
            description=f"Receipt {receipt_id} edited",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def receipt_confirmed(
        receipt_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_CONFIRMED,
            entity_type="receipt",
            entity_id=str(receipt_id),
            correlation_id=correlation_id,
            description=f"Receipt {receipt_id} confirmed",
            is_user_action=True,
        )

    @staticmethod
    def receipt_deleted(
        receipt_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="receipt",
            entity_id=str(receipt_id),
            correlation_id=correlation_id,
            description=f"Receipt {receipt_id} deleted",
            is_user_action=True,
        )

    @staticmethod
    def payment_applied(
        receipt_id: int,
        total: Decimal,
        payment_method: str,
        remaining: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_APPLIED,
            entity_type="receipt",
            entity_id=str(receipt_id),
            correlation_id=correlation_id,
            description=f"Payment of {total} applied to receipt {receipt_id}",
            details={
                "total": _amount(total),
                "payment_method": payment_method,
                "remaining_balance": _amount(remaining),
            },
            is_user_action=True,
        )

    @staticmethod
    def payment_rejected(
        receipt_id: int,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="receipt",
            entity_id=str(receipt_id),
            correlation_id=correlation_id,
            description=f"Payment on receipt {receipt_id} rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def cash_income_recorded(
        movement_id: int,
        amount: Decimal,
        currency: str,
        payment_method: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CASH_INCOME_RECORDED,
            entity_type="cash",
            entity_id=str(movement_id),
            correlation_id=correlation_id,
            description=f"Income recorded: {currency} {amount} ({payment_method})",
            details={
                "amount": _amount(amount),
                "currency": currency,
                "payment_method": payment_method,
            },
        )

    @staticmethod
    def cash_delivered(
        movement_id: int,
        amount: Decimal,
        currency: str,
        delivery_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CASH_DELIVERED,
            entity_type="cash",
            entity_id=str(movement_id),
            correlation_id=correlation_id,
            description=f"Delivered {currency} {amount} ({delivery_type})",
            details={
                "amount": _amount(amount),
                "currency": currency,
                "delivery_type": delivery_type,
            },
            is_user_action=True,
        )

    @staticmethod
    def delivery_rejected(
        currency: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELIVERY_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="cash",
            correlation_id=correlation_id,
            description=f"Delivery in {currency} rejected with {len(issues)} issues",
            details={
                "currency": currency,
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def tenant_balance_updated(
        tenant_id: int,
        old_balance: Decimal,
        new_balance: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TENANT_BALANCE_UPDATED,
            entity_type="tenant",
            entity_id=str(tenant_id),
            correlation_id=correlation_id,
            description=f"Tenant {tenant_id} balance {old_balance} -> {new_balance}",
            details={
                "old_balance": _amount(old_balance),
                "new_balance": _amount(new_balance),
            },
        )

    @staticmethod
    def balance_drift_detected(
        tenant_id: int,
        cached: Decimal,
        ledger: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_DRIFT_DETECTED,
            severity=AuditSeverity.WARNING,
            entity_type="tenant",
            entity_id=str(tenant_id),
            correlation_id=correlation_id,
            description=(
                f"Tenant {tenant_id} cached balance {cached} differs "
                f"from ledger balance {ledger}"
            ),
            details={
                "cached_balance": _amount(cached),
                "ledger_balance": _amount(ledger),
                "drift": _amount(cached - ledger),
            },
        )

    @staticmethod
    def property_occupancy_changed(
        property_id: int,
        status: str,
        tenant: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROPERTY_OCCUPANCY_CHANGED,
            entity_type="property",
            entity_id=str(property_id),
            correlation_id=correlation_id,
            description=f"Property {property_id} is now {status}",
            details={
                "status": status,
                "tenant": tenant,
            },
        )

    @staticmethod
    def rent_review_due(
        property_id: int,
        review_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RENT_REVIEW_DUE,
            severity=AuditSeverity.WARNING,
            entity_type="property",
            entity_id=str(property_id),
            correlation_id=correlation_id,
            description=f"Rent review due for property {property_id} since {review_date}",
            details={"review_date": review_date},
        )

    @staticmethod
    def data_exported(
        counts: dict[str, int],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_EXPORTED,
            entity_type="backup",
            correlation_id=correlation_id,
            description="Data exported",
            details=counts,
            is_user_action=True,
        )

    @staticmethod
    def data_imported(
        counts: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_IMPORTED,
            severity=AuditSeverity.WARNING,
            entity_type="backup",
            correlation_id=correlation_id,
            description="All data replaced from backup",
            details=counts,
            is_user_action=True,
        )

    @staticmethod
    def import_rejected(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMPORT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="backup",
            correlation_id=correlation_id,
            description="Backup import rejected",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def report_generated(
        report: str,
        row_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            severity=AuditSeverity.DEBUG,
            entity_type="report",
            correlation_id=correlation_id,
            description=f"Report {report} generated with {row_count} rows",
            details={
                "report": report,
                "row_count": row_count,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
