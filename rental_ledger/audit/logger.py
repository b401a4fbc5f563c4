"""
Audit Logger

DESIGN DECISION: Every money-affecting action is logged.
This provides:
1. Complete traceability of payments and deliveries
2. A place to surface balance drift without failing the operation
3. Structured records an external observability collaborator can consume

The audit logger:
- Never crashes the caller if persistence fails
- Supports correlation IDs to trace related events
- Holds no module-level state; logging is configured explicitly
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from rental_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from rental_ledger.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure structlog on top of the standard library logger.
    
    Args:
        level: Minimum log level name
        json_logs: Render JSON lines; console renderer otherwise
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )
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
            renderer,
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
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
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
        self._logger = structlog.get_logger("rental_ledger.audit")
    
    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage
    
    def log(self, event: AuditEvent) -> bool:
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
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)
        
        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False
        
        return True
    
    def log_receipt_created(
        self,
        receipt_id: int,
        receipt_number: str,
        tenant: str,
        total: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.receipt_created(
            receipt_id=receipt_id,
            receipt_number=receipt_number,
            tenant=tenant,
            total=total,
            correlation_id=correlation_id,
        ))
    
    def log_receipt_updated(
        self,
        receipt_id: int,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.receipt_updated(
            receipt_id=receipt_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))
    
    def log_receipt_confirmed(
        self,
        receipt_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.receipt_confirmed(
            receipt_id=receipt_id,
            correlation_id=correlation_id,
        ))
    
    def log_receipt_deleted(
        self,
        receipt_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.receipt_deleted(
            receipt_id=receipt_id,
            correlation_id=correlation_id,
        ))
    
    def log_payment_applied(
        self,
        receipt_id: int,
        total: Decimal,
        payment_method: str,
        remaining: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an accepted payment."""
        self.log(AuditEventBuilder.payment_applied(
            receipt_id=receipt_id,
            total=total,
            payment_method=payment_method,
            remaining=remaining,
            correlation_id=correlation_id,
        ))
    
    def log_payment_rejected(
        self,
        receipt_id: int,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected payment."""
        self.log(AuditEventBuilder.payment_rejected(
            receipt_id=receipt_id,
            issues=issues,
            correlation_id=correlation_id,
        ))
    
    def log_cash_income(
        self,
        movement_id: int,
        amount: Decimal,
        currency: str,
        payment_method: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.cash_income_recorded(
            movement_id=movement_id,
            amount=amount,
            currency=currency,
            payment_method=payment_method,
            correlation_id=correlation_id,
        ))
    
    def log_cash_delivered(
        self,
        movement_id: int,
        amount: Decimal,
        currency: str,
        delivery_type: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.cash_delivered(
            movement_id=movement_id,
            amount=amount,
            currency=currency,
            delivery_type=delivery_type,
            correlation_id=correlation_id,
        ))
    
    def log_delivery_rejected(
        self,
        currency: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.delivery_rejected(
            currency=currency,
            issues=issues,
            correlation_id=correlation_id,
        ))
    
    def log_tenant_balance_updated(
        self,
        tenant_id: int,
        old_balance: Decimal,
        new_balance: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.tenant_balance_updated(
            tenant_id=tenant_id,
            old_balance=old_balance,
            new_balance=new_balance,
            correlation_id=correlation_id,
        ))
    
    def log_balance_drift(
        self,
        tenant_id: int,
        cached: Decimal,
        ledger: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a tenant balance cache that disagrees with the ledger."""
        self.log(AuditEventBuilder.balance_drift_detected(
            tenant_id=tenant_id,
            cached=cached,
            ledger=ledger,
            correlation_id=correlation_id,
        ))
    
    def log_occupancy_changed(
        self,
        property_id: int,
        status: str,
        tenant: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.property_occupancy_changed(
            property_id=property_id,
            status=status,
            tenant=tenant,
            correlation_id=correlation_id,
        ))
    
    def log_rent_review_due(
        self,
        property_id: int,
        review_date: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.rent_review_due(
            property_id=property_id,
            review_date=review_date,
            correlation_id=correlation_id,
        ))
    
    def log_data_exported(
        self,
        counts: dict[str, int],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.data_exported(
            counts=counts,
            correlation_id=correlation_id,
        ))
    
    def log_data_imported(
        self,
        counts: dict,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.data_imported(
            counts=counts,
            correlation_id=correlation_id,
        ))
    
    def log_import_rejected(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.import_rejected(
            error_message=error_message,
            correlation_id=correlation_id,
        ))
    
    def log_report_generated(
        self,
        report: str,
        row_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.report_generated(
            report=report,
            row_count=row_count,
            correlation_id=correlation_id,
        ))
    
    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.
    
    Use this at the start of a new user action (e.g., a payment).
    Pass it through all subsequent operations.
    """
    return uuid4()
