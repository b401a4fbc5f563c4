"""
Main Orchestrator for Rental Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Receipts (create → confirm → edit → pay)
2. Reports (tenant statement, monthly matrix, dashboard)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Receipts change only through the state machine and the payment engine
- Balances shown to users come from the ledger, never from the cache
- Every step is audited

Cash deliveries, occupancy and backups need no extra wiring; their
services are exposed as they are.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Union
from uuid import UUID

import structlog

from rental_ledger.audit import AuditLogger, configure_logging, create_correlation_id
from rental_ledger.cash import CashRegister
from rental_ledger.config import Settings, get_settings
from rental_ledger.lifecycle import OccupancyManager, ReceiptStateMachine
from rental_ledger.models.payment import PaymentRequest, PaymentResult
from rental_ledger.models.receipt import Receipt, ReceiptChanges
from rental_ledger.models.reports import (
    DashboardSummary,
    MonthlyReport,
    RentReviewReminder,
    TenantStatement,
)
from rental_ledger.payments import PaymentEngine
from rental_ledger.queries import DashboardBuilder, MonthlyAggregator, TenantLedger
from rental_ledger.services.portability import BackupService
from rental_ledger.services.storage import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
)

logger = structlog.get_logger(__name__)


class ReceiptFlow:
    """
    Orchestrates the receipt lifecycle.

    Flow:
    1. Create → pendiente_confirmacion, previous balance from the ledger
    2. Confirm → pendiente
    3. Edit → totals recomputed, never below what was paid
    4. Pay → receipt, cash register and tenant cache updated together
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        state_machine: Optional[ReceiptStateMachine] = None,
        payment_engine: Optional[PaymentEngine] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._state_machine = state_machine or ReceiptStateMachine()
        self._payment_engine = payment_engine or PaymentEngine(
            storage,
            state_machine=self._state_machine,
            audit_logger=audit_logger,
        )
        self._audit_logger = audit_logger

    def _get(self, receipt_id: int) -> Receipt:
        receipt = self._storage.get_receipt(receipt_id)
        if receipt is None:
            raise NotFoundError(f"Receipt {receipt_id} not found")
        return receipt

    def create_receipt(
        self,
        tenant_id: int,
        month: Any,
        year: int,
        property_id: Optional[int] = None,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
        **overrides: Any,
    ) -> tuple[Receipt, Optional[RentReviewReminder]]:
        """
        Create a receipt for a tenant and period.

        Args:
            tenant_id: The billed tenant
            month, year: Billing period
            property_id: Defaults to the tenant's assigned property
            today: Creation date
            overrides: rent, expenses, other_charges, currency, due_date

        Returns:
            (receipt, reminder) where reminder is set when the property's
            rent is due for review
        """
        correlation_id = correlation_id or create_correlation_id()
        today = today or date.today()

        with self._storage.transaction():
            tenant = self._storage.get_tenant(tenant_id)
            if tenant is None:
                raise NotFoundError(f"Tenant {tenant_id} not found")

            property_id = property_id or tenant.property_id
            prop = None
            if property_id is not None:
                prop = self._storage.get_property(property_id)
                if prop is None:
                    raise NotFoundError(f"Property {property_id} not found")

            # The cache is advisory; carry the ledger balance
            receipts = self._storage.list_receipts()
            previous_balance = TenantLedger.balance(tenant, receipts)

            receipt, reminder = self._state_machine.create(
                self._storage.next_id("receipts"),
                tenant,
                month,
                year,
                prop=prop,
                sequence=len(receipts) + 1,
                previous_balance=previous_balance,
                today=today,
                **overrides,
            )
            receipt = self._storage.add_receipt(receipt)

        logger.info(
            "receipt_created",
            receipt_id=receipt.id,
            receipt_number=receipt.receipt_number,
            total=str(receipt.total),
        )
        if self._audit_logger:
            self._audit_logger.log_receipt_created(
                receipt_id=receipt.id,
                receipt_number=receipt.receipt_number,
                tenant=receipt.tenant_name,
                total=receipt.total,
                correlation_id=correlation_id,
            )
            if reminder is not None:
                self._audit_logger.log_rent_review_due(
                    property_id=reminder.property_id,
                    review_date=reminder.review_date.isoformat(),
                    correlation_id=correlation_id,
                )
        return receipt, reminder

    def confirm_receipt(
        self,
        receipt_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> Receipt:
        with self._storage.transaction():
            receipt = self._state_machine.confirm(self._get(receipt_id))
            receipt = self._storage.update_receipt(receipt)

        if self._audit_logger:
            self._audit_logger.log_receipt_confirmed(
                receipt_id=receipt_id,
                correlation_id=correlation_id,
            )
        return receipt

    def edit_receipt(
        self,
        receipt_id: int,
        changes: Union[ReceiptChanges, dict],
        correlation_id: Optional[UUID] = None,
    ) -> Receipt:
        """
        Edit an unpaid receipt.

        Raises:
            InvalidTransitionError: If the receipt is paid or the new total
                                    falls below the paid amount
        """
        with self._storage.transaction():
            receipt, changed = self._state_machine.edit(self._get(receipt_id), changes)
            receipt = self._storage.update_receipt(receipt)

        if self._audit_logger and changed:
            self._audit_logger.log_receipt_updated(
                receipt_id=receipt_id,
                changed_fields=changed,
                correlation_id=correlation_id,
            )
        return receipt

    def delete_receipt(
        self,
        receipt_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Remove a receipt. Cash movements already recorded are kept."""
        deleted = self._storage.delete_receipt(receipt_id)
        if deleted and self._audit_logger:
            self._audit_logger.log_receipt_deleted(
                receipt_id=receipt_id,
                correlation_id=correlation_id,
            )
        return deleted

    def pay_receipt(
        self,
        receipt_id: int,
        request: Union[PaymentRequest, dict],
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> PaymentResult:
        """
        Apply a payment.

        Raises:
            PaymentRejectedError: If the payment is invalid (nothing changes)
        """
        if isinstance(request, dict):
            request = PaymentRequest.model_validate(request)
        return self._payment_engine.apply(
            receipt_id,
            request,
            today=today,
            correlation_id=correlation_id,
        )

    def receipts(self, today: Optional[date] = None) -> list[Receipt]:
        """All receipts with the read-time ``vencido`` projection applied."""
        today = today or date.today()
        return [
            receipt.model_copy(update={
                "status": self._state_machine.effective_status(receipt, today),
            })
            for receipt in self._storage.list_receipts()
        ]


class ReportFlow:
    """Read-side reports, recomputed from the store on every call."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        aggregator: Optional[MonthlyAggregator] = None,
        dashboard: Optional[DashboardBuilder] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._aggregator = aggregator or MonthlyAggregator()
        self._dashboard = dashboard or DashboardBuilder()
        self._audit_logger = audit_logger

    def _generated(self, report: str, row_count: int) -> None:
        if self._audit_logger:
            self._audit_logger.log_report_generated(report=report, row_count=row_count)

    def tenant_statement(self, tenant_id: int) -> TenantStatement:
        with self._storage.transaction():
            tenant = self._storage.get_tenant(tenant_id)
            if tenant is None:
                raise NotFoundError(f"Tenant {tenant_id} not found")
            receipts = self._storage.list_receipts(tenant)

        statement = TenantLedger.build(tenant, receipts)
        self._generated("tenant_statement", len(statement.rows))
        return statement

    def monthly_report(self, month: int, year: int) -> MonthlyReport:
        with self._storage.transaction():
            properties = self._storage.list_properties()
            tenants = self._storage.list_tenants()
            receipts = self._storage.list_receipts()

        report = self._aggregator.build(month, year, properties, tenants, receipts)
        self._generated("monthly_report", len(report.rows))
        return report

    def dashboard(self, today: Optional[date] = None) -> DashboardSummary:
        with self._storage.transaction():
            properties = self._storage.list_properties()
            tenants = self._storage.list_tenants()
            receipts = self._storage.list_receipts()

        summary = self._dashboard.build(properties, tenants, receipts, today=today)
        self._generated("dashboard", len(summary.pending_payments))
        return summary


@dataclass
class LedgerComponents:
    """Everything a caller needs, wired to one store."""

    storage: LedgerStorageInterface
    audit_logger: AuditLogger
    receipts: ReceiptFlow
    reports: ReportFlow
    register: CashRegister
    occupancy: OccupancyManager
    backups: BackupService


def create_app_components(
    settings: Optional[Settings] = None,
    storage: Optional[LedgerStorageInterface] = None,
    setup_logging: bool = False,
) -> LedgerComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Defaults to the cached environment settings
        storage: Defaults to a fresh in-memory store
        setup_logging: Configure structlog from the app settings

    Returns:
        LedgerComponents sharing one store and one audit logger
    """
    settings = settings or get_settings()
    if setup_logging:
        configure_logging(settings.app.log_level, settings.app.log_json)

    storage = storage or InMemoryLedgerStorage()
    audit_logger = AuditLogger(InMemoryAuditStorage())
    ledger_settings = settings.ledger

    state_machine = ReceiptStateMachine(ledger_settings)
    return LedgerComponents(
        storage=storage,
        audit_logger=audit_logger,
        receipts=ReceiptFlow(
            storage,
            state_machine=state_machine,
            audit_logger=audit_logger,
        ),
        reports=ReportFlow(
            storage,
            aggregator=MonthlyAggregator(ledger_settings),
            dashboard=DashboardBuilder(ledger_settings),
            audit_logger=audit_logger,
        ),
        register=CashRegister(storage, audit_logger=audit_logger),
        occupancy=OccupancyManager(storage, audit_logger=audit_logger),
        backups=BackupService(storage, settings.portability, audit_logger=audit_logger),
    )
