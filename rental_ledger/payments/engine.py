"""
Payment Application Engine

Applies one payment, split across up to three instruments, to one
receipt.

CRITICAL: The operation is all-or-nothing.
1. Validate everything first (amounts, remaining balance, state)
2. Build the updated receipt and every cash movement
3. Only then write to the store

A rejected payment leaves the receipt, the register and the tenant
exactly as they were.

The tenant balance cache is updated with the simple rule
``max(0, balance - total)``. That rule can drift from the ledger (for
example after an edit); drift is audited, never fatal, and
``refresh_tenant_balance`` rewrites the cache from the ledger.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from rental_ledger.audit import AuditLogger, create_correlation_id
from rental_ledger.lifecycle import ReceiptStateMachine
from rental_ledger.models.cash import CashMovement, MovementType
from rental_ledger.models.payment import PaymentRequest, PaymentResult
from rental_ledger.models.receipt import Receipt
from rental_ledger.models.tenant import Tenant
from rental_ledger.money import ZERO
from rental_ledger.queries.statement import TenantLedger
from rental_ledger.services.storage import LedgerStorageInterface, NotFoundError
from rental_ledger.validation import PaymentRejectedError, PaymentValidator

logger = structlog.get_logger(__name__)


def income_description(tenant_name: str, label: str) -> str:
    return f"Pago alquiler - {tenant_name} ({label})"


class PaymentEngine:
    """Validates and applies payments against stored receipts."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        state_machine: Optional[ReceiptStateMachine] = None,
        validator: Optional[PaymentValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._state_machine = state_machine or ReceiptStateMachine()
        self._validator = validator or PaymentValidator()
        self._audit_logger = audit_logger

    def _find_tenant(self, receipt: Receipt) -> Optional[Tenant]:
        if receipt.tenant_id is not None:
            return self._storage.get_tenant(receipt.tenant_id)
        return self._storage.find_tenant_by_name(receipt.tenant_name)

    def apply(
        self,
        receipt_id: int,
        request: PaymentRequest,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> PaymentResult:
        """
        Apply a payment to a receipt.

        Args:
            receipt_id: The receipt being paid
            request: Amounts per instrument
            today: Date stamped on the cash movements
            correlation_id: Ties the audit events of this payment together

        Returns:
            PaymentResult with the updated receipt and the new movements

        Raises:
            NotFoundError: If the receipt doesn't exist
            PaymentRejectedError: If validation fails (nothing is changed)
        """
        today = today or date.today()
        correlation_id = correlation_id or create_correlation_id()

        with self._storage.transaction():
            receipt = self._storage.get_receipt(receipt_id)
            if receipt is None:
                raise NotFoundError(f"Receipt {receipt_id} not found")

            validation = self._validator.validate(receipt, request)
            if validation.has_errors:
                logger.info(
                    "payment_rejected",
                    receipt_id=receipt_id,
                    reason=validation.summary(),
                )
                if self._audit_logger:
                    self._audit_logger.log_payment_rejected(
                        receipt_id=receipt_id,
                        issues=[issue.model_dump(mode="json") for issue in validation.issues],
                        correlation_id=correlation_id,
                    )
                raise PaymentRejectedError(validation)

            total = request.total
            method = request.dominant_method
            updated = self._state_machine.record_payment(receipt, total, method)

            movements = []
            next_id = self._storage.next_id("cash_movements")
            for part_method, amount in request.parts():
                if amount <= 0:
                    continue
                movements.append(CashMovement(
                    id=next_id + len(movements),
                    type=MovementType.INCOME,
                    description=income_description(receipt.tenant_name, part_method.label),
                    amount=amount,
                    currency=part_method.currency,
                    date=today,
                    tenant_name=receipt.tenant_name,
                    property_name=receipt.property_name or None,
                    payment_method=part_method,
                ))

            # Nothing has been written before this point
            updated = self._storage.update_receipt(updated)
            for movement in movements:
                self._storage.append_cash_movement(movement)

            tenant = self._find_tenant(receipt)
            old_balance = new_balance = ledger_balance = None
            if tenant is not None:
                old_balance = tenant.balance
                new_balance = max(ZERO, tenant.balance - total)
                tenant = self._storage.update_tenant(
                    tenant.model_copy(update={"balance": new_balance})
                )
                ledger_balance = TenantLedger.balance(
                    tenant, self._storage.list_receipts(tenant)
                )
            else:
                logger.warning(
                    "payment_tenant_not_found",
                    receipt_id=receipt_id,
                    tenant=receipt.tenant_name,
                )

        logger.info(
            "payment_applied",
            receipt_id=receipt_id,
            total=str(total),
            payment_method=method.value,
            remaining=str(updated.remaining_balance),
            status=updated.status.value,
        )

        if self._audit_logger:
            self._audit_logger.log_payment_applied(
                receipt_id=receipt_id,
                total=total,
                payment_method=method.value,
                remaining=updated.remaining_balance,
                correlation_id=correlation_id,
            )
            for movement in movements:
                self._audit_logger.log_cash_income(
                    movement_id=movement.id,
                    amount=movement.amount,
                    currency=movement.currency.value,
                    payment_method=movement.payment_method.value,
                    correlation_id=correlation_id,
                )
            if tenant is not None:
                self._audit_logger.log_tenant_balance_updated(
                    tenant_id=tenant.id,
                    old_balance=old_balance,
                    new_balance=new_balance,
                    correlation_id=correlation_id,
                )

        if tenant is not None and new_balance != ledger_balance:
            self._report_drift(tenant, new_balance, ledger_balance, correlation_id)

        for warning in validation.warnings:
            logger.warning("payment_warning", receipt_id=receipt_id, message=warning)

        return PaymentResult(
            receipt=updated,
            movements=movements,
            total_paid=total,
            payment_method=method,
            tenant_balance=new_balance,
            ledger_balance=ledger_balance,
        )

    def _report_drift(
        self,
        tenant: Tenant,
        cached: Decimal,
        ledger: Decimal,
        correlation_id: Optional[UUID],
    ) -> None:
        logger.warning(
            "balance_drift_detected",
            tenant_id=tenant.id,
            cached=str(cached),
            ledger=str(ledger),
        )
        if self._audit_logger:
            self._audit_logger.log_balance_drift(
                tenant_id=tenant.id,
                cached=cached,
                ledger=ledger,
                correlation_id=correlation_id,
            )

    def refresh_tenant_balance(
        self,
        tenant_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> Tenant:
        """
        Overwrite the cached tenant balance with the ledger value.

        Raises:
            NotFoundError: If the tenant doesn't exist
        """
        with self._storage.transaction():
            tenant = self._storage.get_tenant(tenant_id)
            if tenant is None:
                raise NotFoundError(f"Tenant {tenant_id} not found")
            ledger_balance = TenantLedger.balance(tenant, self._storage.list_receipts(tenant))
            if ledger_balance == tenant.balance:
                return tenant
            old_balance = tenant.balance
            tenant = self._storage.update_tenant(
                tenant.model_copy(update={"balance": ledger_balance})
            )

        if self._audit_logger:
            self._audit_logger.log_tenant_balance_updated(
                tenant_id=tenant_id,
                old_balance=old_balance,
                new_balance=ledger_balance,
                correlation_id=correlation_id,
            )
        return tenant
