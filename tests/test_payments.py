"""Tests for the payment application engine."""

import pytest
from decimal import Decimal

from rental_ledger.models import (
    AuditEventType,
    Currency,
    MovementType,
    PaymentMethod,
    PaymentRequest,
    ReceiptStatus,
)
from rental_ledger.payments import PaymentEngine
from rental_ledger.queries import MonthlyAggregator, TenantLedger
from rental_ledger.services.storage import NotFoundError
from rental_ledger.validation import PaymentRejectedError


@pytest.fixture
def engine(seeded_storage, audit_logger) -> PaymentEngine:
    return PaymentEngine(seeded_storage, audit_logger=audit_logger)


@pytest.fixture
def receipt(seeded_storage, make_receipt):
    """Receipt with rent 50000, expenses 5000, total 55000, pendiente."""
    return seeded_storage.add_receipt(make_receipt())


def _event_types(audit_storage):
    return [e.event_type for e in audit_storage.get_recent_events()]


class TestFullCashPayment:
    """Paying 55000 in cash settles the receipt."""

    def test_full_cash_payment(self, engine, seeded_storage, receipt, today):
        result = engine.apply(receipt.id, PaymentRequest(efectivo="55000"), today=today)

        assert result.receipt.paid_amount == Decimal("55000")
        assert result.receipt.remaining_balance == Decimal("0")
        assert result.receipt.status == ReceiptStatus.PAGADO
        assert result.payment_method == PaymentMethod.EFECTIVO

        movements = seeded_storage.list_cash_movements()
        assert len(movements) == 1
        movement = movements[0]
        assert movement.type == MovementType.INCOME
        assert movement.payment_method == PaymentMethod.EFECTIVO
        assert movement.amount == Decimal("55000")
        assert movement.currency == Currency.ARS
        assert movement.date == today
        assert movement.description == "Pago alquiler - Juan Pérez (Efectivo)"

        # Tenant cache 55000 -> 0
        assert seeded_storage.get_tenant(1).balance == Decimal("0")
        assert result.ledger_balance == Decimal("0")
        assert result.balance_drift == Decimal("0")

    def test_stored_receipt_updated(self, engine, seeded_storage, receipt, today):
        engine.apply(receipt.id, PaymentRequest(efectivo="55000"), today=today)
        assert seeded_storage.get_receipt(receipt.id).status == ReceiptStatus.PAGADO

    def test_tenant_balance_floors_at_zero(self, engine, seeded_storage, receipt, today):
        tenant = seeded_storage.get_tenant(1)
        seeded_storage.update_tenant(tenant.model_copy(update={"balance": Decimal("1000")}))
        result = engine.apply(receipt.id, PaymentRequest(efectivo="55000"), today=today)
        assert result.tenant_balance == Decimal("0")


class TestPartialPayment:
    """A split partial payment."""

    def test_split_partial_payment(self, engine, seeded_storage, receipt, today):
        result = engine.apply(
            receipt.id,
            PaymentRequest(efectivo="20000", transferencia="10000"),
            today=today,
        )

        assert result.receipt.paid_amount == Decimal("30000")
        assert result.receipt.remaining_balance == Decimal("25000")
        assert result.receipt.status == ReceiptStatus.PENDIENTE
        assert result.receipt.payment_method == PaymentMethod.EFECTIVO

        movements = seeded_storage.list_cash_movements()
        assert [(m.payment_method, m.amount) for m in movements] == [
            (PaymentMethod.EFECTIVO, Decimal("20000")),
            (PaymentMethod.TRANSFERENCIA, Decimal("10000")),
        ]
        assert len({m.id for m in movements}) == 2

    def test_partial_payment_reports_drift(self, engine, receipt, audit_storage, today):
        """Cache says 25000, ledger still counts the unpaid 55000."""
        result = engine.apply(receipt.id, PaymentRequest(efectivo="30000"), today=today)
        assert result.tenant_balance == Decimal("25000")
        assert result.ledger_balance == Decimal("55000")
        assert result.balance_drift == Decimal("-30000")
        assert AuditEventType.BALANCE_DRIFT_DETECTED in _event_types(audit_storage)

    def test_partial_payment_on_confirmado_keeps_debt(self, engine, seeded_storage, make_receipt, today):
        """Legacy confirmado receipts reopen as pendiente so the ledger still sees the debt."""
        receipt = seeded_storage.add_receipt(make_receipt(status=ReceiptStatus.CONFIRMADO))
        result = engine.apply(receipt.id, PaymentRequest(efectivo="10000"), today=today)

        assert result.receipt.status == ReceiptStatus.PENDIENTE
        assert result.receipt.remaining_balance == Decimal("45000")

        tenant = seeded_storage.get_tenant(1)
        receipts = seeded_storage.list_receipts()
        assert TenantLedger.balance(tenant, receipts) == Decimal("55000")
        assert result.ledger_balance == Decimal("55000")
        assert result.tenant_balance == Decimal("45000")
        assert result.balance_drift == Decimal("-10000")

        report = MonthlyAggregator().build(
            3, 2025, seeded_storage.list_properties(), [tenant], receipts
        )
        row = report.rows[0]
        assert (row.paid, row.debt) == (Decimal("10000"), Decimal("55000"))

    def test_full_payment_on_confirmado_settles(self, engine, seeded_storage, make_receipt, today):
        receipt = seeded_storage.add_receipt(make_receipt(status=ReceiptStatus.CONFIRMADO))
        result = engine.apply(receipt.id, PaymentRequest(efectivo="55000"), today=today)
        assert result.receipt.status == ReceiptStatus.PAGADO
        assert result.ledger_balance == Decimal("0")
        assert result.balance_drift == Decimal("0")

    def test_paid_amount_accumulates(self, engine, receipt, today):
        engine.apply(receipt.id, PaymentRequest(efectivo="30000"), today=today)
        result = engine.apply(receipt.id, PaymentRequest(transferencia="25000"), today=today)
        assert result.receipt.paid_amount == Decimal("55000")
        assert result.receipt.status == ReceiptStatus.PAGADO
        assert result.receipt.payment_method == PaymentMethod.TRANSFERENCIA

    def test_dollar_part_recorded_in_usd(self, engine, seeded_storage, receipt, today):
        engine.apply(receipt.id, PaymentRequest(efectivo="100", dolares="100"), today=today)
        usd = [m for m in seeded_storage.list_cash_movements() if m.currency == Currency.USD]
        assert len(usd) == 1
        assert usd[0].payment_method == PaymentMethod.DOLARES


class TestRejectedPayment:
    """Rejected payments change nothing."""

    def test_overpayment_rejected(self, engine, seeded_storage, receipt, audit_storage, today):
        before = seeded_storage.get_receipt(receipt.id)
        tenant_before = seeded_storage.get_tenant(1)

        with pytest.raises(PaymentRejectedError) as exc_info:
            engine.apply(receipt.id, PaymentRequest(efectivo="60000"), today=today)

        issue = exc_info.value.issues[0]
        assert issue.issue_type == "exceeds_balance"
        assert issue.details == {"total": "60000", "remaining_balance": "55000"}

        assert seeded_storage.get_receipt(receipt.id) == before
        assert seeded_storage.get_receipt(receipt.id).to_record() == before.to_record()
        assert seeded_storage.list_cash_movements() == []
        assert seeded_storage.get_tenant(1) == tenant_before
        assert AuditEventType.PAYMENT_REJECTED in _event_types(audit_storage)

    @pytest.mark.parametrize("request_data", [{}, {"efectivo": "0"}])
    def test_empty_payment_rejected(self, engine, seeded_storage, receipt, request_data, today):
        with pytest.raises(PaymentRejectedError) as exc_info:
            engine.apply(receipt.id, PaymentRequest(**request_data), today=today)
        assert exc_info.value.issues[0].issue_type == "not_positive"
        assert seeded_storage.list_cash_movements() == []

    def test_negative_instrument_rejected(self, engine, seeded_storage, receipt, today):
        """A negative part can't offset a positive one."""
        with pytest.raises(PaymentRejectedError) as exc_info:
            engine.apply(
                receipt.id,
                PaymentRequest(efectivo="70000", transferencia="-20000"),
                today=today,
            )
        assert "negative_amount" in [i.issue_type for i in exc_info.value.issues]
        assert seeded_storage.list_cash_movements() == []

    def test_unconfirmed_receipt_rejected(self, engine, seeded_storage, make_receipt, today):
        receipt = seeded_storage.add_receipt(
            make_receipt(receipt_id=2, status=ReceiptStatus.PENDIENTE_CONFIRMACION)
        )
        with pytest.raises(PaymentRejectedError) as exc_info:
            engine.apply(receipt.id, PaymentRequest(efectivo="100"), today=today)
        assert exc_info.value.issues[0].issue_type == "invalid_state"

    def test_paid_receipt_rejected(self, engine, receipt, today):
        engine.apply(receipt.id, PaymentRequest(efectivo="55000"), today=today)
        with pytest.raises(PaymentRejectedError) as exc_info:
            engine.apply(receipt.id, PaymentRequest(efectivo="1"), today=today)
        types = {i.issue_type for i in exc_info.value.issues}
        assert types == {"exceeds_balance", "invalid_state"}

    def test_all_problems_reported_together(self, engine, seeded_storage, make_receipt, today):
        receipt = seeded_storage.add_receipt(
            make_receipt(receipt_id=3, status=ReceiptStatus.BORRADOR)
        )
        with pytest.raises(PaymentRejectedError) as exc_info:
            engine.apply(receipt.id, PaymentRequest(efectivo="99999"), today=today)
        assert exc_info.value.result.error_count == 2

    def test_unknown_receipt(self, engine):
        with pytest.raises(NotFoundError):
            engine.apply(999, PaymentRequest(efectivo="1"))


class TestTenantBalance:
    """Cache maintenance."""

    def test_refresh_from_ledger(self, engine, seeded_storage, receipt, today):
        engine.apply(receipt.id, PaymentRequest(efectivo="30000"), today=today)
        assert seeded_storage.get_tenant(1).balance == Decimal("25000")

        tenant = engine.refresh_tenant_balance(1)
        assert tenant.balance == Decimal("55000")
        assert seeded_storage.get_tenant(1).balance == Decimal("55000")

    def test_payment_without_tenant_record(self, engine, seeded_storage, make_receipt, today):
        receipt = seeded_storage.add_receipt(
            make_receipt(receipt_id=5, tenant="Ex inquilino", tenant_id=None)
        )
        result = engine.apply(receipt.id, PaymentRequest(efectivo="1000"), today=today)
        assert result.tenant_balance is None
        assert result.balance_drift is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
