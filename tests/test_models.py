"""
Tests for Rental Ledger models

Test strategy:
1. Unit tests for individual components (models, coercion)
2. Flow tests against the in-memory store
3. No clock dependence (dates are passed in)
"""

import pytest
from datetime import date
from decimal import Decimal

from pydantic import ValidationError

from rental_ledger.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    CashMovement,
    Currency,
    DeliveryRequest,
    DeliveryType,
    MovementType,
    PaymentMethod,
    PaymentRequest,
    Property,
    Receipt,
    ReceiptChanges,
    ReceiptStatus,
    Tenant,
    ValidationIssue,
    ValidationResult,
)


class TestReceiptModel:
    """Tests for the Receipt schema and its arithmetic checks."""

    def test_receipt_total_matches_components(self, make_receipt):
        """Rent and expenses: 50000 + 5000 = 55000."""
        receipt = make_receipt()
        assert receipt.total == Decimal("55000")
        assert receipt.remaining_balance == Decimal("55000")
        assert receipt.due_amount == Decimal("55000")

    def test_total_includes_previous_balance_and_other_charges(self, make_receipt):
        receipt = make_receipt(
            previous_balance="20000",
            other_charges=[{"description": "Plomero", "amount": "3000"}],
        )
        assert receipt.total == Decimal("78000")
        assert receipt.other_charges_total == Decimal("3000")
        # The ledger's due figure ignores both
        assert receipt.due_amount == Decimal("55000")

    def test_mismatched_total_is_rejected(self):
        """A stored total that disagrees with its parts is a validation error."""
        with pytest.raises(ValidationError):
            Receipt(
                id=1,
                tenant_name="Juan Pérez",
                month=3,
                year=2025,
                rent="50000",
                expenses="5000",
                total="60000",
                remaining_balance="60000",
            )

    def test_mismatched_remaining_balance_is_rejected(self):
        with pytest.raises(ValidationError):
            Receipt(
                id=1,
                tenant_name="Juan Pérez",
                month=3,
                year=2025,
                rent="50000",
                total="50000",
                paid_amount="10000",
                remaining_balance="50000",
            )

    def test_remaining_balance_floors_at_zero(self, make_receipt):
        # paid above total is still consistent with max(0, total - paid)
        receipt = make_receipt(rent="100", expenses="0", paid_amount="150")
        assert receipt.remaining_balance == Decimal("0")

    def test_negative_amounts_rejected(self, make_receipt):
        with pytest.raises(ValueError):
            make_receipt(rent="-1")

    def test_spanish_month_names_accepted(self):
        receipt = Receipt(
            id=1,
            tenant_name="Juan Pérez",
            month="Marzo",
            year=2025,
        )
        assert receipt.month == 3
        assert receipt.period_label == "Marzo 2025"

    def test_unknown_month_rejected(self):
        with pytest.raises(ValidationError):
            Receipt(id=1, tenant_name="Juan Pérez", month="Brumario", year=2025)

    def test_amount_coercion_at_boundary(self):
        """Floats go through str, blanks become zero."""
        receipt = Receipt(
            id=1,
            tenant_name="Juan Pérez",
            month=1,
            year=2025,
            rent=0.1,
            expenses="",
            total="0.1",
            remaining_balance=0.1,
        )
        assert receipt.rent == Decimal("0.1")
        assert receipt.expenses == Decimal("0")

    def test_nan_amount_rejected(self):
        with pytest.raises(ValidationError):
            Receipt(id=1, tenant_name="Juan Pérez", month=1, year=2025, rent="NaN")

    def test_camel_case_record(self, make_receipt):
        record = make_receipt().to_record()
        assert record["tenant"] == "Juan Pérez"
        assert record["property"] == "Departamento A-101"
        assert record["paidAmount"] == "0"
        assert record["remainingBalance"] == "55000"
        assert record["dueDate"] == "2025-03-10"
        assert record["otherCharges"] == []
        assert record["status"] == "pendiente"

    def test_record_round_trip(self, make_receipt):
        receipt = make_receipt(other_charges=[{"description": "Expensas extra", "amount": "1500"}])
        assert Receipt.model_validate(receipt.to_record()) == receipt

    def test_belongs_to_prefers_tenant_id(self, make_receipt):
        receipt = make_receipt(tenant="Juan Pérez", tenant_id=2)
        same_name = Tenant(id=1, name="Juan Pérez")
        same_id = Tenant(id=2, name="Renamed")
        assert not receipt.belongs_to(same_name)
        assert receipt.belongs_to(same_id)

    def test_belongs_to_falls_back_to_name(self, make_receipt):
        receipt = make_receipt(tenant_id=None)
        assert receipt.belongs_to(Tenant(id=9, name="Juan Pérez"))

    def test_falls_in_uses_due_date(self, make_receipt):
        receipt = make_receipt(month=3, due_date=date(2025, 4, 10))
        assert receipt.falls_in(4, 2025)
        assert not receipt.falls_in(3, 2025)


class TestReceiptChanges:
    """Tests for the edit payload."""

    def test_only_set_fields_are_dumped(self):
        changes = ReceiptChanges(rent="60000")
        assert changes.model_dump(exclude_unset=True) == {"rent": Decimal("60000")}

    def test_unknown_fields_forbidden(self):
        with pytest.raises(ValidationError):
            ReceiptChanges.model_validate({"paid_amount": "1000"})


class TestPropertyAndTenant:
    """Tests for property and tenant records."""

    def test_property_review_due(self, sample_property):
        assert not sample_property.is_review_due(date(2025, 5, 31))
        assert sample_property.is_review_due(date(2025, 6, 1))

    def test_property_without_review_date(self):
        prop = Property(id=2, name="Local 1")
        assert not prop.is_review_due(date(2030, 1, 1))
        assert not prop.is_occupied

    def test_tenant_aliases(self):
        tenant = Tenant.model_validate({
            "id": 3,
            "name": "  María García  ",
            "propertyId": 2,
            "property": "Oficina 1205",
            "balance": 0,
            "guarantor": {"name": "Ana", "email": "", "phone": ""},
        })
        assert tenant.name == "María García"
        assert tenant.property_id == 2
        assert tenant.property_name == "Oficina 1205"

    def test_blank_dates_become_none(self):
        tenant = Tenant.model_validate({"id": 1, "name": "X", "contractStart": ""})
        assert tenant.contract_start is None


class TestCashMovement:
    """Tests for the immutable cash movement record."""

    def test_income_movement(self):
        movement = CashMovement(
            id=1,
            type=MovementType.INCOME,
            description="Pago alquiler - Juan Pérez (Efectivo)",
            amount="55000",
            currency=Currency.ARS,
            date=date(2025, 3, 15),
            tenant_name="Juan Pérez",
            payment_method=PaymentMethod.EFECTIVO,
        )
        assert movement.signed_amount == Decimal("55000")

    def test_delivery_is_negative(self):
        movement = CashMovement(
            id=2,
            type=MovementType.DELIVERY,
            description="Entrega al propietario",
            amount="1000",
            currency=Currency.USD,
            date=date(2025, 3, 15),
            delivery_type=DeliveryType.PROPIETARIO,
        )
        assert movement.signed_amount == Decimal("-1000")

    def test_amount_must_be_positive(self):
        with pytest.raises(ValidationError):
            CashMovement(
                id=1,
                type=MovementType.INCOME,
                description="x",
                amount="0",
                currency=Currency.ARS,
                date=date(2025, 3, 15),
            )

    def test_method_currency_must_match(self):
        with pytest.raises(ValidationError):
            CashMovement(
                id=1,
                type=MovementType.INCOME,
                description="x",
                amount="100",
                currency=Currency.ARS,
                date=date(2025, 3, 15),
                payment_method=PaymentMethod.DOLARES,
            )

    def test_delivery_cannot_carry_method(self):
        with pytest.raises(ValidationError):
            CashMovement(
                id=1,
                type=MovementType.DELIVERY,
                description="x",
                amount="100",
                currency=Currency.ARS,
                date=date(2025, 3, 15),
                payment_method=PaymentMethod.EFECTIVO,
            )

    def test_movement_is_frozen(self):
        movement = CashMovement(
            id=1,
            type=MovementType.INCOME,
            description="x",
            amount="100",
            currency=Currency.ARS,
            date=date(2025, 3, 15),
        )
        with pytest.raises(ValidationError):
            movement.amount = Decimal("1")


class TestPaymentRequest:
    """Tests for the split payment request."""

    def test_total_and_parts(self):
        request = PaymentRequest(efectivo="20000", transferencia="10000")
        assert request.total == Decimal("30000")
        assert request.parts()[2] == (PaymentMethod.DOLARES, Decimal("0"))

    def test_dominant_method_largest_contribution(self):
        request = PaymentRequest(efectivo="100", transferencia="300", dolares="200")
        assert request.dominant_method == PaymentMethod.TRANSFERENCIA

    def test_dominant_method_tie_breaks_by_entry_order(self):
        assert PaymentRequest(efectivo="100", transferencia="100").dominant_method == PaymentMethod.EFECTIVO
        assert PaymentRequest(transferencia="50", dolares="50").dominant_method == PaymentMethod.TRANSFERENCIA

    def test_method_currency(self):
        assert PaymentMethod.DOLARES.currency == Currency.USD
        assert PaymentMethod.TRANSFERENCIA.currency == Currency.ARS
        assert PaymentMethod.DOLARES.label == "Dólares"

    def test_delivery_default_description(self):
        request = DeliveryRequest(amount="100", delivery_type=DeliveryType.COMISION)
        assert request.resolved_description() == "Pago de comisión"
        request = DeliveryRequest(amount="100", description="  Pintura  ")
        assert request.resolved_description() == "Pintura"


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_validation_result_has_errors(self):
        result = ValidationResult(
            subject="payment",
            issues=[
                ValidationIssue(
                    field="total",
                    issue_type="exceeds_balance",
                    message="Too much",
                    severity="error",
                ),
                ValidationIssue(
                    field="currency",
                    issue_type="mixed_currency",
                    message="Mixed",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors
        assert not result.is_valid
        assert result.error_count == 1
        assert result.warnings == ["Mixed"]
        assert result.summary() == "Too much"

    def test_severity_is_restricted(self):
        with pytest.raises(ValidationError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


class TestAuditModels:
    """Tests for audit models."""

    def test_audit_event_creation(self):
        event = AuditEvent(
            event_type=AuditEventType.RECEIPT_CREATED,
            description="Test event",
        )
        assert event.event_id is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        event = AuditEventBuilder.payment_applied(
            receipt_id=7,
            total=Decimal("30000"),
            payment_method="efectivo",
            remaining=Decimal("25000"),
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "payment_applied"
        assert log_dict["entity_type"] == "receipt"
        assert log_dict["entity_id"] == "7"

    def test_balance_drift_event(self):
        event = AuditEventBuilder.balance_drift_detected(
            tenant_id=1,
            cached=Decimal("25000"),
            ledger=Decimal("55000"),
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.details["drift"] == "-30000"


class TestEnums:
    """Persisted enum values must match existing backups."""

    def test_receipt_status_values(self):
        assert {s.value for s in ReceiptStatus} == {
            "borrador",
            "pendiente_confirmacion",
            "pendiente",
            "vencido",
            "pagado",
            "confirmado",
        }

    def test_payment_method_values(self):
        assert [m.value for m in PaymentMethod] == ["efectivo", "transferencia", "dolares"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
