"""Pytest configuration and fixtures."""

from datetime import date
from decimal import Decimal

import pytest

from rental_ledger.audit import AuditLogger
from rental_ledger.config import LedgerSettings, PortabilitySettings
from rental_ledger.models import (
    OtherCharge,
    Property,
    PropertyStatus,
    Receipt,
    ReceiptStatus,
    Tenant,
    compute_remaining,
    compute_total,
)
from rental_ledger.services.storage import InMemoryAuditStorage, InMemoryLedgerStorage


TODAY = date(2025, 3, 15)


@pytest.fixture
def today() -> date:
    """Fixed clock for reproducible tests."""
    return TODAY


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    return LedgerSettings(
        due_day=10,
        receipt_number_prefix="REC",
        no_tenant_placeholder="Sin inquilino",
        recent_payments_limit=5,
    )


@pytest.fixture
def portability_settings() -> PortabilitySettings:
    return PortabilitySettings(format_version="1.0.0", file_prefix="alquileres_backup", indent=2)


@pytest.fixture
def storage() -> InMemoryLedgerStorage:
    return InMemoryLedgerStorage()


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage) -> AuditLogger:
    return AuditLogger(audit_storage)


@pytest.fixture
def sample_property() -> Property:
    """An occupied apartment: rent 50000, expenses 5000."""
    return Property(
        id=1,
        name="Departamento A-101",
        building="Ramos Mejia",
        address="Av. Rivadavia 14000",
        rent=Decimal("50000"),
        expenses=Decimal("5000"),
        next_update_date=date(2025, 6, 1),
        tenant_name="Juan Pérez",
        status=PropertyStatus.OCUPADO,
    )


@pytest.fixture
def sample_tenant() -> Tenant:
    return Tenant(
        id=1,
        name="Juan Pérez",
        email="juan@example.com",
        property_id=1,
        property_name="Departamento A-101",
        balance=Decimal("55000"),
    )


@pytest.fixture
def seeded_storage(storage, sample_property, sample_tenant) -> InMemoryLedgerStorage:
    """Store holding the sample property and tenant."""
    storage.add_property(sample_property)
    storage.add_tenant(sample_tenant)
    return storage


@pytest.fixture
def make_receipt():
    """Factory for consistent receipts; totals are computed, not guessed."""

    def _make(
        receipt_id: int = 1,
        tenant: str = "Juan Pérez",
        tenant_id: int = 1,
        month: int = 3,
        year: int = 2025,
        rent="50000",
        expenses="5000",
        previous_balance="0",
        other_charges=None,
        paid_amount="0",
        status: ReceiptStatus = ReceiptStatus.PENDIENTE,
        due_date: date = None,
        **extra,
    ) -> Receipt:
        charges = [OtherCharge(**c) for c in (other_charges or [])]
        total = compute_total(
            Decimal(rent), Decimal(expenses), Decimal(previous_balance), charges
        )
        return Receipt(
            id=receipt_id,
            receipt_number=f"REC-{year}-{receipt_id:03d}",
            tenant_name=tenant,
            tenant_id=tenant_id,
            property_name="Departamento A-101",
            building="Ramos Mejia",
            month=month,
            year=year,
            rent=rent,
            expenses=expenses,
            previous_balance=previous_balance,
            other_charges=charges,
            total=total,
            paid_amount=paid_amount,
            remaining_balance=compute_remaining(total, Decimal(paid_amount)),
            status=status,
            due_date=due_date or date(year, month, 10),
            created_date=date(year, month, 1),
            **extra,
        )

    return _make
