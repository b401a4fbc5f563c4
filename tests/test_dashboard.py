"""Tests for the dashboard summary."""

import pytest
from datetime import date
from decimal import Decimal

from rental_ledger.config import LedgerSettings
from rental_ledger.models import Property, ReceiptStatus, Tenant, TenantStatus
from rental_ledger.queries import DashboardBuilder


@pytest.fixture
def builder(ledger_settings) -> DashboardBuilder:
    return DashboardBuilder(ledger_settings)


class TestDashboard:
    """Headline figures come from receipts and the ledger."""

    def test_counts_and_occupancy(self, builder):
        properties = [Property(id=i, name=f"P{i}") for i in range(1, 4)]
        tenants = [
            Tenant(id=1, name="A"),
            Tenant(id=2, name="B"),
            Tenant(id=3, name="C", status=TenantStatus.VENCIDO),
        ]
        summary = builder.build(properties, tenants, [], today=date(2025, 3, 15))
        assert summary.total_properties == 3
        assert summary.active_tenants == 2
        assert summary.occupancy_rate == Decimal("66.7")

    def test_no_properties(self, builder):
        summary = builder.build([], [], [], today=date(2025, 3, 15))
        assert summary.occupancy_rate == Decimal("0")

    def test_monthly_income_counts_paid_receipts_created_this_month(self, builder, make_receipt):
        receipts = [
            make_receipt(receipt_id=1, month=3, status=ReceiptStatus.PAGADO, paid_amount="55000"),
            make_receipt(receipt_id=2, month=2, status=ReceiptStatus.PAGADO, paid_amount="55000"),
            make_receipt(receipt_id=3, month=3, paid_amount="1000"),
        ]
        summary = builder.build([], [], receipts, today=date(2025, 3, 20))
        assert summary.monthly_income == Decimal("55000")

    def test_pending_uses_ledger_not_cache(self, builder, make_receipt):
        tenants = [
            Tenant(id=1, name="Juan Pérez", property_name="Depto A", balance=Decimal("0")),
            Tenant(id=2, name="Sin deuda", balance=Decimal("99999")),
        ]
        receipts = [make_receipt(receipt_id=1, rent="20000", expenses="0")]
        summary = builder.build([], tenants, receipts, today=date(2025, 3, 20))
        assert [(p.tenant_id, p.amount) for p in summary.pending_payments] == [(1, Decimal("20000"))]
        assert summary.total_pending == Decimal("20000")

    def test_recent_payments_newest_first_and_limited(self, make_receipt):
        builder = DashboardBuilder(LedgerSettings(recent_payments_limit=2))
        receipts = [
            make_receipt(receipt_id=i, month=i, status=ReceiptStatus.PAGADO, paid_amount="55000")
            for i in range(1, 5)
        ]
        summary = builder.build([], [], receipts, today=date(2025, 6, 1))
        assert [p.receipt_id for p in summary.recent_payments] == [4, 3]
        assert summary.recent_payments[0].period_label == "Abril 2025"

    def test_rent_review_reminders(self, builder, sample_property):
        summary = builder.build([sample_property], [], [], today=date(2025, 6, 1))
        assert [r.property_id for r in summary.reminders] == [sample_property.id]
        summary = builder.build([sample_property], [], [], today=date(2025, 5, 31))
        assert summary.reminders == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
