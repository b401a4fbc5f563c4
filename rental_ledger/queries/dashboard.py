"""Dashboard summary: headline figures, pending tenants and reminders."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from rental_ledger.config import LedgerSettings
from rental_ledger.lifecycle.receipts import review_reminder
from rental_ledger.models.property import Property
from rental_ledger.models.receipt import Receipt, ReceiptStatus
from rental_ledger.models.reports import DashboardSummary, PendingPayment, RecentPayment
from rental_ledger.models.tenant import Tenant, TenantStatus
from rental_ledger.money import ZERO
from rental_ledger.queries.statement import TenantLedger


class DashboardBuilder:
    """
    Computes the dashboard from plain record lists.

    Pending amounts come from the ledger, never from Tenant.balance.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or LedgerSettings()

    def build(
        self,
        properties: Iterable[Property],
        tenants: Iterable[Tenant],
        receipts: Iterable[Receipt],
        today: Optional[date] = None,
    ) -> DashboardSummary:
        today = today or date.today()
        properties = list(properties)
        tenants = list(tenants)
        receipts = list(receipts)

        active = sum(1 for t in tenants if t.status == TenantStatus.ACTIVO)
        if properties:
            rate = (Decimal(active) * 100 / len(properties)).quantize(
                Decimal("0.1"), rounding=ROUND_HALF_UP
            )
        else:
            rate = Decimal("0.0")

        paid = [r for r in receipts if r.status == ReceiptStatus.PAGADO]
        monthly_income = sum(
            (
                r.paid_amount for r in paid
                if r.created_date.year == today.year and r.created_date.month == today.month
            ),
            ZERO,
        )

        pending = []
        for tenant in tenants:
            balance = TenantLedger.balance(tenant, receipts)
            if balance > 0:
                pending.append(PendingPayment(
                    tenant_id=tenant.id,
                    tenant_name=tenant.name,
                    property_name=tenant.property_name,
                    amount=balance,
                ))

        recent = sorted(paid, key=lambda r: (r.created_date, r.id), reverse=True)
        recent = recent[:self._settings.recent_payments_limit]

        reminders = [
            reminder for reminder in (review_reminder(p, today) for p in properties)
            if reminder is not None
        ]

        return DashboardSummary(
            as_of=today,
            total_properties=len(properties),
            active_tenants=active,
            occupancy_rate=rate,
            monthly_income=monthly_income,
            pending_payments=pending,
            total_pending=sum((p.amount for p in pending), ZERO),
            recent_payments=[
                RecentPayment(
                    receipt_id=r.id,
                    receipt_number=r.receipt_number,
                    tenant_name=r.tenant_name,
                    period_label=r.period_label,
                    amount=r.paid_amount,
                    currency=r.currency,
                    created_date=r.created_date,
                )
                for r in recent
            ],
            reminders=reminders,
        )
