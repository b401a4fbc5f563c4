"""
Tenant Ledger (Statement Builder)

CRITICAL: The statement is recomputed from the tenant's full receipt
history on every read. It never looks at Tenant.balance and never uses
a receipt's stored ``previous_balance`` snapshot or its other charges;
carried debt comes purely from the fold:

    due_i     = rent_i + expenses_i
    paid_i    = due_i if the receipt is settled (pagado, confirmado) else 0
    balance_i = balance_{i-1} + due_i - paid_i,   balance_0 = 0

Receipts are sorted by (year, month) first, so the result does not depend
on input order, and nothing here reads the clock.
"""

from typing import Iterable

from rental_ledger.models.receipt import Receipt
from rental_ledger.models.reports import StatementRow, TenantStatement
from rental_ledger.models.tenant import Tenant
from rental_ledger.money import ZERO


def _sort_key(receipt: Receipt) -> tuple[int, int, int]:
    # id breaks ties between two receipts of the same period
    return (receipt.year, receipt.month, receipt.id)


class TenantLedger:
    """Builds tenant statements. Stateless; safe to share."""

    @staticmethod
    def build(tenant: Tenant, receipts: Iterable[Receipt]) -> TenantStatement:
        """
        Fold a tenant's receipts into statement rows.

        Receipts that don't belong to ``tenant`` are ignored, so callers
        may pass the whole receipt collection.
        """
        own = sorted(
            (r for r in receipts if r.belongs_to(tenant)),
            key=_sort_key,
        )

        rows = []
        balance = ZERO
        total_paid = ZERO
        total_pending = ZERO

        for receipt in own:
            due = receipt.due_amount
            paid = due if receipt.is_settled else ZERO
            previous = balance
            balance = previous + due - paid

            total_paid += paid
            if not receipt.is_settled:
                total_pending += due

            rows.append(StatementRow(
                receipt_id=receipt.id,
                period_label=receipt.period_label,
                year=receipt.year,
                month=receipt.month,
                rent=receipt.rent,
                expenses=receipt.expenses,
                due=due,
                previous_balance=previous,
                payment=paid,
                balance=balance,
                status=receipt.status,
                is_paid=receipt.is_settled,
                due_date=receipt.due_date,
            ))

        return TenantStatement(
            tenant_id=tenant.id,
            tenant_name=tenant.name,
            rows=rows,
            total_paid=total_paid,
            total_pending=total_pending,
            final_balance=balance,
        )

    @classmethod
    def balance(cls, tenant: Tenant, receipts: Iterable[Receipt]):
        """The tenant's authoritative outstanding balance."""
        return cls.build(tenant, receipts).final_balance
