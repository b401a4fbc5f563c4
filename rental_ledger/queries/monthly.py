"""
Monthly Aggregation Engine

One row per property for a (month, year), grouped by building.

Debt is the tenant's whole outstanding balance from the ledger, not the
period's own remaining balance: a tenant can be current this month and
still carry debt from an earlier one, and the report shows exposure.
"""

from decimal import Decimal
from itertools import groupby
from typing import Iterable, Optional

from rental_ledger.config import LedgerSettings
from rental_ledger.models.property import Property
from rental_ledger.models.receipt import Currency, Receipt
from rental_ledger.models.reports import BuildingGroup, MonthlyReport, MonthlyReportRow
from rental_ledger.models.tenant import Tenant
from rental_ledger.money import ZERO
from rental_ledger.queries.statement import TenantLedger


def _by_currency(rows: list[MonthlyReportRow], field: str) -> dict[Currency, Decimal]:
    """Column sum per currency; a row counts in its receipt's currency."""
    totals = {currency: ZERO for currency in Currency}
    for row in rows:
        totals[row.currency] += getattr(row, field)
    return totals


class MonthlyAggregator:
    """Builds the monthly building matrix from plain record lists."""

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or LedgerSettings()

    @staticmethod
    def resolve_tenant(prop: Property, tenants: list[Tenant]) -> Optional[Tenant]:
        """The tenant whose property reference points at ``prop``, else the named one."""
        for tenant in tenants:
            if tenant.property_id == prop.id:
                return tenant
        if prop.tenant_name:
            for tenant in tenants:
                if tenant.name == prop.tenant_name:
                    return tenant
        return None

    def build(
        self,
        month: int,
        year: int,
        properties: Iterable[Property],
        tenants: Iterable[Tenant],
        receipts: Iterable[Receipt],
    ) -> MonthlyReport:
        tenants = list(tenants)
        receipts = list(receipts)
        period_receipts = [r for r in receipts if r.falls_in(month, year)]

        # sorted() is stable, so properties keep their order inside a building
        ordered = sorted(properties, key=lambda p: p.building)

        groups = []
        for building, props in groupby(ordered, key=lambda p: p.building):
            group = BuildingGroup(building=building)
            for prop in props:
                group.rows.append(self._row(prop, tenants, receipts, period_receipts))
            group.total_paid = sum((row.paid for row in group.rows), ZERO)
            group.total_debt = sum((row.debt for row in group.rows), ZERO)
            group.paid_by_currency = _by_currency(group.rows, "paid")
            group.debt_by_currency = _by_currency(group.rows, "debt")
            groups.append(group)

        all_rows = [row for group in groups for row in group.rows]
        return MonthlyReport(
            month=month,
            year=year,
            groups=groups,
            total_paid=sum((g.total_paid for g in groups), ZERO),
            total_debt=sum((g.total_debt for g in groups), ZERO),
            paid_by_currency=_by_currency(all_rows, "paid"),
            debt_by_currency=_by_currency(all_rows, "debt"),
        )

    def _row(
        self,
        prop: Property,
        tenants: list[Tenant],
        receipts: list[Receipt],
        period_receipts: list[Receipt],
    ) -> MonthlyReportRow:
        tenant = self.resolve_tenant(prop, tenants)
        if tenant is None:
            return MonthlyReportRow(
                property_id=prop.id,
                property_name=prop.name,
                building=prop.building,
                tenant_name=self._settings.no_tenant_placeholder,
            )

        # Latest receipt wins when a period was billed twice
        matching = [r for r in period_receipts if r.belongs_to(tenant)]
        receipt = max(matching, key=lambda r: r.id) if matching else None

        return MonthlyReportRow(
            property_id=prop.id,
            property_name=prop.name,
            building=prop.building,
            tenant_id=tenant.id,
            tenant_name=tenant.name,
            receipt_id=receipt.id if receipt else None,
            currency=receipt.currency if receipt else Currency.ARS,
            paid=receipt.paid_amount if receipt else ZERO,
            debt=TenantLedger.balance(tenant, receipts),
        )
