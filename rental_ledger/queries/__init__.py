"""
Read-side queries: tenant statements, monthly reports, dashboard.

Everything here is recomputed from stored records on each call.
"""

from rental_ledger.queries.dashboard import DashboardBuilder
from rental_ledger.queries.monthly import MonthlyAggregator
from rental_ledger.queries.statement import TenantLedger

__all__ = ["DashboardBuilder", "MonthlyAggregator", "TenantLedger"]
