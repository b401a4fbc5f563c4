"""
Report Models

Read-side results: tenant statements, the monthly building matrix,
the dashboard summary and rent-review reminders. None of these are
persisted; they are recomputed on every request.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from rental_ledger.models.receipt import Currency, ReceiptStatus
from rental_ledger.money import ZERO


# =============================================================================
# TENANT STATEMENT
# =============================================================================

class StatementRow(BaseModel):
    """One receipt folded into the running balance."""
    
    receipt_id: int
    period_label: str
    year: int
    month: int
    rent: Decimal
    expenses: Decimal
    due: Decimal
    previous_balance: Decimal
    payment: Decimal
    balance: Decimal
    status: ReceiptStatus
    is_paid: bool
    due_date: Optional[date] = None


class StatementMovement(BaseModel):
    """A line of the two-line view: the charge, then the payment."""
    
    kind: Literal["due", "payment"]
    label: str
    movement_date: Optional[date] = None
    amount: Decimal
    previous_balance: Decimal
    balance: Decimal


class TenantStatement(BaseModel):
    """Chronological due/payment/balance rows for one tenant."""
    
    tenant_id: int
    tenant_name: str
    rows: list[StatementRow] = Field(default_factory=list)
    total_paid: Decimal = ZERO
    total_pending: Decimal = ZERO
    final_balance: Decimal = ZERO
    
    def movements(self) -> list[StatementMovement]:
        """Expand rows into a due line and, when paid, a payment line."""
        lines = []
        for row in self.rows:
            after_due = row.previous_balance + row.due
            lines.append(StatementMovement(
                kind="due",
                label=row.period_label,
                movement_date=row.due_date,
                amount=row.due,
                previous_balance=row.previous_balance,
                balance=after_due,
            ))
            if row.payment > 0:
                lines.append(StatementMovement(
                    kind="payment",
                    label="PAGO",
                    amount=row.payment,
                    previous_balance=after_due,
                    balance=row.balance,
                ))
        return lines


# =============================================================================
# MONTHLY REPORT
# =============================================================================

class MonthlyReportRow(BaseModel):
    """One property in the monthly matrix."""
    
    property_id: int
    property_name: str
    building: str
    tenant_id: Optional[int] = None
    tenant_name: str
    receipt_id: Optional[int] = None
    currency: Currency = Currency.ARS
    paid: Decimal = ZERO
    debt: Decimal = Field(
        default=ZERO,
        description="Tenant's current outstanding balance, not the period's"
    )


class BuildingGroup(BaseModel):
    """
    Rows of one building.
    
    ``total_paid`` and ``total_debt`` add amounts regardless of currency;
    the ``*_by_currency`` maps keep ARS and USD apart.
    """
    
    building: str
    rows: list[MonthlyReportRow] = Field(default_factory=list)
    total_paid: Decimal = ZERO
    total_debt: Decimal = ZERO
    paid_by_currency: dict[Currency, Decimal] = Field(default_factory=dict)
    debt_by_currency: dict[Currency, Decimal] = Field(default_factory=dict)


class MonthlyReport(BaseModel):
    month: int
    year: int
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    groups: list[BuildingGroup] = Field(default_factory=list)
    total_paid: Decimal = ZERO
    total_debt: Decimal = ZERO
    paid_by_currency: dict[Currency, Decimal] = Field(default_factory=dict)
    debt_by_currency: dict[Currency, Decimal] = Field(default_factory=dict)
    
    @property
    def rows(self) -> list[MonthlyReportRow]:
        return [row for group in self.groups for row in group.rows]


# =============================================================================
# DASHBOARD
# =============================================================================

class RentReviewReminder(BaseModel):
    """A property whose rent is due for review."""
    
    property_id: int
    property_name: str
    review_date: date
    message: str


class PendingPayment(BaseModel):
    tenant_id: int
    tenant_name: str
    property_name: str
    amount: Decimal


class RecentPayment(BaseModel):
    receipt_id: int
    receipt_number: str
    tenant_name: str
    period_label: str
    amount: Decimal
    currency: Currency
    created_date: date


class DashboardSummary(BaseModel):
    as_of: date
    total_properties: int
    active_tenants: int
    occupancy_rate: Decimal = Field(
        ...,
        description="Active tenants over properties, percent with one decimal"
    )
    monthly_income: Decimal
    pending_payments: list[PendingPayment] = Field(default_factory=list)
    total_pending: Decimal = ZERO
    recent_payments: list[RecentPayment] = Field(default_factory=list)
    reminders: list[RentReviewReminder] = Field(default_factory=list)


# =============================================================================
# PORTABILITY
# =============================================================================

class ImportStats(BaseModel):
    """Record counts of a completed import."""
    
    version: str
    properties: int = 0
    tenants: int = 0
    receipts: int = 0
    cash_movements: int = 0
