"""
Receipt Models

A receipt is the receivable unit: one tenant, one billing period.
The state machine and the payment engine are the only writers.

DESIGN DECISION: Receipts validate their own arithmetic on construction.
``total`` and ``remaining_balance`` are stored (backups carry them) but a
record whose stored values disagree with its components is rejected
rather than silently corrected.
"""

import unicodedata
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Iterable, Optional

from pydantic import BeforeValidator, ConfigDict, Field, model_validator

from rental_ledger.models.base import (
    LedgerModel,
    NonNegativeMoney,
    OptionalDate,
)
from rental_ledger.models.tenant import Tenant
from rental_ledger.money import ZERO


# =============================================================================
# ENUMS
# =============================================================================

class Currency(str, Enum):
    """The local currency and the hard currency."""
    ARS = "ARS"
    USD = "USD"

    @property
    def is_local(self) -> bool:
        return self is Currency.ARS


class PaymentMethod(str, Enum):
    """Payment instruments. Cash and transfer settle in ARS, 'dolares' in USD."""
    EFECTIVO = "efectivo"
    TRANSFERENCIA = "transferencia"
    DOLARES = "dolares"

    @property
    def currency(self) -> Currency:
        return Currency.USD if self is PaymentMethod.DOLARES else Currency.ARS

    @property
    def label(self) -> str:
        return _METHOD_LABELS[self]


_METHOD_LABELS = {
    PaymentMethod.EFECTIVO: "Efectivo",
    PaymentMethod.TRANSFERENCIA: "Transferencia",
    PaymentMethod.DOLARES: "Dólares",
}

# Tie-break order when two instruments contribute the same amount
PAYMENT_METHOD_PRIORITY = (
    PaymentMethod.EFECTIVO,
    PaymentMethod.TRANSFERENCIA,
    PaymentMethod.DOLARES,
)


class ReceiptStatus(str, Enum):
    """
    Receipt lifecycle states.

    VENCIDO is normally a read-time projection of PENDIENTE and is not
    written by the engine; it is accepted from imported data.
    CONFIRMADO is a legacy synonym of PENDIENTE.
    """
    BORRADOR = "borrador"
    PENDIENTE_CONFIRMACION = "pendiente_confirmacion"
    PENDIENTE = "pendiente"
    VENCIDO = "vencido"
    PAGADO = "pagado"
    CONFIRMADO = "confirmado"


PAYABLE_STATUSES = frozenset({
    ReceiptStatus.PENDIENTE,
    ReceiptStatus.VENCIDO,
    ReceiptStatus.CONFIRMADO,
})

EDITABLE_STATUSES = frozenset({
    ReceiptStatus.BORRADOR,
    ReceiptStatus.PENDIENTE_CONFIRMACION,
    ReceiptStatus.PENDIENTE,
    ReceiptStatus.VENCIDO,
})

# Statuses the tenant statement counts as settled
SETTLED_STATUSES = frozenset({
    ReceiptStatus.PAGADO,
    ReceiptStatus.CONFIRMADO,
})


# =============================================================================
# MONTHS
# =============================================================================

MONTH_NAMES = (
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
)


def _fold(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text.strip().lower())
    return "".join(c for c in normalized if not unicodedata.combining(c))


_MONTH_LOOKUP = {_fold(name): i for i, name in enumerate(MONTH_NAMES, start=1)}
_MONTH_LOOKUP["setiembre"] = 9


def coerce_month(value: Any) -> Any:
    """Accept 1-12, '03', or a Spanish month name ('Marzo')."""
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return int(text)
        folded = _fold(text)
        if folded in _MONTH_LOOKUP:
            return _MONTH_LOOKUP[folded]
        raise ValueError(f"Unknown month: {value!r}")
    return value


def month_name(month: int) -> str:
    return MONTH_NAMES[month - 1]


Month = Annotated[int, BeforeValidator(coerce_month), Field(ge=1, le=12)]


# =============================================================================
# RECEIPT
# =============================================================================

class OtherCharge(LedgerModel):
    """An extra line on a receipt (repairs, fees, ...)."""

    description: str = Field(..., min_length=1, max_length=200)
    amount: NonNegativeMoney


def compute_total(
    rent: Decimal,
    expenses: Decimal,
    previous_balance: Decimal,
    other_charges: Iterable[OtherCharge],
) -> Decimal:
    """total = rent + expenses + previous_balance + sum(other charges)"""
    return rent + expenses + previous_balance + sum(
        (charge.amount for charge in other_charges), ZERO
    )


def compute_remaining(total: Decimal, paid_amount: Decimal) -> Decimal:
    return max(ZERO, total - paid_amount)


class Receipt(LedgerModel):
    """
    One billing record for a tenant for one period.

    ``previous_balance`` is a snapshot taken at creation time. It is part
    of ``total`` but the tenant statement ignores it and derives carried
    debt from its own fold.
    """

    id: int = Field(..., ge=1)
    receipt_number: str = Field(default="", max_length=50)

    tenant_name: str = Field(..., min_length=1, alias="tenant")
    tenant_id: Optional[int] = Field(
        default=None,
        ge=1,
        description="Preferred tenant key; the name is used when absent"
    )
    property_name: str = Field(default="", alias="property")
    building: str = ""

    month: Month
    year: int = Field(..., ge=1900, le=9999)

    rent: NonNegativeMoney = ZERO
    expenses: NonNegativeMoney = ZERO
    other_charges: list[OtherCharge] = Field(default_factory=list)
    previous_balance: NonNegativeMoney = ZERO
    total: NonNegativeMoney = ZERO

    paid_amount: NonNegativeMoney = ZERO
    remaining_balance: NonNegativeMoney = ZERO

    currency: Currency = Currency.ARS
    payment_method: PaymentMethod = Field(
        default=PaymentMethod.EFECTIVO,
        description="Display only; cash movements are the authoritative record"
    )
    status: ReceiptStatus = ReceiptStatus.PENDIENTE_CONFIRMACION

    due_date: OptionalDate = None
    created_date: date = Field(default_factory=date.today)

    @model_validator(mode='after')
    def validate_amounts(self) -> 'Receipt':
        """Stored totals must agree with their components."""
        expected_total = compute_total(
            self.rent, self.expenses, self.previous_balance, self.other_charges
        )
        if self.total != expected_total:
            raise ValueError(
                f"Receipt total {self.total} does not match "
                f"rent + expenses + previous balance + other charges ({expected_total})"
            )

        expected_remaining = compute_remaining(self.total, self.paid_amount)
        if self.remaining_balance != expected_remaining:
            raise ValueError(
                f"Remaining balance {self.remaining_balance} does not match "
                f"max(0, total - paid) ({expected_remaining})"
            )

        return self

    @property
    def due_amount(self) -> Decimal:
        """What the statement counts as due for this period."""
        return self.rent + self.expenses

    @property
    def other_charges_total(self) -> Decimal:
        return sum((charge.amount for charge in self.other_charges), ZERO)

    @property
    def period(self) -> tuple[int, int]:
        """Sort key: (year, month)."""
        return (self.year, self.month)

    @property
    def period_label(self) -> str:
        return f"{month_name(self.month)} {self.year}"

    @property
    def is_settled(self) -> bool:
        return self.status in SETTLED_STATUSES

    def belongs_to(self, tenant: Tenant) -> bool:
        """Match by tenant id when recorded, by name otherwise."""
        if self.tenant_id is not None:
            return self.tenant_id == tenant.id
        return self.tenant_name == tenant.name

    def falls_in(self, month: int, year: int) -> bool:
        """True when the due date (or the billing period, without one) is in month/year."""
        if self.due_date is not None:
            return self.due_date.month == month and self.due_date.year == year
        return self.month == month and self.year == year


class ReceiptChanges(LedgerModel):
    """
    Editable receipt fields, coerced at the boundary.

    Only the fields a caller actually sets are applied; ``total`` and
    ``remaining_balance`` are always recomputed by the state machine.
    """

    model_config = ConfigDict(extra="forbid")

    property_name: Optional[str] = Field(default=None, alias="property")
    building: Optional[str] = None
    month: Optional[Month] = None
    year: Optional[int] = Field(default=None, ge=1900, le=9999)
    rent: Optional[NonNegativeMoney] = None
    expenses: Optional[NonNegativeMoney] = None
    other_charges: Optional[list[OtherCharge]] = None
    previous_balance: Optional[NonNegativeMoney] = None
    currency: Optional[Currency] = None
    due_date: OptionalDate = None
