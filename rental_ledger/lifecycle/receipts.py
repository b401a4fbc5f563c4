"""
Receipt State Machine

Owns the lifecycle of a single receivable:

    create ──> pendiente_confirmacion ──confirm──> pendiente ──pay──> pagado
    borrador ─────────────────────────confirm────────┘

DESIGN DECISION: The state machine is pure. It never reads the store or
the clock on its own; callers pass the receipt, the tenant's ledger
balance and ``today``. Every method returns a new Receipt and leaves its
argument untouched.

``vencido`` is a read-time projection of a payable receipt whose due
date has passed, never a stored transition.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

from rental_ledger.config import LedgerSettings
from rental_ledger.errors import LedgerError
from rental_ledger.models.property import Property
from rental_ledger.models.receipt import (
    EDITABLE_STATUSES,
    PAYABLE_STATUSES,
    Currency,
    OtherCharge,
    PaymentMethod,
    Receipt,
    ReceiptChanges,
    ReceiptStatus,
    compute_remaining,
    compute_total,
)
from rental_ledger.models.reports import RentReviewReminder
from rental_ledger.models.tenant import Tenant
from rental_ledger.money import ZERO


class InvalidTransitionError(LedgerError):
    """The requested lifecycle change is not allowed from the current state."""

    def __init__(self, message: str, status: Optional[ReceiptStatus] = None):
        self.status = status
        super().__init__(message)


def review_reminder(prop: Property, today: date) -> Optional[RentReviewReminder]:
    """Reminder for a property whose rent review date has been reached."""
    if not prop.is_review_due(today):
        return None
    return RentReviewReminder(
        property_id=prop.id,
        property_name=prop.name,
        review_date=prop.next_update_date,
        message=(
            "CHEQUEAR ACTUALIZACIÓN DE VALOR - Fecha de actualización: "
            f"{prop.next_update_date.isoformat()}"
        ),
    )


class ReceiptStateMachine:
    """
    Creates receipts and moves them between states.

    The payment engine drives the paid transition through
    ``record_payment``; everything else comes from explicit user actions.
    """

    def __init__(self, settings: Optional[LedgerSettings] = None):
        self._settings = settings or LedgerSettings()

    # -- Read-time projections ----------------------------------------------

    @staticmethod
    def effective_status(receipt: Receipt, today: date) -> ReceiptStatus:
        """
        Status as displayed on ``today``.

        A payable receipt with an outstanding balance past its due date
        reads as ``vencido``; the stored status is not changed.
        """
        if (
            receipt.status in PAYABLE_STATUSES
            and receipt.due_date is not None
            and receipt.due_date < today
            and receipt.remaining_balance > 0
        ):
            return ReceiptStatus.VENCIDO
        return receipt.status

    @staticmethod
    def is_payable(receipt: Receipt) -> bool:
        return receipt.status in PAYABLE_STATUSES

    @staticmethod
    def is_editable(receipt: Receipt) -> bool:
        return receipt.status in EDITABLE_STATUSES

    # -- Creation -----------------------------------------------------------

    def receipt_number(self, sequence: int, today: date) -> str:
        """REC-<year>-<NNN>, numbered from the count of existing receipts."""
        return f"{self._settings.receipt_number_prefix}-{today.year}-{sequence:03d}"

    def default_due_date(self, month: int, year: int) -> date:
        return date(year, month, self._settings.due_day)

    def create(
        self,
        receipt_id: int,
        tenant: Tenant,
        month: Any,
        year: int,
        *,
        prop: Optional[Property] = None,
        sequence: Optional[int] = None,
        previous_balance: Decimal = ZERO,
        rent: Any = None,
        expenses: Any = None,
        other_charges: Optional[list[Union[OtherCharge, dict]]] = None,
        currency: Currency = Currency.ARS,
        due_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> tuple[Receipt, Optional[RentReviewReminder]]:
        """
        Build a new receipt in ``pendiente_confirmacion``.

        Args:
            receipt_id: Identifier allocated by the store
            tenant: The tenant being billed
            month: Billing month, number or Spanish name
            year: Billing year
            prop: The billed property; supplies rent, expenses and building
            sequence: Receipt number sequence; defaults to ``receipt_id``
            previous_balance: Carried balance snapshot, normally the
                              tenant's ledger balance
            rent, expenses: Override the property's amounts
            other_charges: Extra lines; lines without a description are dropped
            currency: Receipt currency
            due_date: Defaults to the configured due day of the billing month
            today: Creation date

        Returns:
            (receipt, reminder) where reminder is set when the property's
            rent review date has been reached
        """
        today = today or date.today()

        charges = []
        for charge in other_charges or []:
            if isinstance(charge, dict):
                if not str(charge.get("description") or "").strip():
                    continue
                charge = OtherCharge.model_validate(charge)
            charges.append(charge)

        data = {
            "id": receipt_id,
            "receipt_number": self.receipt_number(sequence or receipt_id, today),
            "tenant_name": tenant.name,
            "tenant_id": tenant.id,
            "property_name": prop.name if prop else tenant.property_name,
            "building": prop.building if prop else "",
            "month": month,
            "year": year,
            "rent": rent if rent is not None else (prop.rent if prop else ZERO),
            "expenses": expenses if expenses is not None else (prop.expenses if prop else ZERO),
            "other_charges": charges,
            "previous_balance": previous_balance,
            "currency": currency,
            "status": ReceiptStatus.PENDIENTE_CONFIRMACION,
            "due_date": due_date,
            "created_date": today,
        }
        # Coerce first so totals are computed on Decimals
        draft = ReceiptChanges.model_validate({
            key: data[key]
            for key in ("month", "rent", "expenses", "previous_balance")
        })
        data.update(draft.model_dump(exclude_unset=True))
        if data["due_date"] is None:
            data["due_date"] = self.default_due_date(data["month"], year)

        total = compute_total(
            data["rent"], data["expenses"], data["previous_balance"], charges
        )
        data["total"] = total
        data["remaining_balance"] = total

        receipt = Receipt.model_validate(data)
        reminder = review_reminder(prop, today) if prop else None
        return receipt, reminder

    # -- Transitions --------------------------------------------------------

    def confirm(self, receipt: Receipt) -> Receipt:
        """pendiente_confirmacion (or borrador) -> pendiente. No financial effect."""
        if receipt.status not in (
            ReceiptStatus.PENDIENTE_CONFIRMACION,
            ReceiptStatus.BORRADOR,
        ):
            raise InvalidTransitionError(
                f"Cannot confirm receipt {receipt.id} in status '{receipt.status.value}'",
                status=receipt.status,
            )
        return receipt.model_copy(update={"status": ReceiptStatus.PENDIENTE})

    def edit(
        self,
        receipt: Receipt,
        changes: Union[ReceiptChanges, dict],
    ) -> tuple[Receipt, list[str]]:
        """
        Apply field changes and recompute the totals.

        Returns:
            (updated receipt, names of the fields that changed)

        Raises:
            InvalidTransitionError: If the receipt is paid, or the new total
                                    would fall below what was already paid
        """
        if receipt.status not in EDITABLE_STATUSES:
            raise InvalidTransitionError(
                f"Receipt {receipt.id} in status '{receipt.status.value}' cannot be edited",
                status=receipt.status,
            )

        if isinstance(changes, dict):
            changes = ReceiptChanges.model_validate(changes)
        updates = changes.model_dump(exclude_unset=True)

        data = receipt.model_dump()
        changed = [name for name, value in updates.items() if data.get(name) != value]
        data.update(updates)

        charges = [OtherCharge.model_validate(c) for c in data["other_charges"]]
        total = compute_total(
            data["rent"], data["expenses"], data["previous_balance"], charges
        )
        if total < receipt.paid_amount:
            raise InvalidTransitionError(
                f"New total {total} of receipt {receipt.id} is below the "
                f"amount already paid ({receipt.paid_amount})",
                status=receipt.status,
            )

        data["total"] = total
        data["remaining_balance"] = compute_remaining(total, receipt.paid_amount)
        if (
            data["remaining_balance"] == 0
            and receipt.paid_amount > 0
            and receipt.status in PAYABLE_STATUSES
        ):
            data["status"] = ReceiptStatus.PAGADO

        return Receipt.model_validate(data), changed

    def record_payment(
        self,
        receipt: Receipt,
        amount: Decimal,
        method: PaymentMethod,
    ) -> Receipt:
        """
        Apply an already validated payment amount.

        The receipt becomes ``pagado`` when nothing remains and
        ``pendiente`` otherwise. A partly paid ``confirmado`` must not stay
        ``confirmado``: the statement counts that status as settled.
        """
        if receipt.status not in PAYABLE_STATUSES:
            raise InvalidTransitionError(
                f"Receipt {receipt.id} in status '{receipt.status.value}' cannot receive payments",
                status=receipt.status,
            )

        paid = receipt.paid_amount + amount
        remaining = compute_remaining(receipt.total, paid)
        status = ReceiptStatus.PAGADO if remaining == 0 else ReceiptStatus.PENDIENTE

        return Receipt.model_validate({
            **receipt.model_dump(),
            "paid_amount": paid,
            "remaining_balance": remaining,
            "payment_method": method,
            "status": status,
        })
