"""
Cash Register

A derived, per-currency accumulator over the append-only movement log:

    balance(currency) = Σ income(currency) - Σ delivery(currency)

Nothing is cached; every figure is replayed from the movements, so the
balance can never disagree with the history.

Deliveries (draw-downs) are validated against the balance of their
currency before anything is appended; a delivery can never drive a
balance negative.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

import structlog

from rental_ledger.audit import AuditLogger, create_correlation_id
from rental_ledger.models.cash import CashMovement, DeliveryType, MovementType
from rental_ledger.models.payment import DeliveryRequest
from rental_ledger.models.receipt import Currency, PaymentMethod
from rental_ledger.money import ZERO
from rental_ledger.services.storage import LedgerStorageInterface
from rental_ledger.validation import DeliveryRejectedError, DeliveryValidator

logger = structlog.get_logger(__name__)


def _sum(movements: Iterable[CashMovement]) -> Decimal:
    return sum((m.signed_amount for m in movements), ZERO)


class CashRegister:
    """Balances, filtered views and deliveries over the movement log."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[DeliveryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or DeliveryValidator()
        self._audit_logger = audit_logger

    def movements(self) -> list[CashMovement]:
        return self._storage.list_cash_movements()

    # -- Balances -----------------------------------------------------------

    def balance(self, currency: Currency) -> Decimal:
        return _sum(m for m in self.movements() if m.currency == currency)

    def balances(self) -> dict[Currency, Decimal]:
        """Balance of every currency, zero included."""
        totals = {currency: ZERO for currency in Currency}
        for movement in self.movements():
            totals[movement.currency] += movement.signed_amount
        return totals

    def balance_by_method(self, currency: Currency, method: PaymentMethod) -> Decimal:
        """
        Income minus deliveries restricted to movements tagged with ``method``.

        Deliveries carry no method, so this is the gross income received
        through one instrument.
        """
        return _sum(
            m for m in self.movements()
            if m.currency == currency and m.payment_method == method
        )

    def transfer_in_transit(self) -> Decimal:
        """Local-currency money received by bank transfer."""
        return self.balance_by_method(Currency.ARS, PaymentMethod.TRANSFERENCIA)

    def today_income(self, today: Optional[date] = None) -> dict[Currency, Decimal]:
        """Income received on ``today`` per currency; deliveries are ignored."""
        today = today or date.today()
        totals = {currency: ZERO for currency in Currency}
        for movement in self.movements():
            if movement.type == MovementType.INCOME and movement.date == today:
                totals[movement.currency] += movement.amount
        return totals

    def filter(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        movement_type: Optional[MovementType] = None,
        payment_method: Optional[PaymentMethod] = None,
        currency: Optional[Currency] = None,
    ) -> list[CashMovement]:
        """Movements matching every given criterion; date bounds are inclusive."""
        result = []
        for movement in self.movements():
            if date_from is not None and movement.date < date_from:
                continue
            if date_to is not None and movement.date > date_to:
                continue
            if movement_type is not None and movement.type != movement_type:
                continue
            if payment_method is not None and movement.payment_method != payment_method:
                continue
            if currency is not None and movement.currency != currency:
                continue
            result.append(movement)
        return result

    # -- Deliveries ---------------------------------------------------------

    def deliver(
        self,
        request: DeliveryRequest,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> CashMovement:
        """
        Draw money out of the register.

        Raises:
            DeliveryRejectedError: If the amount is not positive or exceeds
                                   the balance of its currency
        """
        today = today or date.today()
        correlation_id = correlation_id or create_correlation_id()

        with self._storage.transaction():
            available = self.balance(request.currency)
            validation = self._validator.validate(request, available)
            if validation.has_errors:
                logger.info(
                    "delivery_rejected",
                    currency=request.currency.value,
                    amount=str(request.amount),
                    available=str(available),
                )
                if self._audit_logger:
                    self._audit_logger.log_delivery_rejected(
                        currency=request.currency.value,
                        issues=[issue.model_dump(mode="json") for issue in validation.issues],
                        correlation_id=correlation_id,
                    )
                raise DeliveryRejectedError(validation)

            movement = self._storage.append_cash_movement(CashMovement(
                id=self._storage.next_id("cash_movements"),
                type=MovementType.DELIVERY,
                description=request.resolved_description(),
                amount=request.amount,
                currency=request.currency,
                date=today,
                delivery_type=request.delivery_type,
            ))

        logger.info(
            "cash_delivered",
            movement_id=movement.id,
            amount=str(movement.amount),
            currency=movement.currency.value,
            delivery_type=request.delivery_type.value,
        )
        if self._audit_logger:
            self._audit_logger.log_cash_delivered(
                movement_id=movement.id,
                amount=movement.amount,
                currency=movement.currency.value,
                delivery_type=request.delivery_type.value,
                correlation_id=correlation_id,
            )
        return movement

    def deliver_all(
        self,
        currency: Currency,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> CashMovement:
        """
        Deliver the whole balance of ``currency`` to the owner.

        Raises:
            DeliveryRejectedError: If there is nothing to deliver
        """
        with self._storage.transaction():
            return self.deliver(
                DeliveryRequest(
                    amount=self.balance(currency),
                    currency=currency,
                    delivery_type=DeliveryType.PROPIETARIO,
                    description=f"Entrega total al propietario - {currency.value}",
                ),
                today=today,
                correlation_id=correlation_id,
            )
