"""Payment and delivery request/result models."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from rental_ledger.models.base import Money
from rental_ledger.models.cash import CashMovement, DeliveryType
from rental_ledger.models.receipt import (
    PAYMENT_METHOD_PRIORITY,
    Currency,
    PaymentMethod,
    Receipt,
)
from rental_ledger.money import ZERO


class PaymentRequest(BaseModel):
    """
    An incoming payment split across the three instruments.
    
    Amounts are coerced but not range-checked here; the payment
    validator reports negative or empty payments as issues.
    """
    
    efectivo: Money = ZERO
    transferencia: Money = ZERO
    dolares: Money = ZERO
    
    def amount_for(self, method: PaymentMethod) -> Decimal:
        return getattr(self, method.value)
    
    def parts(self) -> list[tuple[PaymentMethod, Decimal]]:
        """(method, amount) in entry order, zero amounts included."""
        return [(method, self.amount_for(method)) for method in PAYMENT_METHOD_PRIORITY]
    
    @property
    def total(self) -> Decimal:
        return sum((amount for _, amount in self.parts()), ZERO)
    
    @property
    def dominant_method(self) -> PaymentMethod:
        """
        Instrument with the largest contribution.
        
        Ties go to the earlier instrument in entry order
        (efectivo, transferencia, dolares).
        """
        best_method, best_amount = PAYMENT_METHOD_PRIORITY[0], self.efectivo
        for method, amount in self.parts()[1:]:
            if amount > best_amount:
                best_method, best_amount = method, amount
        return best_method


class PaymentResult(BaseModel):
    """What applying a payment changed."""
    
    receipt: Receipt
    movements: list[CashMovement] = Field(default_factory=list)
    total_paid: Decimal
    payment_method: PaymentMethod
    tenant_balance: Optional[Decimal] = Field(
        default=None,
        description="New cached tenant balance, None if the tenant was not found"
    )
    ledger_balance: Optional[Decimal] = Field(
        default=None,
        description="Tenant balance recomputed from receipts"
    )
    
    @property
    def balance_drift(self) -> Optional[Decimal]:
        """Cache minus ledger; None when either side is unknown."""
        if self.tenant_balance is None or self.ledger_balance is None:
            return None
        return self.tenant_balance - self.ledger_balance


class DeliveryRequest(BaseModel):
    """A draw-down of the cash register."""
    
    amount: Money
    currency: Currency = Currency.ARS
    delivery_type: DeliveryType = DeliveryType.PROPIETARIO
    description: Optional[str] = None
    
    def resolved_description(self) -> str:
        if self.description and self.description.strip():
            return self.description.strip()
        return self.delivery_type.default_description
