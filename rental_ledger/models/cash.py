"""
Cash Movement Model

DESIGN DECISION: Movements are frozen. A wrong movement is corrected by
appending another one, never by editing, so the register balance can
always be replayed from the full history.
"""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from rental_ledger.models.base import LedgerModel, OptionalText, PositiveMoney
from rental_ledger.models.receipt import Currency, PaymentMethod


class MovementType(str, Enum):
    INCOME = "income"
    DELIVERY = "delivery"


class DeliveryType(str, Enum):
    """Who a draw-down goes to."""
    PROPIETARIO = "propietario"
    COMISION = "comision"
    GASTO = "gasto"

    @property
    def default_description(self) -> str:
        return _DELIVERY_DESCRIPTIONS[self]


_DELIVERY_DESCRIPTIONS = {
    DeliveryType.PROPIETARIO: "Entrega al propietario",
    DeliveryType.COMISION: "Pago de comisión",
    DeliveryType.GASTO: "Pago de gasto",
}


class CashMovement(LedgerModel):
    """An immutable income or delivery event of the cash register."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )

    id: int = Field(..., ge=1)
    type: MovementType
    description: str = Field(..., min_length=1, max_length=500)
    amount: PositiveMoney
    currency: Currency
    date: dt.date

    # Income only
    tenant_name: OptionalText = Field(default=None, alias="tenant")
    property_name: OptionalText = Field(default=None, alias="property")
    payment_method: Optional[PaymentMethod] = None

    # Delivery only
    delivery_type: Optional[DeliveryType] = None

    @model_validator(mode='after')
    def validate_tags(self) -> 'CashMovement':
        """Income carries a payment method, delivery carries a delivery type."""
        if self.type == MovementType.INCOME and self.delivery_type is not None:
            raise ValueError("Income movements cannot have a delivery type")
        if self.type == MovementType.DELIVERY and self.payment_method is not None:
            raise ValueError("Delivery movements cannot have a payment method")
        if self.payment_method is not None and self.payment_method.currency != self.currency:
            raise ValueError(
                f"Payment method {self.payment_method.value} settles in "
                f"{self.payment_method.currency.value}, not {self.currency.value}"
            )
        return self

    @property
    def signed_amount(self):
        """Amount as it affects the register balance."""
        return self.amount if self.type == MovementType.INCOME else -self.amount
