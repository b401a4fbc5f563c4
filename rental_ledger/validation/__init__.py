"""Request validation package."""

from rental_ledger.validation.validator import (
    DeliveryRejectedError,
    DeliveryValidator,
    PaymentRejectedError,
    PaymentValidator,
    ValidationFailedError,
)

__all__ = [
    "DeliveryRejectedError",
    "DeliveryValidator",
    "PaymentRejectedError",
    "PaymentValidator",
    "ValidationFailedError",
]
