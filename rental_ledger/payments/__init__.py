"""Payment application."""

from rental_ledger.payments.engine import PaymentEngine, income_description

__all__ = ["PaymentEngine", "income_description"]
