"""Multi-currency cash register."""

from rental_ledger.cash.register import CashRegister

__all__ = ["CashRegister"]
