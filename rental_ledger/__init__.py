"""
Rental Ledger - Source Package

Receivables engine for a single landlord's rental portfolio: receipts,
payments, a two-currency cash register, tenant statements and monthly
reports.

DESIGN PRINCIPLES:
1. Balances are recomputed from receipts, never trusted from a cache
2. Reject early, mutate nothing on rejection
3. Money is Decimal, never float
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Rental Ledger Team"
