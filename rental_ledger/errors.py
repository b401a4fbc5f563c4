"""Root exception for the rental ledger."""


class LedgerError(Exception):
    """Base exception for all rental ledger errors."""
    pass
