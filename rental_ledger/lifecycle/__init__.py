"""Receipt lifecycle and property occupancy."""

from rental_ledger.lifecycle.occupancy import OccupancyError, OccupancyManager
from rental_ledger.lifecycle.receipts import (
    InvalidTransitionError,
    ReceiptStateMachine,
    review_reminder,
)

__all__ = [
    "InvalidTransitionError",
    "OccupancyError",
    "OccupancyManager",
    "ReceiptStateMachine",
    "review_reminder",
]
