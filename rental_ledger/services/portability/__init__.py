"""JSON backup export and import."""

from rental_ledger.services.portability.backup import (
    BackupReadError,
    BackupService,
    BackupValidationError,
    PortabilityError,
)

__all__ = [
    "BackupReadError",
    "BackupService",
    "BackupValidationError",
    "PortabilityError",
]
