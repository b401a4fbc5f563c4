"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger engines independent of where records live
2. Use in-memory storage for tests and single-process use
3. Replace all state atomically on import

The interface is intentionally simple - we're not building a full ORM.
Just the operations the ledger needs.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional
from uuid import UUID

from rental_ledger.errors import LedgerError
from rental_ledger.models.audit import AuditEvent
from rental_ledger.models.cash import CashMovement
from rental_ledger.models.property import Property
from rental_ledger.models.receipt import Receipt
from rental_ledger.models.tenant import Tenant


class LedgerStorageInterface(ABC):
    """
    Abstract interface for the ledger's record store.

    Receipts and cash movements are owned by the ledger. Properties and
    tenants are owned by the CRUD collaborator; the ledger writes to them
    only to refresh Tenant.balance and to flip property occupancy.
    """

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """
        Serialize a read-validate-write sequence.

        Payments, deliveries, occupancy changes and imports run inside it.
        """
        pass

    @abstractmethod
    def next_id(self, collection: str) -> int:
        """
        Allocate the next identifier for a collection.

        Args:
            collection: One of 'properties', 'tenants', 'receipts', 'cash_movements'
        """
        pass

    # -- Properties ---------------------------------------------------------

    @abstractmethod
    def add_property(self, prop: Property) -> Property:
        """
        Raises:
            DuplicateError: If a property with the same id exists
        """
        pass

    @abstractmethod
    def get_property(self, property_id: int) -> Optional[Property]:
        pass

    @abstractmethod
    def update_property(self, prop: Property) -> Property:
        """
        Raises:
            NotFoundError: If the property doesn't exist
        """
        pass

    @abstractmethod
    def list_properties(self) -> list[Property]:
        """All properties in insertion order."""
        pass

    # -- Tenants ------------------------------------------------------------

    @abstractmethod
    def add_tenant(self, tenant: Tenant) -> Tenant:
        pass

    @abstractmethod
    def get_tenant(self, tenant_id: int) -> Optional[Tenant]:
        pass

    @abstractmethod
    def find_tenant_by_name(self, name: str) -> Optional[Tenant]:
        pass

    @abstractmethod
    def update_tenant(self, tenant: Tenant) -> Tenant:
        pass

    @abstractmethod
    def list_tenants(self) -> list[Tenant]:
        pass

    # -- Receipts -----------------------------------------------------------

    @abstractmethod
    def add_receipt(self, receipt: Receipt) -> Receipt:
        pass

    @abstractmethod
    def get_receipt(self, receipt_id: int) -> Optional[Receipt]:
        pass

    @abstractmethod
    def update_receipt(self, receipt: Receipt) -> Receipt:
        pass

    @abstractmethod
    def delete_receipt(self, receipt_id: int) -> bool:
        """
        Returns:
            True if a receipt was removed
        """
        pass

    @abstractmethod
    def list_receipts(self, tenant: Optional[Tenant] = None) -> list[Receipt]:
        """
        List receipts, optionally only those belonging to ``tenant``.
        """
        pass

    # -- Cash movements -----------------------------------------------------

    @abstractmethod
    def append_cash_movement(self, movement: CashMovement) -> CashMovement:
        """Movements are append-only; there is no update or delete."""
        pass

    @abstractmethod
    def list_cash_movements(self) -> list[CashMovement]:
        """All movements in the order they were appended."""
        pass

    # -- Bulk ---------------------------------------------------------------

    @abstractmethod
    def replace_all(
        self,
        properties: list[Property],
        tenants: list[Tenant],
        receipts: list[Receipt],
        cash_movements: list[CashMovement],
    ) -> None:
        """
        Replace every collection at once. There is no merge.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Related events in chronological order."""
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Most recent events, newest first."""
        pass


class StorageError(LedgerError):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
