"""
In-Memory Storage Implementation

Single-process store backing the ledger. Records are copied on the way in
and on the way out, so a caller holding a Receipt can never change stored
state except through update_receipt.

A single re-entrant lock guards all collections; the source system has one
writer, so there is no optimistic concurrency.
"""

import threading
from collections import deque
from contextlib import AbstractContextManager
from typing import Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel

from rental_ledger.models.audit import AuditEvent
from rental_ledger.models.cash import CashMovement
from rental_ledger.models.property import Property
from rental_ledger.models.receipt import Receipt
from rental_ledger.models.tenant import Tenant
from rental_ledger.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

COLLECTIONS = ("properties", "tenants", "receipts", "cash_movements")


def _copy(record: ModelT) -> ModelT:
    return record.model_copy(deep=True)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Dict-backed store; insertion order is preserved."""

    def __init__(self):
        self._lock = threading.RLock()
        self._properties: dict[int, Property] = {}
        self._tenants: dict[int, Tenant] = {}
        self._receipts: dict[int, Receipt] = {}
        self._cash_movements: list[CashMovement] = []

    def transaction(self) -> AbstractContextManager:
        return self._lock

    def next_id(self, collection: str) -> int:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        with self._lock:
            if collection == "cash_movements":
                ids = [m.id for m in self._cash_movements]
            else:
                ids = list(getattr(self, f"_{collection}").keys())
            return max(ids, default=0) + 1

    # -- Generic helpers ----------------------------------------------------

    def _add(self, table: dict, record, kind: str):
        with self._lock:
            if record.id in table:
                raise DuplicateError(f"{kind} {record.id} already exists")
            table[record.id] = _copy(record)
            return _copy(record)

    def _update(self, table: dict, record, kind: str):
        with self._lock:
            if record.id not in table:
                raise NotFoundError(f"{kind} {record.id} not found")
            table[record.id] = _copy(record)
            return _copy(record)

    def _get(self, table: dict, record_id: int):
        with self._lock:
            record = table.get(record_id)
            return _copy(record) if record is not None else None

    # -- Properties ---------------------------------------------------------

    def add_property(self, prop: Property) -> Property:
        return self._add(self._properties, prop, "Property")

    def get_property(self, property_id: int) -> Optional[Property]:
        return self._get(self._properties, property_id)

    def update_property(self, prop: Property) -> Property:
        return self._update(self._properties, prop, "Property")

    def list_properties(self) -> list[Property]:
        with self._lock:
            return [_copy(p) for p in self._properties.values()]

    # -- Tenants ------------------------------------------------------------

    def add_tenant(self, tenant: Tenant) -> Tenant:
        return self._add(self._tenants, tenant, "Tenant")

    def get_tenant(self, tenant_id: int) -> Optional[Tenant]:
        return self._get(self._tenants, tenant_id)

    def find_tenant_by_name(self, name: str) -> Optional[Tenant]:
        with self._lock:
            for tenant in self._tenants.values():
                if tenant.name == name:
                    return _copy(tenant)
            return None

    def update_tenant(self, tenant: Tenant) -> Tenant:
        return self._update(self._tenants, tenant, "Tenant")

    def list_tenants(self) -> list[Tenant]:
        with self._lock:
            return [_copy(t) for t in self._tenants.values()]

    # -- Receipts -----------------------------------------------------------

    def add_receipt(self, receipt: Receipt) -> Receipt:
        return self._add(self._receipts, receipt, "Receipt")

    def get_receipt(self, receipt_id: int) -> Optional[Receipt]:
        return self._get(self._receipts, receipt_id)

    def update_receipt(self, receipt: Receipt) -> Receipt:
        return self._update(self._receipts, receipt, "Receipt")

    def delete_receipt(self, receipt_id: int) -> bool:
        with self._lock:
            return self._receipts.pop(receipt_id, None) is not None

    def list_receipts(self, tenant: Optional[Tenant] = None) -> list[Receipt]:
        with self._lock:
            return [
                _copy(r) for r in self._receipts.values()
                if tenant is None or r.belongs_to(tenant)
            ]

    # -- Cash movements -----------------------------------------------------

    def append_cash_movement(self, movement: CashMovement) -> CashMovement:
        with self._lock:
            if any(m.id == movement.id for m in self._cash_movements):
                raise DuplicateError(f"Cash movement {movement.id} already exists")
            # Frozen model, safe to share
            self._cash_movements.append(movement)
            return movement

    def list_cash_movements(self) -> list[CashMovement]:
        with self._lock:
            return list(self._cash_movements)

    # -- Bulk ---------------------------------------------------------------

    def replace_all(
        self,
        properties: list[Property],
        tenants: list[Tenant],
        receipts: list[Receipt],
        cash_movements: list[CashMovement],
    ) -> None:
        with self._lock:
            self._properties = {p.id: _copy(p) for p in properties}
            self._tenants = {t.id: _copy(t) for t in tenants}
            self._receipts = {r.id: _copy(r) for r in receipts}
            self._cash_movements = list(cash_movements)

    def summary(self) -> dict[str, int]:
        """Return record counts per collection."""
        with self._lock:
            return {
                "properties": len(self._properties),
                "tenants": len(self._tenants),
                "receipts": len(self._receipts),
                "cash_movements": len(self._cash_movements),
            }


class InMemoryAuditStorage(AuditStorageInterface):
    """Bounded in-memory audit trail."""

    def __init__(self, max_events: int = 10000):
        self._events: deque[AuditEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append_event(self, event: AuditEvent) -> bool:
        with self._lock:
            self._events.append(event)
        return True

    def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        with self._lock:
            return [e for e in self._events if e.correlation_id == correlation_id]

    def get_events_by_entity(self, entity_type: str, entity_id: str) -> list[AuditEvent]:
        with self._lock:
            return [
                e for e in self._events
                if e.entity_type == entity_type and e.entity_id == entity_id
            ]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        with self._lock:
            return list(reversed(self._events))[:limit]
