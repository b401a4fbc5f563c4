"""
Property Occupancy

Assigning a tenant to a property flips the property to ``ocupado`` and
frees whatever the tenant occupied before. These are the only Property
writes the ledger performs.
"""

from typing import Optional
from uuid import UUID

import structlog

from rental_ledger.audit import AuditLogger
from rental_ledger.errors import LedgerError
from rental_ledger.models.property import PropertyStatus
from rental_ledger.models.tenant import Tenant
from rental_ledger.services.storage import LedgerStorageInterface, NotFoundError

logger = structlog.get_logger(__name__)


class OccupancyError(LedgerError):
    """The property cannot take the tenant."""
    pass


class OccupancyManager:
    """Keeps Tenant.property_id and Property.status in step."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    def _free(self, property_id: int, correlation_id: Optional[UUID]) -> None:
        prop = self._storage.get_property(property_id)
        if prop is None:
            # Dangling reference; nothing to free
            logger.warning("occupancy_missing_property", property_id=property_id)
            return
        self._storage.update_property(prop.model_copy(update={
            "status": PropertyStatus.DISPONIBLE,
            "tenant_name": None,
        }))
        if self._audit_logger:
            self._audit_logger.log_occupancy_changed(
                property_id=property_id,
                status=PropertyStatus.DISPONIBLE.value,
                tenant=None,
                correlation_id=correlation_id,
            )

    def assign(
        self,
        tenant_id: int,
        property_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> Tenant:
        """
        Move a tenant into a property.

        Only an available property, or the one the tenant already holds,
        can be assigned.

        Raises:
            NotFoundError: If the tenant or the property doesn't exist
            OccupancyError: If the property is occupied or under maintenance
        """
        with self._storage.transaction():
            tenant = self._storage.get_tenant(tenant_id)
            if tenant is None:
                raise NotFoundError(f"Tenant {tenant_id} not found")
            prop = self._storage.get_property(property_id)
            if prop is None:
                raise NotFoundError(f"Property {property_id} not found")

            if tenant.property_id != property_id and prop.status != PropertyStatus.DISPONIBLE:
                raise OccupancyError(
                    f"Property {prop.name} is {prop.status.value}"
                    + (f" by {prop.tenant_name}" if prop.tenant_name else "")
                )

            if tenant.property_id is not None and tenant.property_id != property_id:
                self._free(tenant.property_id, correlation_id)

            self._storage.update_property(prop.model_copy(update={
                "status": PropertyStatus.OCUPADO,
                "tenant_name": tenant.name,
            }))
            tenant = self._storage.update_tenant(tenant.model_copy(update={
                "property_id": property_id,
                "property_name": prop.name,
            }))

        logger.info(
            "tenant_assigned",
            tenant_id=tenant_id,
            property_id=property_id,
        )
        if self._audit_logger:
            self._audit_logger.log_occupancy_changed(
                property_id=property_id,
                status=PropertyStatus.OCUPADO.value,
                tenant=tenant.name,
                correlation_id=correlation_id,
            )
        return tenant

    def release(
        self,
        tenant_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> Tenant:
        """Free the tenant's property. A tenant without one is returned unchanged."""
        with self._storage.transaction():
            tenant = self._storage.get_tenant(tenant_id)
            if tenant is None:
                raise NotFoundError(f"Tenant {tenant_id} not found")
            if tenant.property_id is None:
                return tenant

            self._free(tenant.property_id, correlation_id)
            tenant = self._storage.update_tenant(tenant.model_copy(update={
                "property_id": None,
                "property_name": "",
            }))

        logger.info("tenant_released", tenant_id=tenant_id)
        return tenant
