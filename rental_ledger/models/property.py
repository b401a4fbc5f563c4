"""Property model and its enumerations."""

from datetime import date
from enum import Enum

from pydantic import Field

from rental_ledger.models.base import (
    LedgerModel,
    NonNegativeMoney,
    OptionalDate,
    OptionalText,
)
from rental_ledger.money import ZERO


class PropertyType(str, Enum):
    DEPARTAMENTO = "departamento"
    GALPON = "galpon"
    LOCAL = "local"
    OFICINA = "oficina"
    OTRO = "otro"


class PropertyStatus(str, Enum):
    """Occupancy status. Flipped by the occupancy manager only."""
    OCUPADO = "ocupado"
    DISPONIBLE = "disponible"
    MANTENIMIENTO = "mantenimiento"


class Property(LedgerModel):
    """
    A rentable unit inside a building.
    
    ``tenant_name`` is a denormalized display name kept in sync by the
    occupancy manager; the authoritative link is ``Tenant.property_id``.
    """
    
    id: int = Field(..., ge=1)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Unit name, e.g. 'Departamento A-101'"
    )
    type: PropertyType = PropertyType.DEPARTAMENTO
    building: str = Field(
        default="",
        max_length=200,
        description="Building name; the grouping key of monthly reports"
    )
    address: str = ""
    rent: NonNegativeMoney = ZERO
    expenses: NonNegativeMoney = ZERO
    next_update_date: OptionalDate = Field(
        default=None,
        description="When the rent amount should be reviewed"
    )
    tenant_name: OptionalText = Field(default=None, alias="tenant")
    status: PropertyStatus = PropertyStatus.DISPONIBLE
    contract_start: OptionalDate = None
    contract_end: OptionalDate = None
    last_updated: OptionalDate = None
    notes: str = ""
    
    def is_review_due(self, today: date) -> bool:
        """True when the rent review date has been reached."""
        return self.next_update_date is not None and today >= self.next_update_date
    
    @property
    def is_occupied(self) -> bool:
        return self.status == PropertyStatus.OCUPADO
