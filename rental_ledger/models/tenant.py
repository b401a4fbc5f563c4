"""Tenant model."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from rental_ledger.models.base import LedgerModel, NonNegativeMoney, OptionalDate
from rental_ledger.money import ZERO


class TenantStatus(str, Enum):
    ACTIVO = "activo"
    VENCIDO = "vencido"
    PENDIENTE = "pendiente"


class Guarantor(BaseModel):
    """Contract guarantor contact details."""
    model_config = ConfigDict(str_strip_whitespace=True)
    
    name: str = ""
    email: str = ""
    phone: str = ""


class Tenant(LedgerModel):
    """
    A tenant with an optional assigned property.
    
    CRITICAL: ``balance`` is a cache. The tenant statement recomputed
    from receipts is the authority; never make financial decisions on
    this field.
    """
    
    id: int = Field(..., ge=1)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    email: str = ""
    phone: str = ""
    property_id: Optional[int] = Field(
        default=None,
        ge=1,
        description="Assigned property, if any"
    )
    property_name: str = Field(
        default="",
        alias="property",
        description="Denormalized name of the assigned property"
    )
    contract_start: OptionalDate = None
    contract_end: OptionalDate = None
    deposit: NonNegativeMoney = ZERO
    guarantor: Guarantor = Field(default_factory=Guarantor)
    balance: NonNegativeMoney = Field(
        default=ZERO,
        description="Cached receivable total (advisory)"
    )
    status: TenantStatus = TenantStatus.ACTIVO
