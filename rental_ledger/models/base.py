"""
Shared model configuration and field types.

DESIGN DECISION: Persisted records use camelCase aliases so exported
backups keep the field names of the original dashboard. Python code
always uses the snake_case names.
"""

from datetime import date
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from rental_ledger.money import to_decimal


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


Money = Annotated[Decimal, BeforeValidator(to_decimal)]
NonNegativeMoney = Annotated[Decimal, BeforeValidator(to_decimal), Field(ge=0)]
PositiveMoney = Annotated[Decimal, BeforeValidator(to_decimal), Field(gt=0)]
OptionalDate = Annotated[Optional[date], BeforeValidator(_blank_to_none)]
OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


class LedgerModel(BaseModel):
    """Base for every persisted record."""
    
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )
    
    def to_record(self) -> dict:
        """Serialize to the JSON-ready camelCase form used by backups."""
        return self.model_dump(mode="json", by_alias=True)
