from pydantic import BaseModel, field_validator
from typing import Any, Optional


class PropertySummary(BaseModel):
    property_id: int
    property_name: str
    purchase_price: float = 0.0
    unit_count: int = 0
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

    class Config:
        from_attributes = True

    @field_validator("purchase_price", "unit_count", mode="before")
    @classmethod
    def _null_as_zero(cls, v: Any) -> Any:
        return 0 if v is None else v
