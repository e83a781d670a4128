from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class SaleCreate(BaseModel):
    inventory_id: int
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(gt=0)


class SaleItemResponse(BaseModel):
    id: int
    inventory_id: Optional[int] = None
    medicine_name: str
    quantity: int
    unit_price: Decimal

    class Config:
        from_attributes = True


class SaleResponse(BaseModel):
    id: int
    tenant_id: int
    total_amount: Decimal
    created_at: Optional[datetime] = None
    items: List[SaleItemResponse] = []

    class Config:
        from_attributes = True
