from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class MedicineResponse(BaseModel):
    id: int
    name: str
    generic_name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None

    class Config:
        from_attributes = True


class InventoryCreate(BaseModel):
    """Add N units of a medicine. Existing rows are incremented, not replaced."""
    medicine_name: str = Field(min_length=2, max_length=255)
    generic_name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    price: Decimal = Field(ge=0)
    quantity: int = Field(ge=0)
    low_stock_threshold: int = Field(default=10, ge=0)
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None


class InventoryUpdate(BaseModel):
    """Manual edit: absolute values."""
    price: Decimal = Field(ge=0)
    quantity: int = Field(ge=0)
    low_stock_threshold: int = Field(default=10, ge=0)
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    reason: Optional[str] = Field(default=None, max_length=512)


class InventoryResponse(BaseModel):
    id: int
    tenant_id: int
    medicine: MedicineResponse
    price: Decimal
    quantity: int
    low_stock_threshold: int
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    stock_status: str
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExpiringItem(BaseModel):
    id: int
    medicine_name: str
    expiry_date: date
    days_until_expiry: int
    quantity: int


class StockMovementResponse(BaseModel):
    id: int
    inventory_id: Optional[int] = None
    user_id: Optional[int] = None
    type: str
    quantity: int
    reason: Optional[str] = None
    created_at: Optional[datetime] = None
    medicine_name: Optional[str] = None
    user_email: Optional[str] = None


class MovementPage(BaseModel):
    items: List[StockMovementResponse]
    page: int
    total: int
    total_pages: int
