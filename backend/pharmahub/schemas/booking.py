from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from pharmahub.models.booking import BookingStatus


class BookingCreate(BaseModel):
    inventory_id: int
    quantity: int = Field(ge=1)
    tenant_id: int


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingResponse(BaseModel):
    id: int
    inventory_id: Optional[int] = None
    tenant_id: int
    user_id: int
    quantity: int
    pickup_code: str
    status: BookingStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
