from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from pharmahub.models.tenant import TenantStatus
from pharmahub.schemas.opening_hours import OpeningHours


class PharmacyRegister(BaseModel):
    pharmacy_name: str = Field(min_length=2, max_length=255)
    email: EmailStr
    password: str
    address: str = Field(min_length=5)
    license_number: str = Field(min_length=1, max_length=128)
    license_url: Optional[str] = None


class TenantResponse(BaseModel):
    id: int
    name: str
    slug: str
    email: str
    address: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    license_number: str
    license_url: Optional[str] = None
    status: TenantStatus
    opening_hours: Optional[dict] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SettingsUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    address: Optional[str] = Field(default=None, min_length=5)
    opening_hours: Optional[OpeningHours] = None
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
