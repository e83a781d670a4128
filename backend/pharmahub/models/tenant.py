"""
Tenant: one pharmacy, the unit of data isolation.
Status flow: PENDING -> ACTIVE | REJECTED (admin only). Only ACTIVE tenants are public.
"""
import enum

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum, Text
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
from pharmahub.db.base import Base


class TenantStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    address = Column(Text, nullable=False)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    license_number = Column(String(128), nullable=False)
    license_url = Column(String(1024), nullable=True)  # already uploaded by the storage collaborator
    status = Column(Enum(TenantStatus, native_enum=False, length=16), nullable=False, default=TenantStatus.PENDING)
    # Tagged variant: {"kind": "structured", "days": {...}} or {"kind": "text", "text": "..."}
    opening_hours = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Tenant id={self.id} slug={self.slug} status={self.status}>"
