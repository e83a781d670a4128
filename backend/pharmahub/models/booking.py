"""
Booking: patient-facing soft reservation. Never decrements stock.

Status flow:
    PENDING -> READY -> COMPLETED
    PENDING | READY -> CANCELLED
COMPLETED and CANCELLED are terminal.
"""
import enum

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum, CheckConstraint
from sqlalchemy.orm import relationship, backref
from sqlalchemy.sql import func
from pharmahub.db.base import Base


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    inventory_id = Column(Integer, ForeignKey("inventory.id", ondelete="SET NULL"), nullable=True, index=True)  # NULL once the item is deleted
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    pickup_code = Column(String(16), unique=True, nullable=False, index=True)
    status = Column(Enum(BookingStatus, native_enum=False, length=16), nullable=False, default=BookingStatus.PENDING)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_bookings_quantity_positive"),
    )

    inventory = relationship("Inventory", backref=backref("bookings", passive_deletes=True))
    user = relationship("User")
