from sqlalchemy import (
    Column, Integer, String, ForeignKey, Numeric, Date, DateTime,
    CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pharmahub.db.base import Base


class Inventory(Base):
    """
    Per-tenant stock row: one per (tenant_id, medicine_id).

    quantity must never go negative. The CHECK constraint is the last line;
    every writer goes through the conditional updates in inventory_service.
    """
    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_id = Column(Integer, ForeignKey("medicines.id", ondelete="RESTRICT"), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=10)
    batch_number = Column(String(128), nullable=True)
    expiry_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("tenant_id", "medicine_id", name="uq_inventory_tenant_medicine"),
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
        CheckConstraint("price >= 0", name="ck_inventory_price_non_negative"),
        CheckConstraint("low_stock_threshold >= 0", name="ck_inventory_threshold_non_negative"),
    )

    tenant = relationship("Tenant", backref="inventories")
    medicine = relationship("Medicine", backref="inventories", lazy="joined")

    @property
    def stock_status(self) -> str:
        if self.quantity <= 0:
            return "Out of Stock"
        if self.quantity < self.low_stock_threshold:
            return "Low Stock"
        return "In Stock"
