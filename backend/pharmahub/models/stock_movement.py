"""
StockMovement: append-only audit trail of every Inventory.quantity change.

Written in the same transaction as the ledger mutation. Rows are never
updated or deleted; the listeners below refuse it at the ORM level.
tenant_id is stored on the row so history stays scoped after the
inventory row it described is deleted.
"""
import enum

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum, event
from sqlalchemy.orm import relationship, backref
from sqlalchemy.sql import func
from pharmahub.db.base import Base


class MovementType(str, enum.Enum):
    INITIAL = "INITIAL"
    RESTOCK = "RESTOCK"
    SALE = "SALE"
    ADJUSTMENT = "ADJUSTMENT"
    CANCELLATION = "CANCELLATION"


class StockMovement(Base):
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    inventory_id = Column(Integer, ForeignKey("inventory.id", ondelete="SET NULL"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)  # NULL for system/seed
    type = Column(Enum(MovementType, native_enum=False, length=16), nullable=False)
    quantity = Column(Integer, nullable=False)  # signed delta
    reason = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    inventory = relationship("Inventory", backref=backref("movements", passive_deletes=True))
    user = relationship("User")


@event.listens_for(StockMovement, "before_update")
def _refuse_update(mapper, connection, target):
    raise ValueError(f"StockMovement {target.id} is immutable")


@event.listens_for(StockMovement, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise ValueError(f"StockMovement {target.id} cannot be deleted")
