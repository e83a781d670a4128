"""
TenantScope: the single chokepoint for tenant-owned data.

A scope is built once per request from the authenticated caller's tenant id.
Every query it hands out already carries the tenant predicate, and any
criteria the caller adds are ANDed on top, so a caller-supplied tenant_id
can only narrow the result (to nothing), never widen it.

Rows owned by another tenant are reported exactly like missing rows.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Query, Session

from pharmahub.core.audit import AuditLog
from pharmahub.core.exceptions import NotFound, Unauthorized
from pharmahub.core.permissions import Caller
from pharmahub.models.booking import Booking
from pharmahub.models.inventory import Inventory
from pharmahub.models.sale import Sale
from pharmahub.models.stock_movement import StockMovement
from pharmahub.models.tenant import Tenant

logger = logging.getLogger(__name__)


class TenantScope:
    def __init__(self, db: Session, tenant_id: int):
        if tenant_id is None:
            raise Unauthorized("Tenant scope requires a tenant id")
        self._db = db
        self._tenant_id = int(tenant_id)

    @classmethod
    def for_caller(cls, db: Session, caller: Caller) -> "TenantScope":
        """Scope for a pharmacy owner; the tenant comes from the caller, not the request."""
        if not caller.is_owner:
            AuditLog.log_access_denied("scope", "tenant", None, caller.user_id, "caller is not a tenant owner")
            raise Unauthorized()
        return cls(db, caller.tenant_id)

    @property
    def db(self) -> Session:
        return self._db

    @property
    def tenant_id(self) -> int:
        return self._tenant_id

    def __repr__(self):
        return f"<TenantScope tenant_id={self._tenant_id}>"

    # Tenant (self)

    def tenant(self) -> Tenant:
        tenant = self._db.query(Tenant).filter(Tenant.id == self._tenant_id).first()
        if not tenant:
            raise NotFound("Tenant")
        return tenant

    # Inventory

    def inventory(self, *criteria) -> Query:
        return self._db.query(Inventory).filter(Inventory.tenant_id == self._tenant_id, *criteria)

    def get_inventory(self, inventory_id: int) -> Inventory:
        item = self.inventory(Inventory.id == inventory_id).first()
        if not item:
            self._miss("inventory", inventory_id)
        return item

    def find_inventory_by_medicine(self, medicine_id: int) -> Optional[Inventory]:
        return self.inventory(Inventory.medicine_id == medicine_id).first()

    def get_inventory_by_medicine(self, medicine_id: int) -> Inventory:
        item = self.find_inventory_by_medicine(medicine_id)
        if not item:
            self._miss("inventory", None, f"medicine_id={medicine_id}")
        return item

    def update_inventory(self, inventory_id: int, values: Dict[Any, Any], *criteria) -> int:
        """
        Conditional bulk UPDATE on one of this tenant's rows.

        Returns the affected row count; 0 means the row is missing, belongs
        to another tenant, or failed one of the extra criteria.
        """
        return (
            self.inventory(Inventory.id == inventory_id, *criteria)
            .update(values, synchronize_session=False)
        )

    def delete_inventory(self, inventory_id: int) -> int:
        return self.inventory(Inventory.id == inventory_id).delete(synchronize_session=False)

    # Sales

    def sales(self, *criteria) -> Query:
        return self._db.query(Sale).filter(Sale.tenant_id == self._tenant_id, *criteria)

    def get_sale(self, sale_id: int) -> Sale:
        sale = self.sales(Sale.id == sale_id).first()
        if not sale:
            self._miss("sale", sale_id)
        return sale

    # Stock movements (read-only; writes go through movement_service)

    def movements(self, *criteria) -> Query:
        return self._db.query(StockMovement).filter(StockMovement.tenant_id == self._tenant_id, *criteria)

    # Bookings

    def bookings(self, *criteria) -> Query:
        return self._db.query(Booking).filter(Booking.tenant_id == self._tenant_id, *criteria)

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.bookings(Booking.id == booking_id).first()
        if not booking:
            self._miss("booking", booking_id)
        return booking

    def _miss(self, resource: str, resource_id, detail: str = ""):
        logger.info(f"[TenantScope] {resource} {resource_id or detail} not visible to tenant {self._tenant_id}")
        raise NotFound(resource.capitalize())
