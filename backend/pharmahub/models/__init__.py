from pharmahub.models.tenant import Tenant, TenantStatus
from pharmahub.models.user import User, UserRole
from pharmahub.models.medicine import Medicine
from pharmahub.models.inventory import Inventory
from pharmahub.models.stock_movement import StockMovement, MovementType
from pharmahub.models.sale import Sale, SaleItem
from pharmahub.models.booking import Booking, BookingStatus

__all__ = [
    "Tenant", "TenantStatus", "User", "UserRole", "Medicine", "Inventory",
    "StockMovement", "MovementType", "Sale", "SaleItem", "Booking", "BookingStatus",
]
