"""Sale recording. Stock decrement, movement and sale record commit together or not at all."""
import logging
from decimal import Decimal
from typing import Any, List, Optional

from pharmahub.core.audit import AuditLog
from pharmahub.core.exceptions import InsufficientStock, ValidationError
from pharmahub.db.session import atomic
from pharmahub.models.sale import Sale, SaleItem
from pharmahub.models.stock_movement import MovementType
from pharmahub.services.inventory_service import CENT, decrement_atomic, to_price
from pharmahub.services.tenant_scope import TenantScope

logger = logging.getLogger(__name__)


def log_sale(
    scope: TenantScope,
    caller_id: Optional[int],
    inventory_id: int,
    quantity: int,
    unit_price: Any,
) -> Sale:
    """
    Record a counter sale of one inventory item.

    Steps, all in one transaction:
    1. Load the row through the tenant scope (NotFound if not ours)
    2. Early stock check for a clear error message
    3. Conditional decrement; its row count is authoritative
    4. Sale + SaleItem with the supplied unit price as a snapshot
    5. SALE movement (written by the decrement)

    total_amount = quantity * unit_price, computed once and stored.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("Quantity must be at least 1")
    unit_price = to_price(unit_price)
    if unit_price <= 0:
        raise ValidationError("Price must be positive")

    total_amount = (Decimal(quantity) * unit_price).quantize(CENT)

    with atomic(scope.db):
        inventory = scope.get_inventory(inventory_id)
        if inventory.quantity < quantity:
            raise InsufficientStock()

        inventory = decrement_atomic(
            scope,
            quantity,
            inventory_id=inventory.id,
            caller_id=caller_id,
            movement_type=MovementType.SALE,
            reason="Counter sale",
        )

        sale = Sale(
            tenant_id=scope.tenant_id,
            user_id=caller_id,
            total_amount=total_amount,
            items=[
                SaleItem(
                    inventory_id=inventory.id,
                    medicine_name=inventory.medicine.name,
                    quantity=quantity,
                    unit_price=unit_price,
                )
            ],
        )
        scope.db.add(sale)
        scope.db.flush()

    logger.info(f"[Sale] Tenant {scope.tenant_id} sold {quantity} x item {inventory_id} for {total_amount}")
    AuditLog.log_action("create", "sale", sale.id, caller_id, scope.tenant_id,
                        changes={"inventory_id": inventory_id, "quantity": quantity, "total": str(total_amount)})
    return sale


def list_sales(scope: TenantScope, limit: int = 50) -> List[Sale]:
    return scope.sales().order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).all()


def get_sale(scope: TenantScope, sale_id: int) -> Sale:
    return scope.get_sale(sale_id)
