"""Stock movement log. Append-only; written inside the caller's transaction."""
import logging
import math
from typing import List, Optional, Tuple

from sqlalchemy import func

from pharmahub.core.audit import AuditLog
from pharmahub.core.config import settings
from pharmahub.models.inventory import Inventory
from pharmahub.models.medicine import Medicine
from pharmahub.models.stock_movement import StockMovement, MovementType
from pharmahub.services.tenant_scope import TenantScope

logger = logging.getLogger(__name__)


def record_movement(
    scope: TenantScope,
    inventory_id: int,
    delta: int,
    movement_type: MovementType,
    user_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> StockMovement:
    """Add one movement row and flush. Never commits: the ledger operation that
    caused the change owns the transaction."""
    movement = StockMovement(
        tenant_id=scope.tenant_id,
        inventory_id=inventory_id,
        user_id=user_id,
        type=movement_type,
        quantity=delta,
        reason=reason,
    )
    scope.db.add(movement)
    scope.db.flush()
    AuditLog.log_stock_movement(movement_type.value, inventory_id, scope.tenant_id, delta, user_id, reason)
    return movement


def list_movements(
    scope: TenantScope,
    query: Optional[str] = None,
    page: int = 1,
    page_size: int = settings.HISTORY_PAGE_SIZE,
) -> Tuple[List[StockMovement], int]:
    """Newest first, optionally filtered by medicine name. Returns (rows, total)."""
    page = max(page, 1)
    q = scope.movements()
    if query and query.strip():
        q = (
            q.join(Inventory, StockMovement.inventory_id == Inventory.id)
            .join(Medicine, Inventory.medicine_id == Medicine.id)
            .filter(Medicine.name.ilike(f"%{query.strip()}%"))
        )
    total = q.count()
    rows = (
        q.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return rows, total


def total_pages(total: int, page_size: int = settings.HISTORY_PAGE_SIZE) -> int:
    return max(1, math.ceil(total / page_size))


def ledger_balance(scope: TenantScope, inventory_id: int) -> int:
    """Sum of all recorded deltas for one of this tenant's inventory rows."""
    result = scope.movements(StockMovement.inventory_id == inventory_id).with_entities(
        func.coalesce(func.sum(StockMovement.quantity), 0)
    ).scalar()
    return int(result or 0)
