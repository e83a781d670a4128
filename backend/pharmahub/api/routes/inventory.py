"""Owner inventory: stock list, add/restock, manual edit, delete, alerts, history."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from pharmahub.api.deps import get_tenant_scope, require_owner
from pharmahub.core.config import settings
from pharmahub.core.permissions import Caller
from pharmahub.schemas.inventory import (
    ExpiringItem, InventoryCreate, InventoryResponse, InventoryUpdate, MovementPage,
)
from pharmahub.services import inventory_service, movement_service
from pharmahub.services.tenant_scope import TenantScope

router = APIRouter()


@router.get("", response_model=List[InventoryResponse])
def list_inventory(
    search: Optional[str] = Query(None),
    scope: TenantScope = Depends(get_tenant_scope),
):
    return inventory_service.list_inventory(scope, search)


@router.post("", response_model=InventoryResponse, status_code=201)
def add_inventory(
    data: InventoryCreate,
    scope: TenantScope = Depends(get_tenant_scope),
    caller: Caller = Depends(require_owner),
):
    """Add N units. Creates the catalog entry and the stock row when missing."""
    return inventory_service.add_stock_by_name(
        scope,
        caller_id=caller.user_id,
        medicine_name=data.medicine_name,
        price=data.price,
        quantity=data.quantity,
        low_stock_threshold=data.low_stock_threshold,
        batch_number=data.batch_number,
        expiry_date=data.expiry_date,
        generic_name=data.generic_name,
        category=data.category,
        description=data.description,
    )


@router.get("/low-stock", response_model=List[InventoryResponse])
def low_stock(scope: TenantScope = Depends(get_tenant_scope)):
    return inventory_service.get_low_stock(scope)


@router.get("/expiring", response_model=List[ExpiringItem])
def expiring(
    days: int = Query(settings.EXPIRY_ALERT_DAYS, ge=1, le=365),
    scope: TenantScope = Depends(get_tenant_scope),
):
    return inventory_service.get_expiring(scope, days)


@router.get("/history", response_model=MovementPage)
def history(
    page: int = Query(1, ge=1),
    query: Optional[str] = Query(None),
    scope: TenantScope = Depends(get_tenant_scope),
):
    """Audit trail of every stock change, newest first."""
    rows, total = movement_service.list_movements(scope, query=query, page=page)
    return {
        "items": [
            {
                "id": m.id,
                "inventory_id": m.inventory_id,
                "user_id": m.user_id,
                "type": m.type.value,
                "quantity": m.quantity,
                "reason": m.reason,
                "created_at": m.created_at,
                "medicine_name": m.inventory.medicine.name if m.inventory else None,
                "user_email": m.user.email if m.user else None,
            }
            for m in rows
        ],
        "page": page,
        "total": total,
        "total_pages": movement_service.total_pages(total),
    }


@router.put("/{item_id}", response_model=InventoryResponse)
def update_inventory(
    item_id: int,
    data: InventoryUpdate,
    scope: TenantScope = Depends(get_tenant_scope),
    caller: Caller = Depends(require_owner),
):
    return inventory_service.set_stock(
        scope,
        caller_id=caller.user_id,
        inventory_id=item_id,
        price=data.price,
        quantity=data.quantity,
        low_stock_threshold=data.low_stock_threshold,
        batch_number=data.batch_number,
        expiry_date=data.expiry_date,
        reason=data.reason,
    )


@router.delete("/{item_id}", status_code=204)
def delete_inventory(
    item_id: int,
    scope: TenantScope = Depends(get_tenant_scope),
    caller: Caller = Depends(require_owner),
):
    inventory_service.delete_item(scope, caller.user_id, item_id)
