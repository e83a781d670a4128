"""Counter sales for the owner's pharmacy."""
from typing import List

from fastapi import APIRouter, Depends, Query

from pharmahub.api.deps import get_tenant_scope, require_owner
from pharmahub.core.permissions import Caller
from pharmahub.schemas.sale import SaleCreate, SaleResponse
from pharmahub.services import sale_service
from pharmahub.services.tenant_scope import TenantScope

router = APIRouter()


@router.post("", response_model=SaleResponse, status_code=201)
def log_sale(
    data: SaleCreate,
    scope: TenantScope = Depends(get_tenant_scope),
    caller: Caller = Depends(require_owner),
):
    """Decrements stock, writes the SALE movement and the sale record together."""
    return sale_service.log_sale(scope, caller.user_id, data.inventory_id, data.quantity, data.unit_price)


@router.get("", response_model=List[SaleResponse])
def list_sales(
    limit: int = Query(50, ge=1, le=500),
    scope: TenantScope = Depends(get_tenant_scope),
):
    return sale_service.list_sales(scope, limit)


@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(sale_id: int, scope: TenantScope = Depends(get_tenant_scope)):
    return sale_service.get_sale(scope, sale_id)
