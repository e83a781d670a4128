"""Owner dashboard counters."""
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from pharmahub.api.deps import get_tenant_scope
from pharmahub.schemas.sale import SaleResponse
from pharmahub.services import dashboard_service
from pharmahub.services.tenant_scope import TenantScope

router = APIRouter()


class DashboardResponse(BaseModel):
    total_products: int
    low_stock: int
    out_of_stock: int
    in_stock: int
    sales_today: Decimal
    pending_bookings: int
    recent_sales: List[SaleResponse]


@router.get("", response_model=DashboardResponse)
def dashboard(scope: TenantScope = Depends(get_tenant_scope)):
    return dashboard_service.get_dashboard_stats(scope)
