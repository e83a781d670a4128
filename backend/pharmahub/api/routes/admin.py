"""Admin: pharmacy approval queue."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pharmahub.api.deps import get_db, require_admin
from pharmahub.core.permissions import Caller
from pharmahub.schemas.tenant import TenantResponse
from pharmahub.services import tenant_service

router = APIRouter()


@router.get("/pharmacies/pending", response_model=List[TenantResponse])
def pending(db: Session = Depends(get_db), admin: Caller = Depends(require_admin)):
    return tenant_service.list_pending_tenants(db, admin)


@router.post("/pharmacies/{tenant_id}/approve", response_model=TenantResponse)
def approve(tenant_id: int, db: Session = Depends(get_db), admin: Caller = Depends(require_admin)):
    return tenant_service.approve_tenant(db, admin, tenant_id)


@router.post("/pharmacies/{tenant_id}/reject", response_model=TenantResponse)
def reject(tenant_id: int, db: Session = Depends(get_db), admin: Caller = Depends(require_admin)):
    return tenant_service.reject_tenant(db, admin, tenant_id)
