"""Owner pharmacy settings: name, address, opening hours, location."""
import logging

from fastapi import APIRouter, Depends

from pharmahub.api.deps import get_tenant_scope, require_owner
from pharmahub.core.permissions import Caller
from pharmahub.schemas.tenant import SettingsUpdate, TenantResponse
from pharmahub.services import tenant_service
from pharmahub.services.tenant_scope import TenantScope

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=TenantResponse)
def get_settings(scope: TenantScope = Depends(get_tenant_scope)):
    return scope.tenant()


@router.patch("", response_model=TenantResponse)
def update_settings(
    data: SettingsUpdate,
    scope: TenantScope = Depends(get_tenant_scope),
    caller: Caller = Depends(require_owner),
):
    logger.info(f"[SETTINGS] Update request from user {caller.user_id}: {sorted(data.model_dump(exclude_unset=True))}")
    return tenant_service.update_settings(
        scope,
        caller.user_id,
        name=data.name,
        address=data.address,
        opening_hours=data.opening_hours.model_dump() if data.opening_hours is not None else None,
        lat=data.lat,
        lng=data.lng,
    )
