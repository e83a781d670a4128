"""Pick-up bookings: patients reserve, owners fulfil."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmahub.api.deps import get_db, get_tenant_scope, require_owner, require_patient
from pharmahub.core.permissions import Caller
from pharmahub.models.booking import BookingStatus
from pharmahub.schemas.booking import BookingCreate, BookingResponse, BookingStatusUpdate
from pharmahub.services import booking_service
from pharmahub.services.tenant_scope import TenantScope

router = APIRouter()


# ==============================================================================
# PATIENT
# ==============================================================================

@router.post("", response_model=BookingResponse, status_code=201)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    patient: Caller = Depends(require_patient),
):
    """Reserve stock for pickup. Does not decrement inventory."""
    return booking_service.create_booking(db, patient, data.inventory_id, data.quantity, data.tenant_id)


@router.get("/mine", response_model=List[BookingResponse])
def my_bookings(db: Session = Depends(get_db), patient: Caller = Depends(require_patient)):
    return booking_service.list_patient_bookings(db, patient)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    patient: Caller = Depends(require_patient),
):
    return booking_service.cancel_booking(db, patient, booking_id)


# ==============================================================================
# PHARMACY OWNER
# ==============================================================================

@router.get("", response_model=List[BookingResponse])
def pharmacy_bookings(
    status: Optional[BookingStatus] = Query(None),
    scope: TenantScope = Depends(get_tenant_scope),
):
    return booking_service.list_pharmacy_bookings(scope, status)


@router.get("/code/{pickup_code}", response_model=BookingResponse)
def booking_by_code(pickup_code: str, scope: TenantScope = Depends(get_tenant_scope)):
    return booking_service.find_by_pickup_code(scope, pickup_code)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
def update_status(
    booking_id: int,
    data: BookingStatusUpdate,
    db: Session = Depends(get_db),
    owner: Caller = Depends(require_owner),
):
    return booking_service.update_booking_status(db, owner, booking_id, data.status)
