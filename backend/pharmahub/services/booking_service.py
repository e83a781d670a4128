"""
Booking workflow: patient pick-up reservations.

A booking is a reservation of intent: creating one checks that enough stock
exists right now but does NOT decrement Inventory.quantity. Stock is only
debited when the pharmacy logs a sale. Several patients can therefore book
more than is physically on the shelf; that is accepted.

Transitions (anything else is InvalidTransition):
    PENDING -> READY        owner
    READY   -> COMPLETED    owner
    PENDING -> CANCELLED    owner or patient
    READY   -> CANCELLED    owner or patient
PENDING -> COMPLETED is not allowed: an order must be marked ready first.
"""
import logging
import secrets
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pharmahub.core.audit import AuditLog
from pharmahub.core.config import settings
from pharmahub.core.exceptions import (
    InsufficientStock, InvalidTransition, NotFound, StorageError, Unauthorized, ValidationError,
)
from pharmahub.core.permissions import Caller, require_role
from pharmahub.db.session import atomic
from pharmahub.models.booking import Booking, BookingStatus
from pharmahub.models.inventory import Inventory
from pharmahub.models.tenant import Tenant, TenantStatus
from pharmahub.models.user import UserRole
from pharmahub.services.tenant_scope import TenantScope

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.READY, BookingStatus.CANCELLED},
    BookingStatus.READY: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

# No 0/O or 1/I: codes are read out loud at the counter
PICKUP_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
_CODE_ATTEMPTS = 5


def generate_pickup_code(length: int = settings.PICKUP_CODE_LENGTH) -> str:
    return "".join(secrets.choice(PICKUP_ALPHABET) for _ in range(length))


def normalize_pickup_code(code: str) -> str:
    return "".join((code or "").split()).upper()


def can_transition(current: BookingStatus, new: BookingStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())


def create_booking(db: Session, patient: Caller, inventory_id: int, quantity: int, tenant_id: int) -> Booking:
    """Reserve `quantity` units at a pharmacy for in-person pickup."""
    require_role(patient, UserRole.PATIENT)
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("Quantity must be at least 1")

    # Cross-tenant read: the patient is not the tenant
    row = (
        db.query(Inventory, Tenant)
        .join(Tenant, Inventory.tenant_id == Tenant.id)
        .filter(Inventory.id == inventory_id)
        .first()
    )
    if row is None:
        raise NotFound("Inventory")
    inventory, tenant = row
    if inventory.tenant_id != tenant_id or tenant.status != TenantStatus.ACTIVE:
        logger.info(f"[Booking] Inventory {inventory_id} not bookable at tenant {tenant_id}")
        raise NotFound("Inventory")
    if inventory.quantity < quantity:
        raise InsufficientStock()

    for attempt in range(_CODE_ATTEMPTS):
        booking = Booking(
            inventory_id=inventory.id,
            tenant_id=inventory.tenant_id,
            user_id=patient.user_id,
            quantity=quantity,
            pickup_code=generate_pickup_code(),
            status=BookingStatus.PENDING,
        )
        try:
            with atomic(db):
                db.add(booking)
        except StorageError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                logger.info(f"[Booking] Pickup code collision, retrying (attempt {attempt + 1})")
                continue
            raise
        break
    else:
        raise StorageError("Could not allocate a pickup code")

    AuditLog.log_action("create", "booking", booking.id, patient.user_id, booking.tenant_id,
                        changes={"inventory_id": inventory_id, "quantity": quantity})
    return booking


def _transition(db: Session, booking: Booking, new_status: BookingStatus, actor_id: int, *criteria) -> Booking:
    """
    Move `booking` to `new_status` with a conditional UPDATE on the status we
    read. Zero affected rows means someone else moved it first.
    """
    old = booking.status
    if not can_transition(old, new_status):
        raise InvalidTransition(f"Cannot change booking from {old.value} to {new_status.value}")

    rows = (
        db.query(Booking)
        .filter(Booking.id == booking.id, Booking.status == old, *criteria)
        .update({Booking.status: new_status}, synchronize_session=False)
    )
    if rows == 0:
        logger.info(f"[Booking] {booking.id}: status moved away from {old.value} before update")
        raise InvalidTransition(f"Booking is no longer {old.value}")

    db.refresh(booking)
    logger.info(f"[Booking] {booking.id}: {old.value} -> {new_status.value} by user {actor_id}")
    AuditLog.log_action("transition", "booking", booking.id, actor_id, booking.tenant_id,
                        changes={"status": [old.value, new_status.value]})
    return booking


def update_booking_status(db: Session, caller: Caller, booking_id: int, new_status: BookingStatus) -> Booking:
    """Owner-side status change for one of the owner's own bookings."""
    require_role(caller, UserRole.OWNER)
    try:
        new_status = BookingStatus(new_status)
    except ValueError:
        raise ValidationError(f"Unknown booking status '{new_status}'")

    with atomic(db):
        booking = db.query(Booking).filter(Booking.id == booking_id).first()
        if booking is None:
            raise NotFound("Booking")
        if booking.tenant_id != caller.tenant_id:
            AuditLog.log_access_denied("transition", "booking", booking_id, caller.user_id, "Different tenant")
            raise Unauthorized()
        _transition(db, booking, new_status, caller.user_id, Booking.tenant_id == caller.tenant_id)
    return booking


def cancel_booking(db: Session, patient: Caller, booking_id: int) -> Booking:
    """Patient-side cancel. Patients cannot request any other status."""
    require_role(patient, UserRole.PATIENT)
    with atomic(db):
        booking = (
            db.query(Booking)
            .filter(Booking.id == booking_id, Booking.user_id == patient.user_id)
            .first()
        )
        if booking is None:
            raise NotFound("Booking")
        _transition(db, booking, BookingStatus.CANCELLED, patient.user_id, Booking.user_id == patient.user_id)
    return booking


def find_by_pickup_code(scope: TenantScope, code: str) -> Booking:
    normalized = normalize_pickup_code(code)
    if not normalized:
        raise ValidationError("Pickup code is required")
    booking = scope.bookings(Booking.pickup_code == normalized).first()
    if booking is None:
        raise NotFound("Booking")
    return booking


def list_pharmacy_bookings(scope: TenantScope, status: Optional[BookingStatus] = None) -> List[Booking]:
    q = scope.bookings()
    if status is not None:
        q = q.filter(Booking.status == status)
    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).all()


def list_patient_bookings(db: Session, patient: Caller) -> List[Booking]:
    require_role(patient, UserRole.PATIENT)
    return (
        db.query(Booking)
        .filter(Booking.user_id == patient.user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .all()
    )
