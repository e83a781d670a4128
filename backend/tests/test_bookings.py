"""Pickup bookings: reservation rules and the status state machine."""
import pytest

from pharmahub.core.exceptions import InsufficientStock, InvalidTransition, NotFound, Unauthorized, ValidationError
from pharmahub.models.booking import Booking, BookingStatus
from pharmahub.models.tenant import TenantStatus
from pharmahub.models.user import UserRole
from pharmahub.services import booking_service, inventory_service
from pharmahub.services.tenant_scope import TenantScope

from conftest import make_tenant, make_user


@pytest.fixture
def panadol(scope_a, owner_a, stock):
    return stock(scope_a, owner_a, "Panadol", quantity=10)


@pytest.fixture
def booking(db, patient, panadol, tenant_a):
    return booking_service.create_booking(db, patient, panadol.id, 2, tenant_a.id)


def test_booking_is_pending_with_pickup_code(booking, panadol, patient, scope_a):
    assert booking.status == BookingStatus.PENDING
    assert booking.user_id == patient.user_id
    assert booking.tenant_id == panadol.tenant_id
    assert len(booking.pickup_code) == 6
    assert set(booking.pickup_code) <= set(booking_service.PICKUP_ALPHABET)
    # Reservation only, stock is untouched
    assert scope_a.get_inventory(panadol.id).quantity == 10


def test_pickup_codes_are_unique(db, patient, panadol, tenant_a):
    codes = {
        booking_service.create_booking(db, patient, panadol.id, 1, tenant_a.id).pickup_code
        for _ in range(5)
    }
    assert len(codes) == 5


def test_booking_more_than_in_stock(db, patient, panadol, tenant_a):
    with pytest.raises(InsufficientStock):
        booking_service.create_booking(db, patient, panadol.id, 11, tenant_a.id)


def test_booking_wrong_tenant_or_missing_item(db, patient, panadol, tenant_b):
    with pytest.raises(NotFound):
        booking_service.create_booking(db, patient, panadol.id, 1, tenant_b.id)
    with pytest.raises(NotFound):
        booking_service.create_booking(db, patient, 999, 1, tenant_b.id)


def test_booking_at_pending_pharmacy(db, patient, stock):
    pending = make_tenant(db, "Gamma Pharmacy", status=TenantStatus.PENDING)
    owner = make_user(db, "owner@gamma.com", UserRole.OWNER, pending.id)
    item = stock(TenantScope(db, pending.id), owner, "Panadol", quantity=10)

    with pytest.raises(NotFound):
        booking_service.create_booking(db, patient, item.id, 1, pending.id)


def test_only_patients_create_bookings(db, owner_a, panadol, tenant_a):
    with pytest.raises(Unauthorized):
        booking_service.create_booking(db, owner_a, panadol.id, 1, tenant_a.id)


def test_booking_quantity_must_be_positive(db, patient, panadol, tenant_a):
    with pytest.raises(ValidationError):
        booking_service.create_booking(db, patient, panadol.id, 0, tenant_a.id)


@pytest.mark.parametrize(
    "current, new, allowed",
    [
        (BookingStatus.PENDING, BookingStatus.READY, True),
        (BookingStatus.PENDING, BookingStatus.CANCELLED, True),
        (BookingStatus.READY, BookingStatus.COMPLETED, True),
        (BookingStatus.READY, BookingStatus.CANCELLED, True),
        (BookingStatus.PENDING, BookingStatus.COMPLETED, False),
        (BookingStatus.READY, BookingStatus.PENDING, False),
        (BookingStatus.COMPLETED, BookingStatus.CANCELLED, False),
        (BookingStatus.CANCELLED, BookingStatus.READY, False),
    ],
)
def test_transition_table(current, new, allowed):
    assert booking_service.can_transition(current, new) is allowed


def test_owner_walks_booking_to_completed(db, owner_a, booking):
    ready = booking_service.update_booking_status(db, owner_a, booking.id, BookingStatus.READY)
    assert ready.status == BookingStatus.READY
    done = booking_service.update_booking_status(db, owner_a, booking.id, "COMPLETED")
    assert done.status == BookingStatus.COMPLETED

    with pytest.raises(InvalidTransition):
        booking_service.update_booking_status(db, owner_a, booking.id, BookingStatus.CANCELLED)


def test_pending_cannot_jump_to_completed(db, owner_a, booking):
    with pytest.raises(InvalidTransition):
        booking_service.update_booking_status(db, owner_a, booking.id, BookingStatus.COMPLETED)
    db.refresh(booking)
    assert booking.status == BookingStatus.PENDING


def test_other_owner_cannot_change_status(db, owner_b, booking):
    with pytest.raises(Unauthorized):
        booking_service.update_booking_status(db, owner_b, booking.id, BookingStatus.READY)


def test_patient_cannot_use_owner_transition(db, patient, booking):
    with pytest.raises(Unauthorized):
        booking_service.update_booking_status(db, patient, booking.id, BookingStatus.READY)


def test_unknown_booking(db, owner_a):
    with pytest.raises(NotFound):
        booking_service.update_booking_status(db, owner_a, 4040, BookingStatus.READY)


def test_patient_cancels_own_booking(db, patient, other_patient, booking):
    with pytest.raises(NotFound):
        booking_service.cancel_booking(db, other_patient, booking.id)

    cancelled = booking_service.cancel_booking(db, patient, booking.id)
    assert cancelled.status == BookingStatus.CANCELLED

    with pytest.raises(InvalidTransition):
        booking_service.cancel_booking(db, patient, booking.id)


def test_find_by_pickup_code(scope_a, scope_b, booking):
    messy = " " + booking.pickup_code.lower()[:3] + " " + booking.pickup_code.lower()[3:]
    assert booking_service.find_by_pickup_code(scope_a, messy).id == booking.id

    with pytest.raises(NotFound):
        booking_service.find_by_pickup_code(scope_b, booking.pickup_code)
    with pytest.raises(ValidationError):
        booking_service.find_by_pickup_code(scope_a, "   ")


def test_listings(db, owner_a, patient, scope_a, scope_b, booking, panadol, tenant_a):
    second = booking_service.create_booking(db, patient, panadol.id, 1, tenant_a.id)
    booking_service.update_booking_status(db, owner_a, second.id, BookingStatus.READY)

    assert {b.id for b in booking_service.list_pharmacy_bookings(scope_a)} == {booking.id, second.id}
    ready = booking_service.list_pharmacy_bookings(scope_a, BookingStatus.READY)
    assert [b.id for b in ready] == [second.id]
    assert booking_service.list_pharmacy_bookings(scope_b) == []
    assert [b.id for b in booking_service.list_patient_bookings(db, patient)] == [second.id, booking.id]


def test_deleting_item_keeps_bookings_and_cancels_open_ones(db, owner_a, patient, scope_a, booking, panadol, tenant_a):
    done = booking_service.create_booking(db, patient, panadol.id, 1, tenant_a.id)
    booking_service.update_booking_status(db, owner_a, done.id, BookingStatus.READY)
    booking_service.update_booking_status(db, owner_a, done.id, BookingStatus.COMPLETED)

    inventory_service.delete_item(scope_a, owner_a.user_id, panadol.id)

    db.expire_all()
    assert db.query(Booking).count() == 2
    open_one, completed = scope_a.get_booking(booking.id), scope_a.get_booking(done.id)
    assert open_one.status == BookingStatus.CANCELLED
    assert completed.status == BookingStatus.COMPLETED
    assert open_one.inventory_id is None and completed.inventory_id is None


def test_unknown_status_value_is_a_validation_error(db, owner_a, booking):
    with pytest.raises(ValidationError):
        booking_service.update_booking_status(db, owner_a, booking.id, "SHIPPED")
