"""Pharmacy registration, admin approval, login and owner settings."""
import pytest

from pharmahub.core.exceptions import NotFound, Unauthorized, ValidationError
from pharmahub.db.init_db import init_db
from pharmahub.db.session import Database
from pharmahub.models.tenant import TenantStatus
from pharmahub.models.user import User, UserRole
from pharmahub.services import tenant_service
from pharmahub.services.tenant_scope import TenantScope

from conftest import make_tenant, make_user


def register(db, name="Green Cross", email="owner@greencross.com"):
    return tenant_service.register_pharmacy(
        db,
        pharmacy_name=name,
        email=email,
        password="secret123",
        address="12 Main Road, Lahore",
        license_number="DRAP-001",
    )


@pytest.mark.parametrize(
    "name, slug",
    [
        ("St. Mary's Pharmacy", "st-marys-pharmacy"),
        ("  Green   Cross  ", "green-cross"),
        ("!!!", "pharmacy"),
    ],
)
def test_slugify(name, slug):
    assert tenant_service.slugify(name) == slug


def test_registration_creates_pending_tenant_and_owner(db):
    tenant = register(db)

    assert tenant.status == TenantStatus.PENDING
    assert tenant.slug == "green-cross"
    owner = db.query(User).filter(User.email == "owner@greencross.com").one()
    assert owner.role == UserRole.OWNER
    assert owner.tenant_id == tenant.id
    assert owner.hashed_password != "secret123"


def test_registration_rejects_duplicates_and_short_passwords(db):
    register(db)
    with pytest.raises(ValidationError):
        register(db, name="Another One")
    with pytest.raises(ValidationError):
        tenant_service.register_pharmacy(
            db, "Short Pass", "short@pass.com", "123", "12 Main Road, Lahore", "DRAP-002"
        )


def test_duplicate_names_get_distinct_slugs(db):
    first = register(db)
    second = register(db, email="other@greencross.com")
    assert (first.slug, second.slug) == ("green-cross", "green-cross-2")


def test_admin_approves_and_rejects(db, admin):
    tenant = register(db)
    approved = tenant_service.approve_tenant(db, admin, tenant.id)
    assert approved.status == TenantStatus.ACTIVE

    other = register(db, name="Shady Meds", email="x@shady.com")
    assert [t.id for t in tenant_service.list_pending_tenants(db, admin)] == [other.id]
    rejected = tenant_service.reject_tenant(db, admin, other.id)
    assert rejected.status == TenantStatus.REJECTED
    assert tenant_service.list_pending_tenants(db, admin) == []


def test_only_admin_changes_tenant_status(db, owner_a, patient, admin):
    tenant = register(db)
    for caller in (owner_a, patient):
        with pytest.raises(Unauthorized):
            tenant_service.approve_tenant(db, caller, tenant.id)
    with pytest.raises(NotFound):
        tenant_service.approve_tenant(db, admin, 777)


def test_authenticate(db):
    register(db)
    user = tenant_service.authenticate(db, " Owner@GreenCross.com ", "secret123")
    assert user.role == UserRole.OWNER

    with pytest.raises(Unauthorized):
        tenant_service.authenticate(db, "owner@greencross.com", "wrong-password")
    with pytest.raises(Unauthorized):
        tenant_service.authenticate(db, "nobody@greencross.com", "secret123")


def test_customer_registration(db):
    user = tenant_service.register_customer(db, "Patient@Example.com", "secret123")
    assert user.role == UserRole.PATIENT
    assert user.tenant_id is None
    assert user.email == "patient@example.com"
    with pytest.raises(ValidationError):
        tenant_service.register_customer(db, "patient@example.com", "secret123")


@pytest.mark.parametrize("email", ["", "not-an-email", "two@@example.com", "spaces in@example.com"])
def test_invalid_email_is_rejected(db, email):
    with pytest.raises(ValidationError):
        tenant_service.register_customer(db, email, "secret123")


# ==============================================================================
# SETTINGS
# ==============================================================================

def test_structured_opening_hours_are_stored(scope_a, owner_a):
    hours = {
        "kind": "structured",
        "days": {
            "Monday": {"open": "08:00", "close": "20:00"},
            "sunday": {"closed": True},
        },
    }
    tenant = tenant_service.update_settings(scope_a, owner_a.user_id, opening_hours=hours, lat=31.52, lng=74.35)

    assert tenant.opening_hours["kind"] == "structured"
    assert tenant.opening_hours["days"]["monday"] == {"open": "08:00", "close": "20:00", "closed": False}
    assert tenant.opening_hours["days"]["sunday"]["closed"] is True
    assert (tenant.lat, tenant.lng) == (31.52, 74.35)


def test_free_text_opening_hours(scope_a, owner_a):
    tenant = tenant_service.update_settings(
        scope_a, owner_a.user_id, opening_hours={"kind": "text", "text": " Mon-Sat 9 to 9 "}
    )
    assert tenant.opening_hours == {"kind": "text", "text": "Mon-Sat 9 to 9"}


@pytest.mark.parametrize(
    "hours",
    [
        {"kind": "structured", "days": {"monday": {"open": "20:00", "close": "08:00"}}},
        {"kind": "structured", "days": {"funday": {"closed": True}}},
        {"kind": "structured", "days": {"monday": {"open": "25:00", "close": "26:00"}}},
        {"kind": "text", "text": "   "},
        {"kind": "carrier-pigeon"},
        "9 to 5",
    ],
)
def test_invalid_opening_hours(scope_a, owner_a, hours):
    with pytest.raises(ValidationError):
        tenant_service.update_settings(scope_a, owner_a.user_id, opening_hours=hours)
    assert scope_a.tenant().opening_hours is None


def test_settings_rename(scope_a, owner_a):
    tenant = tenant_service.update_settings(scope_a, owner_a.user_id, name=" Alpha Plus ", address="2 New Road")
    assert (tenant.name, tenant.address) == ("Alpha Plus", "2 New Road")
    with pytest.raises(ValidationError):
        tenant_service.update_settings(scope_a, owner_a.user_id, name="A")


def test_settings_need_active_pharmacy(db):
    pending = make_tenant(db, "Waiting Room", status=TenantStatus.PENDING)
    owner = make_user(db, "owner@waiting.com", UserRole.OWNER, pending.id)
    with pytest.raises(Unauthorized):
        tenant_service.update_settings(TenantScope.for_caller(db, owner), owner.user_id, name="Still Waiting")


def test_init_db_seeds_admin_once():
    database = Database("sqlite://")
    try:
        password = init_db(database, admin_email="root@pharmahub.com")
        assert password
        assert init_db(database, admin_email="root@pharmahub.com") is None

        db = database.session()
        try:
            admin = tenant_service.authenticate(db, "root@pharmahub.com", password)
            assert admin.role == UserRole.ADMIN
        finally:
            db.close()
    finally:
        database.dispose()
