"""
Pytest fixtures for the PharmaHub backend.

Provides:
- In-memory SQLite Database with every table created
- One shared session per test (services and HTTP routes use the same one)
- Tenants, owners, patients and an admin as Caller objects
- A stock() factory that goes through the real inventory service
"""
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from pharmahub.api.deps import get_db
from pharmahub.core.permissions import Caller
from pharmahub.core.security import create_access_token
from pharmahub.db.session import Database
from pharmahub.main import create_app
from pharmahub.models.tenant import Tenant, TenantStatus
from pharmahub.models.user import User, UserRole
from pharmahub.services import inventory_service
from pharmahub.services.tenant_scope import TenantScope


@pytest.fixture
def database():
    database = Database("sqlite://")
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    yield session
    session.close()


def make_tenant(db, name, status=TenantStatus.ACTIVE, **extra) -> Tenant:
    slug = name.lower().replace(" ", "-")
    tenant = Tenant(
        name=name,
        slug=slug,
        email=f"{slug}@example.com",
        address=f"1 {name} Street",
        license_number=f"LIC-{slug}",
        status=status,
        **extra,
    )
    db.add(tenant)
    db.commit()
    return tenant


def make_user(db, email, role, tenant_id=None) -> Caller:
    # Real bcrypt hashes are only needed where login is exercised
    user = User(email=email, hashed_password="not-a-hash", role=role, tenant_id=tenant_id)
    db.add(user)
    db.commit()
    return Caller(user_id=user.id, role=user.role, tenant_id=user.tenant_id)


def bearer(caller: Caller) -> dict:
    token = create_access_token(str(caller.user_id), caller.role.value, caller.tenant_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def tenant_a(db):
    return make_tenant(db, "Alpha Pharmacy")


@pytest.fixture
def tenant_b(db):
    return make_tenant(db, "Beta Pharmacy")


@pytest.fixture
def owner_a(db, tenant_a):
    return make_user(db, "owner@alpha.com", UserRole.OWNER, tenant_a.id)


@pytest.fixture
def owner_b(db, tenant_b):
    return make_user(db, "owner@beta.com", UserRole.OWNER, tenant_b.id)


@pytest.fixture
def patient(db):
    return make_user(db, "patient@example.com", UserRole.PATIENT)


@pytest.fixture
def other_patient(db):
    return make_user(db, "someone.else@example.com", UserRole.PATIENT)


@pytest.fixture
def admin(db):
    return make_user(db, "admin@pharmahub.com", UserRole.ADMIN)


@pytest.fixture
def scope_a(db, owner_a):
    return TenantScope.for_caller(db, owner_a)


@pytest.fixture
def scope_b(db, owner_b):
    return TenantScope.for_caller(db, owner_b)


@pytest.fixture
def stock():
    """stock(scope, owner, "Panadol", quantity=100, price="10.00") -> Inventory"""

    def _stock(scope, owner, name, quantity=100, price="10.00", threshold=10, **extra):
        return inventory_service.add_stock_by_name(
            scope,
            owner.user_id,
            name,
            price=Decimal(price),
            quantity=quantity,
            low_stock_threshold=threshold,
            **extra,
        )

    return _stock


@pytest.fixture
def client(database, db):
    app = create_app(database)

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)
