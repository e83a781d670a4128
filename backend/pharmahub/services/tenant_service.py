"""Tenant lifecycle: registration, admin approval, owner settings."""
import logging
import re
from typing import Any, Dict, List, Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.orm import Session

from pharmahub.core.audit import AuditLog
from pharmahub.core.config import settings
from pharmahub.core.exceptions import NotFound, Unauthorized, ValidationError
from pharmahub.core.permissions import Caller, require_role
from pharmahub.core.security import get_password_hash, verify_password
from pharmahub.db.session import atomic
from pharmahub.models.tenant import Tenant, TenantStatus
from pharmahub.models.user import User, UserRole
from pharmahub.schemas.opening_hours import opening_hours_adapter
from pharmahub.services.tenant_scope import TenantScope

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    """ "St. Mary's Pharmacy" -> "st-marys-pharmacy" """
    slug = (name or "").strip().lower()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w-]+", "", slug)
    slug = re.sub(r"-{2,}", "-", slug).strip("-_")
    return slug or "pharmacy"


def _unique_slug(db: Session, name: str) -> str:
    base = slugify(name)
    slug, n = base, 2
    while db.query(Tenant.id).filter(Tenant.slug == slug).first():
        slug = f"{base}-{n}"
        n += 1
    return slug


def _check_credentials(db: Session, email: str, password: str) -> str:
    try:
        email = validate_email((email or "").strip(), check_deliverability=False).normalized.lower()
    except EmailNotValidError:
        raise ValidationError("Invalid email address")
    if len(password or "") < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")
    if db.query(User.id).filter(User.email == email).first():
        raise ValidationError("A user with this email already exists.")
    return email


def register_pharmacy(
    db: Session,
    pharmacy_name: str,
    email: str,
    password: str,
    address: str,
    license_number: str,
    license_url: Optional[str] = None,
) -> Tenant:
    """Create a PENDING tenant and its OWNER account together."""
    pharmacy_name = (pharmacy_name or "").strip()
    address = (address or "").strip()
    license_number = (license_number or "").strip()
    if len(pharmacy_name) < 2:
        raise ValidationError("Pharmacy name is required")
    if len(address) < 5:
        raise ValidationError("Address is required")
    if not license_number:
        raise ValidationError("License number is required")
    email = _check_credentials(db, email, password)
    if db.query(Tenant.id).filter(Tenant.email == email).first():
        raise ValidationError("A pharmacy with this email already exists.")

    with atomic(db):
        tenant = Tenant(
            name=pharmacy_name,
            slug=_unique_slug(db, pharmacy_name),
            email=email,
            address=address,
            license_number=license_number,
            license_url=license_url,
            status=TenantStatus.PENDING,
        )
        db.add(tenant)
        db.flush()
        owner = User(
            email=email,
            hashed_password=get_password_hash(password),
            role=UserRole.OWNER,
            tenant_id=tenant.id,
        )
        db.add(owner)

    logger.info(f"[Tenant] Registered pharmacy {tenant.id} ({tenant.slug}), awaiting approval")
    AuditLog.log_authentication("register_pharmacy", email, True)
    return tenant


def register_customer(db: Session, email: str, password: str) -> User:
    email = _check_credentials(db, email, password)
    with atomic(db):
        user = User(email=email, hashed_password=get_password_hash(password), role=UserRole.PATIENT)
        db.add(user)
    AuditLog.log_authentication("register_customer", email, True)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Same failure for unknown email, wrong password and inactive account."""
    email = (email or "").strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.hashed_password):
        AuditLog.log_authentication("login", email, False, reason="bad credentials")
        raise Unauthorized("Invalid email or password")
    if not user.is_active:
        AuditLog.log_authentication("login", email, False, reason="inactive")
        raise Unauthorized("Invalid email or password")
    AuditLog.log_authentication("login", email, True)
    return user


def _set_status(db: Session, caller: Caller, tenant_id: int, status: TenantStatus) -> Tenant:
    require_role(caller, UserRole.ADMIN)
    with atomic(db):
        tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
        if not tenant:
            raise NotFound("Tenant")
        old = tenant.status
        tenant.status = status
    AuditLog.log_action(status.value.lower(), "tenant", tenant.id, caller.user_id, tenant.id,
                        changes={"status": [old.value, status.value]})
    return tenant


def approve_tenant(db: Session, caller: Caller, tenant_id: int) -> Tenant:
    return _set_status(db, caller, tenant_id, TenantStatus.ACTIVE)


def reject_tenant(db: Session, caller: Caller, tenant_id: int) -> Tenant:
    return _set_status(db, caller, tenant_id, TenantStatus.REJECTED)


def list_pending_tenants(db: Session, caller: Caller) -> List[Tenant]:
    require_role(caller, UserRole.ADMIN)
    return (
        db.query(Tenant)
        .filter(Tenant.status == TenantStatus.PENDING)
        .order_by(Tenant.created_at.desc(), Tenant.id.desc())
        .all()
    )


def update_settings(
    scope: TenantScope,
    caller_id: Optional[int],
    name: Optional[str] = None,
    address: Optional[str] = None,
    opening_hours: Any = None,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
) -> Tenant:
    """Owner settings for an ACTIVE pharmacy. Opening hours are validated here, once."""
    changes: Dict[str, Any] = {}
    if name is not None:
        if len(name.strip()) < 2:
            raise ValidationError("Pharmacy name is required")
        changes["name"] = name.strip()
    if address is not None:
        if len(address.strip()) < 5:
            raise ValidationError("Address is required")
        changes["address"] = address.strip()
    if opening_hours is not None:
        try:
            hours = opening_hours_adapter.validate_python(opening_hours)
        except ValueError as exc:
            raise ValidationError(f"Invalid opening hours: {exc}")
        changes["opening_hours"] = hours.model_dump(exclude_none=True)
    if lat is not None:
        changes["lat"] = lat
    if lng is not None:
        changes["lng"] = lng

    with atomic(scope.db):
        tenant = scope.tenant()
        if tenant.status != TenantStatus.ACTIVE:
            AuditLog.log_access_denied("update", "tenant", tenant.id, caller_id, f"status {tenant.status.value}")
            raise Unauthorized()
        for field, value in changes.items():
            setattr(tenant, field, value)

    AuditLog.log_action("update", "tenant", tenant.id, caller_id, tenant.id, changes={"fields": sorted(changes)})
    return tenant
