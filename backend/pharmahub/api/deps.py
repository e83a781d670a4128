"""FastAPI dependencies: DB session, caller identity from JWT, tenant scope.

The tenant id used for scoping comes from the verified token only. Request
bodies and query strings never choose the tenant.
"""
from typing import Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from pharmahub.core.exceptions import BusinessError
from pharmahub.core.permissions import Caller, require_role
from pharmahub.core.security import decode_access_token
from pharmahub.models.user import User, UserRole
from pharmahub.services.tenant_scope import TenantScope

security = HTTPBearer(auto_error=False)


def get_db(request: Request) -> Generator[Session, None, None]:
    """Session from the application's Database object."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


def get_current_caller(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Caller:
    """Decode the bearer token and confirm the account is still active."""
    if not credentials:
        raise BusinessError.unauthorized("missing bearer token")

    claims = decode_access_token(credentials.credentials)
    if not claims:
        raise BusinessError.unauthorized("invalid or expired token")

    try:
        user_id = int(claims["sub"])
    except (KeyError, ValueError):
        raise BusinessError.unauthorized("malformed subject")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise BusinessError.unauthorized(f"user {user_id} missing or inactive")

    # Role and tenant are taken from the stored user, not the token claims
    return Caller(user_id=user.id, role=user.role, tenant_id=user.tenant_id)


def require_owner(caller: Caller = Depends(get_current_caller)) -> Caller:
    return require_role(caller, UserRole.OWNER)


def require_admin(caller: Caller = Depends(get_current_caller)) -> Caller:
    return require_role(caller, UserRole.ADMIN)


def require_patient(caller: Caller = Depends(get_current_caller)) -> Caller:
    return require_role(caller, UserRole.PATIENT)


def get_tenant_scope(
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_owner),
) -> TenantScope:
    return TenantScope.for_caller(db, caller)
