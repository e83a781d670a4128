"""
Caller identity and role checks.

The auth collaborator hands the engine a Caller: who is calling, with which
role, and (for pharmacy owners) which tenant they belong to. The tenant id
used for scoping always comes from here, never from request input.
"""
from dataclasses import dataclass
from typing import Optional

from pharmahub.core.audit import AuditLog
from pharmahub.core.exceptions import Unauthorized
from pharmahub.models.user import UserRole


@dataclass(frozen=True)
class Caller:
    user_id: int
    role: UserRole
    tenant_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER and self.tenant_id is not None

    @property
    def is_patient(self) -> bool:
        return self.role == UserRole.PATIENT


def require_role(caller: Caller, *roles: UserRole) -> Caller:
    """Raise Unauthorized unless the caller holds one of the given roles."""
    if caller.role not in roles:
        AuditLog.log_access_denied(
            "call", "role", None, caller.user_id,
            f"role {caller.role.value} not in {[r.value for r in roles]}",
        )
        raise Unauthorized()
    if caller.role == UserRole.OWNER and caller.tenant_id is None:
        AuditLog.log_access_denied("call", "role", None, caller.user_id, "owner without tenant")
        raise Unauthorized()
    return caller
