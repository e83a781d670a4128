"""
Audit logging for stock, sales, bookings and tenant administration.

Every quantity change already lands in the stock_movements table; this
logger mirrors the business events as JSON lines so they can be shipped to
centralized logging. Access denials are logged here too (potential IDOR
probes across tenants).
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Separate logger for audit events
audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for business-critical events."""

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "approve", "reject", "transition"
        resource_type: str,  # "inventory", "sale", "booking", "tenant", "user"
        resource_id: Optional[int],
        user_id: Optional[int],
        tenant_id: Optional[int] = None,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log business-critical actions.

        Usage:
            AuditLog.log_action("create", "sale", 12, user_id=3, tenant_id=1, changes={"total": "50.00"})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "user_id": user_id,
            "tenant_id": tenant_id,
            "resource_id": resource_id,
        }

        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_stock_movement(
        movement_type: str,
        inventory_id: Optional[int],
        tenant_id: int,
        delta: int,
        user_id: Optional[int],
        reason: Optional[str] = None,
    ):
        log_entry = {
            "timestamp": _now(),
            "event_type": f"stock.{movement_type.lower()}",
            "inventory_id": inventory_id,
            "tenant_id": tenant_id,
            "delta": delta,
            "user_id": user_id,
        }
        if reason:
            log_entry["reason"] = reason

        audit_logger.info(json.dumps(log_entry))

    @staticmethod
    def log_access_denied(
        action: str,  # "read", "write", "delete", "transition"
        resource_type: str,
        resource_id: Optional[int],
        user_id: Optional[int],
        reason: str,
    ):
        """
        Log denied access attempts.

        Usage:
            AuditLog.log_access_denied("transition", "booking", 9, 2, "Different tenant")
        """
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "access_denied",
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "user_id": user_id,
            "reason": reason,
        }

        audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_authentication(action: str, email: str, success: bool, reason: str = ""):
        """Log login/registration events. Never includes passwords or tokens."""
        log_entry = {
            "timestamp": _now(),
            "event_type": f"auth.{action}",
            "email": email,
            "success": success,
        }

        if reason and not success:
            log_entry["reason"] = reason

        audit_logger.info(json.dumps(log_entry))
