"""
Audit logging for authentication and ledger mutations.

Every balance movement (sale, payment, return, reconciliation) is logged as
one JSON line on the "audit" logger, with who did it and what changed.
Auth logs never include passwords or tokens.
"""
import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from ledger_api.models.user import User

# Separate logger for audit events (can be shipped to centralized logging)
audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


class AuditLog:
    """Central audit logging for security-critical and ledger events."""

    @staticmethod
    def log_authentication(
        action: str,  # "login", "failed_login", "register"
        email: str,
        ip_address: str,
        success: bool,
        reason: str = "",
    ):
        """
        Log authentication events.

        Usage:
            AuditLog.log_authentication("login", "user@example.com", "192.168.1.1", True)
            AuditLog.log_authentication("failed_login", "user@example.com", "192.168.1.1", False, reason="Invalid password")
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"auth.{action}",
            "email": email,
            "ip_address": ip_address,
            "success": success,
        }

        if reason and not success:
            log_entry["reason"] = reason

        audit_logger.info(json.dumps(log_entry))

    @staticmethod
    def log_action(
        action: str,  # "create", "delete", "recalculate", "cash", "credit", "laptop"
        resource_type: str,  # "sale", "payment", "balance", "return", "reseller"
        resource_id: int,
        user: Optional[User],
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log a ledger mutation.

        Usage:
            AuditLog.log_action("create", "sale", 12, current_user, changes={"total_amount": 500000})
            AuditLog.log_action("recalculate", "balance", 4, current_user, changes={"difference": -2000})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "user_id": user.id if user else None,
            "user_email": user.email if user else None,
            "resource_id": resource_id,
        }

        if changes:
            log_entry["changes"] = {k: _jsonable(v) for k, v in changes.items()}

        audit_logger.info(json.dumps(log_entry))

    @staticmethod
    def log_access_denied(
        action: str,
        user_id: int,
        reason: str,
    ):
        """
        Log denied access attempts, e.g. a sales user calling an admin-only
        repair endpoint.

        Usage:
            AuditLog.log_access_denied("POST /bulk-resellers", 2, "Admin role required")
        """
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "access_denied",
            "action": action,
            "user_id": user_id,
            "reason": reason,
        }

        audit_logger.warning(json.dumps(log_entry))
