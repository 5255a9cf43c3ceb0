"""
Audit trail for the pharmacy.

Every sign-in, stock-changing action and alert materialization is written
as one JSON object per line to the "audit" logger, so it can be routed to
its own file or shipped elsewhere. Passwords and tokens are never logged.
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

audit_logger = logging.getLogger("audit")


def _emit(event_type: str, **fields: Any) -> None:
    entry = {"timestamp": datetime.utcnow().isoformat(), "event_type": event_type}
    entry.update({k: v for k, v in fields.items() if v is not None})
    audit_logger.info(json.dumps(entry, default=str))


class AuditLog:

    @staticmethod
    def log_authentication(action: str, email: str, success: bool, ip_address: str = "", reason: str = ""):
        """
        `action` is "login", "failed_login" or "register".

            AuditLog.log_authentication("failed_login", data.email, False, ip, reason="bad credentials")
        """
        _emit(
            f"auth.{action}",
            email=email,
            ip_address=ip_address,
            success=success,
            reason=reason if reason and not success else None,
        )

    @staticmethod
    def log_action(
        action: str,
        resource_type: str,
        resource_id: Optional[int],
        user_id: Optional[int],
        changes: Optional[Dict[str, Any]] = None,
    ):
        """Who touched which medicine, sale, prescription, customer, alert or shift."""
        _emit(
            f"{resource_type}.{action}",
            user_id=user_id,
            resource_id=resource_id,
            changes=changes or None,
        )

    @staticmethod
    def log_alerts_created(source: str, alert_ids: Iterable[int]):
        # source: "scheduler", "check-stock:<user>", "check-expiry:<user>", "user:<user>"
        ids = list(alert_ids)
        if ids:
            _emit("alert.created", source=source, count=len(ids), alert_ids=ids)
