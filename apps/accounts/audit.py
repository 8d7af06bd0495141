import logging
from typing import Any, Dict, Optional

from django.db import DatabaseError

from apps.common.ratelimit import client_identifier
from .models import AdminAuditLog

logger = logging.getLogger("audit")


def log_admin_action(
    request,
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """Record an admin action in the log stream and the audit table.

    The table write is best-effort; an admin request never fails because of it.
    """
    admin = request.user if request.user.is_authenticated else None
    identifier = client_identifier(request)
    ip = request.META.get("REMOTE_ADDR") or None
    logger.info(
        "AUDIT action=%s admin=%s resource=%s:%s client=%s details=%s",
        action, getattr(admin, "pk", "unknown"), resource_type, resource_id or "-", identifier, details or {},
    )
    try:
        AdminAuditLog.objects.create(
            admin=admin,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
            ip_address=ip,
        )
    except DatabaseError:
        logger.exception("Failed to store admin audit log action=%s", action)
