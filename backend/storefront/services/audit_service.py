# Overview: Append-only admin audit log (the `logs` collection).

from __future__ import annotations

from typing import Any

from ..extensions import db
from ..models import AuditLog
from storefront.time_utils import utcnow


ACTION_LOGIN = "LOGIN"
ACTION_CREATE_SALE = "CREATE_SALE"
ACTION_RETURN_SALE = "RETURN_SALE"
ACTION_CREATE_PRODUCT = "CREATE_PRODUCT"
ACTION_UPDATE_PRODUCT = "UPDATE_PRODUCT"
ACTION_DELETE_PRODUCT = "DELETE_PRODUCT"
ACTION_UPDATE_STOCK = "UPDATE_STOCK"


def append_audit_log(
    *,
    action: str,
    admin_id: int | None,
    data: dict[str, Any] | None = None,
) -> AuditLog:
    """
    Append an audit entry inside the caller's transaction.

    - No domain logic here.
    - No deletes/updates of existing entries.
    - Flushes (so the id exists) but never commits.
    """
    entry = AuditLog(
        action=action,
        admin_id=admin_id,
        data=data or {},
        created_at=utcnow(),
    )
    db.session.add(entry)
    db.session.flush()
    return entry


def list_audit_logs(*, action: str | None = None, limit: int = 100) -> list[AuditLog]:
    query = db.session.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action == action)
    return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
