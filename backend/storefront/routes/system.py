# backend/storefront/routes/system.py
"""
Health endpoint and the admin audit trail listing.
"""

import time

from flask import Blueprint, current_app, request
from sqlalchemy import text

from ..decorators import require_auth, require_role
from ..extensions import db
from ..models.auth import ROLE_ADMIN, ROLE_OWNER
from ..services import audit_service

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        return {"status": "healthy", "latency_ms": round((time.time() - start_time) * 1000, 2)}
    except Exception:
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "error": "Database error",
        }


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    return {"status": "ok" if healthy else "degraded", "database": database}, 200 if healthy else 503


@system_bp.get("/api/admin/logs")
@require_auth
@require_role(ROLE_OWNER, ROLE_ADMIN)
def list_logs():
    """?action=CREATE_SALE&limit=100"""
    limit = min(max(request.args.get("limit", default=100, type=int), 1), 500)
    entries = audit_service.list_audit_logs(action=request.args.get("action"), limit=limit)
    return {"logs": [e.to_dict() for e in entries]}, 200
