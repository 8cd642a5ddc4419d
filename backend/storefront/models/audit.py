from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class AuditLog(db.Model):
    """
    Append-only admin action log.

    - Rows are written in the same transaction as the action they record.
    - No updates or deletes.
    - data holds a small JSON payload (ids, bill numbers, totals).
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_action_created", "action", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(64), nullable=False)
    admin_id = db.Column(db.Integer, db.ForeignKey("admins.id"), nullable=True, index=True)
    data = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "adminId": self.admin_id,
            "data": self.data,
            "createdAt": to_utc_z(self.created_at),
        }
