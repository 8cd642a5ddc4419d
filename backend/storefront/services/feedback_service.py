# Overview: Customer feedback intake and moderation.

from __future__ import annotations

from ..extensions import db
from ..errors import NotFound, ValidationFailed, parse_identifier
from ..models import Feedback
from ..models.content import FEEDBACK_STATUSES
from ..validation import require_int_in_range, require_text
from storefront.time_utils import utcnow


PUBLIC_LIMIT = 20
ADMIN_LIMIT = 100


def submit_feedback(payload: dict) -> Feedback:
    """New entries start as pending and stay hidden until approved."""
    if not isinstance(payload, dict):
        raise ValidationFailed("Invalid JSON payload")

    feedback = Feedback(
        name=require_text(payload, "name", max_len=80, message="Name is required"),
        message=require_text(payload, "message", min_len=5, max_len=1000, message="Message too short"),
        rating=require_int_in_range(payload, "rating", minimum=1, maximum=5),
        status="pending",
        created_at=utcnow(),
    )
    db.session.add(feedback)
    db.session.commit()
    return feedback


def list_feedback(*, admin_view: bool = False) -> list[Feedback]:
    query = db.session.query(Feedback)
    if not admin_view:
        query = query.filter(Feedback.status == "approved")
    return (
        query.order_by(Feedback.created_at.desc(), Feedback.id.desc())
        .limit(ADMIN_LIMIT if admin_view else PUBLIC_LIMIT)
        .all()
    )


def set_feedback_status(payload: dict) -> Feedback:
    if not isinstance(payload, dict) or not payload.get("id") or payload.get("status") not in FEEDBACK_STATUSES:
        raise ValidationFailed("Invalid request")

    feedback = db.session.get(Feedback, parse_identifier(payload["id"]))
    if not feedback:
        raise NotFound("Not found")

    feedback.status = payload["status"]
    db.session.commit()
    return feedback
