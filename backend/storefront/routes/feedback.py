# Overview: Public feedback submission and admin moderation.

from flask import Blueprint, g, jsonify, request

from ..decorators import optional_auth, require_auth
from ..services import feedback_service


feedback_bp = Blueprint("feedback", __name__, url_prefix="/api/feedback")


@feedback_bp.post("")
def submit_feedback():
    feedback_service.submit_feedback(request.get_json(silent=True))
    return {"message": "Thank you for your feedback!"}, 201


@feedback_bp.get("")
@optional_auth
def list_feedback():
    """Approved entries for everyone; ?admin=true lists all statuses (auth required)."""
    admin_view = request.args.get("admin") == "true"
    if admin_view and g.current_admin is None:
        return jsonify({"error": "Unauthorized"}), 401

    entries = feedback_service.list_feedback(admin_view=admin_view)
    return {"feedback": [f.to_dict() for f in entries]}, 200


@feedback_bp.patch("")
@require_auth
def moderate_feedback():
    feedback_service.set_feedback_status(request.get_json(silent=True))
    return {"message": "Updated"}, 200
