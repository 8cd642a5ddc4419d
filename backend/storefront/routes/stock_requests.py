from flask import Blueprint, g, jsonify, request

from ..decorators import optional_auth, require_auth
from ..services import stock_request_service


stock_requests_bp = Blueprint("stock_requests", __name__, url_prefix="/api/stock-requests")


@stock_requests_bp.post("")
def submit_request():
    stock_request_service.submit_request(request.get_json(silent=True))
    return {"message": "Request submitted!"}, 201


@stock_requests_bp.get("")
@optional_auth
def list_requests():
    """?public=true shows the latest pending requests; otherwise admins only."""
    public = request.args.get("public") == "true"
    if not public and g.current_admin is None:
        return jsonify({"error": "Unauthorized"}), 401

    requests = stock_request_service.list_requests(public=public)
    return {"requests": [r.to_dict() for r in requests]}, 200


@stock_requests_bp.patch("")
@require_auth
def update_request_status():
    stock_request_service.set_request_status(request.get_json(silent=True))
    return {"message": "Updated"}, 200
