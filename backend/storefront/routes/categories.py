from flask import Blueprint, current_app, request

from ..decorators import require_auth
from ..services import category_service


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories():
    # Storefront filter must keep rendering even if the query fails
    try:
        return {"categories": category_service.list_categories()}, 200
    except Exception:
        current_app.logger.exception("Failed to list categories")
        return {"categories": []}, 200


@categories_bp.post("")
@require_auth
def add_category():
    payload = request.get_json(silent=True) or {}
    category_service.add_category(payload.get("name"))
    return {"message": "Added"}, 200


@categories_bp.delete("")
@require_auth
def delete_category():
    payload = request.get_json(silent=True) or {}
    category_service.delete_category(payload.get("name"))
    return {"message": "Deleted"}, 200
