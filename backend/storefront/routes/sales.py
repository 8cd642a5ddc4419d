# Overview: POS checkout, sale history and returns.

# backend/storefront/routes/sales.py
"""
Sales API routes

POST /api/sales             checkout (validate, then commit atomically)
GET  /api/sales             paged history, newest first
GET  /api/sales/<id>        one sale or return with its lines
POST /api/sales/<id>        process a full return of a sale

All routes require an authenticated admin of any role. The acting admin is
passed to the services explicitly; services never read request state.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import StorefrontError
from ..services import sales_service, return_service
from ..validation import parse_sale_request
from ..decorators import require_auth


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Request body:
    {
        "items": [{"productId", "productName", "sku", "qty", "unitPrice",
                   "gettingPrice", "subtotal"}, ...],
        "discount": 0,                (optional)
        "discountType": "flat",       (optional: flat | percent)
        "paymentMethod": "cash"       (cash | card | online)
    }

    Returns:
        201: {billNo, total, profit, saleId}
        400: validation failure or insufficient stock
        404: product not found
    """
    try:
        sale_request = parse_sale_request(request.get_json(silent=True))
        result = sales_service.create_sale(sale_request, admin_id=g.current_admin.id)
        return jsonify(result.to_dict()), 201

    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Server error"}), 500


@sales_bp.get("")
@require_auth
def list_sales_route():
    page = request.args.get("page", default=1, type=int)
    limit = request.args.get("limit", default=20, type=int)
    return jsonify(sales_service.list_sales(page=page, limit=limit)), 200


@sales_bp.get("/<sale_id>")
@require_auth
def get_sale_route(sale_id: str):
    try:
        sale = sales_service.get_sale(sale_id)
        return jsonify({"sale": sale.to_dict()}), 200
    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code


@sales_bp.post("/<sale_id>")
@require_auth
def return_sale_route(sale_id: str):
    """
    Reverse a whole sale: writes a RETURN record and restores stock.

    Returns:
        200: {message, returnId, billNo}
        400: malformed id, sale is a return, or already returned
        404: sale not found
    """
    try:
        result = return_service.process_return(sale_id, admin_id=g.current_admin.id)
        return jsonify({"message": "Return processed", **result.to_dict()}), 200

    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to process return for sale %s", sale_id)
        return jsonify({"error": "Server error"}), 500
