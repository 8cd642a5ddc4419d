# Overview: Catalog routes for the public storefront and the admin panel.

# backend/storefront/routes/products.py
"""
Product routes.

Public (no auth):
- GET /api/products                 available products, no cost price or SKU
- GET /api/products/categories     same list as GET /api/categories
- GET /api/products/<id>            one product plus a WhatsApp order link

Admin (auth required):
- PATCH  /api/products/<id>/stock   out-of-stock toggle / restock
- GET    /api/admin/products        full records, search by name/brand/SKU
- POST   /api/admin/products
- GET    /api/admin/products/<id>
- PUT    /api/admin/products/<id>
- DELETE /api/admin/products/<id>   OWNER or ADMIN only
"""
from flask import Blueprint, request, g

from ..decorators import require_auth, require_role
from ..models import Product
from ..models.auth import ROLE_ADMIN, ROLE_OWNER
from ..services import products_service, settings_service
from .categories import list_categories
from ..validation import ModelValidationPolicy, validate_payload, enforce_rules_product

PRODUCT_POLICY = ModelValidationPolicy(
    fields={
        "name": "name",
        "brand": "brand",
        "category": "category",
        "sku": "sku",
        "description": "description",
        "gettingPrice": "getting_price",
        "sellingPrice": "selling_price",
        "stockQty": "stock_qty",
        "isOutOfStock": "is_out_of_stock",
        "imageFileIds": "image_file_ids",
        "videoUrl": "video_url",
    },
    required_on_create=frozenset({"name", "brand", "category", "sku", "gettingPrice", "sellingPrice", "stockQty"}),
    non_blank=frozenset({"name", "brand", "category", "sku"}),
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")
admin_products_bp = Blueprint("admin_products", __name__, url_prefix="/api/admin/products")


def _flag(name: str) -> bool:
    return request.args.get(name, "false").lower() == "true"


@products_bp.get("")
def list_products():
    """
    Query params:
    - search: matches name, brand, description (case-insensitive)
    - category: exact category
    - includeOutOfStock: "true" to include unavailable products
    - page, limit: paging (default 1, 25)
    """
    return products_service.list_public_products(
        search=request.args.get("search"),
        category=request.args.get("category"),
        include_out_of_stock=_flag("includeOutOfStock"),
        page=request.args.get("page", type=int),
        limit=request.args.get("limit", type=int),
    )


@products_bp.get("/categories")
def list_product_categories():
    return list_categories()


@products_bp.get("/<product_id>")
def get_product(product_id: str):
    p = products_service.get_product(product_id)
    data = p.to_public_dict()
    data["whatsappUrl"] = products_service.whatsapp_order_url(p, settings_service.whatsapp_number())
    return {"product": data}, 200


@products_bp.patch("/<product_id>/stock")
@require_auth
def update_stock_route(product_id: str):
    p = products_service.update_stock(
        product_id=product_id,
        payload=request.get_json(silent=True),
        admin_id=g.current_admin.id,
    )
    return {"message": "Stock updated", "product": p.to_dict()}, 200


@admin_products_bp.get("")
@require_auth
def admin_list_products():
    return products_service.list_admin_products(
        search=request.args.get("search"),
        category=request.args.get("category"),
        out_of_stock=_flag("outOfStock"),
        page=request.args.get("page", type=int),
        limit=request.args.get("limit", type=int),
    )


@admin_products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    p = products_service.create_product(patch=patch, admin_id=g.current_admin.id)
    return {"message": "Product created", "id": p.id, "product": p.to_dict()}, 201


@admin_products_bp.get("/<product_id>")
@require_auth
def admin_get_product(product_id: str):
    return {"product": products_service.get_product(product_id).to_dict()}, 200


@admin_products_bp.put("/<product_id>")
@require_auth
def update_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)

    p = products_service.update_product(product_id=product_id, patch=patch, admin_id=g.current_admin.id)
    return {"message": "Product updated", "product": p.to_dict()}, 200


@admin_products_bp.delete("/<product_id>")
@require_auth
@require_role(ROLE_OWNER, ROLE_ADMIN)
def delete_product_route(product_id: str):
    products_service.delete_product(product_id=product_id, admin_id=g.current_admin.id)
    return {"message": "Product deleted"}, 200
