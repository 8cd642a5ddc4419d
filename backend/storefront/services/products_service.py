# backend/storefront/services/products_service.py
"""
Products Service

Catalog reads for the public storefront and the admin panel, plus the
audited admin writes (create, update, delete, stock override).

Public listings never expose cost price or SKU; see Product.to_public_dict().
"""
from __future__ import annotations

from urllib.parse import quote

from flask import current_app
from sqlalchemy import func, or_

from ..extensions import db
from ..errors import Conflict, ProductNotFound, ValidationFailed, parse_identifier
from ..models import Product
from ..validation import non_negative_int
from storefront.time_utils import utcnow
from .audit_service import (
    append_audit_log,
    ACTION_CREATE_PRODUCT,
    ACTION_DELETE_PRODUCT,
    ACTION_UPDATE_PRODUCT,
    ACTION_UPDATE_STOCK,
)

PRODUCT_MUTABLE_FIELDS = {
    "name", "brand", "category", "sku", "description",
    "getting_price", "selling_price", "stock_qty", "is_out_of_stock",
    "image_file_ids", "video_url",
}

PUBLIC_PAGE_SIZE = 25
ADMIN_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _page_args(page, limit, default_limit: int) -> tuple[int, int]:
    page = page if isinstance(page, int) and page > 0 else 1
    limit = limit if isinstance(limit, int) and limit > 0 else default_limit
    return page, min(limit, MAX_PAGE_SIZE)


def _search_filter(search: str, *columns):
    needle = search.strip().lower()
    return or_(*(func.lower(col).contains(needle, autoescape=True) for col in columns))


def _paginate(query, page: int, limit: int, serialize) -> dict:
    total = query.count()
    products = (
        query.order_by(Product.created_at.desc(), Product.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "products": [serialize(p) for p in products],
        "total": total,
        "page": page,
        "limit": limit,
    }


def list_public_products(
    *,
    search: str | None = None,
    category: str | None = None,
    include_out_of_stock: bool = False,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    """
    Storefront listing, newest first.

    Only available products (stock > 0 and not manually flagged) unless
    include_out_of_stock is set. Search matches name, brand and description.
    """
    page, limit = _page_args(page, limit, PUBLIC_PAGE_SIZE)
    query = db.session.query(Product)

    if not include_out_of_stock:
        query = query.filter(Product.stock_qty > 0, Product.is_out_of_stock.is_(False))
    if search and search.strip():
        query = query.filter(_search_filter(search, Product.name, Product.brand, Product.description))
    if category:
        query = query.filter(Product.category == category)

    return _paginate(query, page, limit, Product.to_public_dict)


def list_admin_products(
    *,
    search: str | None = None,
    category: str | None = None,
    out_of_stock: bool = False,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    """Back-office listing with cost price and SKU; search matches name, brand and SKU."""
    page, limit = _page_args(page, limit, ADMIN_PAGE_SIZE)
    query = db.session.query(Product)

    if out_of_stock:
        query = query.filter(Product.stock_qty <= 0)
    if search and search.strip():
        query = query.filter(_search_filter(search, Product.name, Product.brand, Product.sku))
    if category:
        query = query.filter(Product.category == category)

    return _paginate(query, page, limit, Product.to_dict)


def get_product(product_id) -> Product:
    p = db.session.get(Product, parse_identifier(product_id))
    if not p:
        raise ProductNotFound("Not found")
    return p


def whatsapp_order_url(product: Product, whatsapp_number: str) -> str:
    """wa.me deep link with a prefilled order message for one product."""
    digits = "".join(ch for ch in whatsapp_number or "" if ch.isdigit())
    base_url = current_app.config.get("PUBLIC_BASE_URL", "").rstrip("/")
    message = (
        f"Hi! I'm interested in:\n*{product.name}*\n"
        f"Price: Rs. {product.selling_price:,}\n\n"
        f"Product link: {base_url}/product/{product.id}\n\n"
        "Please confirm availability."
    )
    return f"https://wa.me/{digits}?text={quote(message)}"


def _ensure_unique_sku(sku: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product.id).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise Conflict("SKU already exists")


def create_product(*, patch: dict, admin_id: int | None) -> Product:
    """
    Create product from a validated patch dict.

    Raises Conflict if the SKU is taken.
    """
    _ensure_unique_sku(patch["sku"])

    now = utcnow()
    p = Product(created_at=now, updated_at=now)
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.flush()  # p.id needed for the audit entry

    append_audit_log(
        action=ACTION_CREATE_PRODUCT,
        admin_id=admin_id,
        data={"productId": p.id, "name": p.name},
    )
    db.session.commit()
    return p


def update_product(*, product_id, patch: dict, admin_id: int | None) -> Product:
    p = get_product(product_id)

    if "sku" in patch and patch["sku"] != p.sku:
        _ensure_unique_sku(patch["sku"], exclude_id=p.id)

    apply_product_patch(p, patch)
    p.updated_at = utcnow()

    append_audit_log(
        action=ACTION_UPDATE_PRODUCT,
        admin_id=admin_id,
        data={"productId": p.id, "fields": sorted(patch.keys())},
    )
    db.session.commit()
    return p


def delete_product(*, product_id, admin_id: int | None) -> None:
    """Hard delete. Sale lines keep their name/sku snapshots."""
    p = get_product(product_id)
    data = {"productId": p.id, "name": p.name, "sku": p.sku}

    db.session.delete(p)
    append_audit_log(action=ACTION_DELETE_PRODUCT, admin_id=admin_id, data=data)
    db.session.commit()


def update_stock(*, product_id, payload: dict, admin_id: int | None) -> Product:
    """
    Manual stock control.

    - isOutOfStock (bool): set or clear the manual out-of-stock flag
    - stockQty (int >= 0): restock to an absolute quantity; clears the flag
    """
    if not isinstance(payload, dict):
        raise ValidationFailed("Invalid JSON payload")

    changes: dict = {}
    if "isOutOfStock" in payload:
        if not isinstance(payload["isOutOfStock"], bool):
            raise ValidationFailed("isOutOfStock must be true or false")
        changes["is_out_of_stock"] = payload["isOutOfStock"]
    if "stockQty" in payload:
        changes["stock_qty"] = non_negative_int("stockQty", payload["stockQty"])
        changes["is_out_of_stock"] = False

    if not changes:
        raise ValidationFailed("Provide isOutOfStock and/or stockQty")

    p = get_product(product_id)
    apply_product_patch(p, changes)
    p.updated_at = utcnow()

    append_audit_log(
        action=ACTION_UPDATE_STOCK,
        admin_id=admin_id,
        data={"productId": p.id, **changes},
    )
    db.session.commit()
    return p
