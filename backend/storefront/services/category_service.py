# Overview: Category names shown in the storefront filter.

from __future__ import annotations

from ..extensions import db
from ..errors import ValidationFailed
from ..models import Category, Product


def list_categories() -> list[str]:
    """
    Sorted union of categories used by in-stock products and the admin's
    custom categories. Blank names are dropped.
    """
    from_products = (
        db.session.query(Product.category)
        .filter(Product.stock_qty > 0)
        .distinct()
        .all()
    )
    custom = db.session.query(Category.name).all()

    names = {
        (name or "").strip()
        for (name,) in [*from_products, *custom]
        if isinstance(name, str)
    }
    return sorted(n for n in names if n)


def _require_name(name) -> str:
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        raise ValidationFailed("Name required")
    return name


def add_category(name) -> Category:
    """Idempotent: adding an existing name returns the existing row."""
    name = _require_name(name)
    existing = db.session.query(Category).filter_by(name=name).first()
    if existing:
        return existing

    category = Category(name=name)
    db.session.add(category)
    db.session.commit()
    return category


def delete_category(name) -> bool:
    """Removes a custom category only; product categories are untouched."""
    name = _require_name(name)
    deleted = db.session.query(Category).filter_by(name=name).delete()
    db.session.commit()
    return bool(deleted)
