from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data.

    SKU is the unique business key. stock_qty is the only field written
    concurrently (sale commit, return, restock) and is always changed with
    an SQL expression, never read-modify-write in Python.

    AVAILABILITY:
    A product is available when stock_qty > 0 AND is_out_of_stock is False.
    is_out_of_stock is an admin override that hides a product even if stock
    remains; restocking clears it.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.CheckConstraint("stock_qty >= 0", name="ck_products_stock_non_negative"),
        db.Index("ix_products_category_stock", "category", "stock_qty"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False, index=True)
    brand = db.Column(db.String(120), nullable=False)
    category = db.Column(db.String(120), nullable=False)
    sku = db.Column(db.String(64), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")

    # Whole currency units (LKR)
    getting_price = db.Column(db.Integer, nullable=False, default=0)
    selling_price = db.Column(db.Integer, nullable=False, default=0)

    stock_qty = db.Column(db.Integer, nullable=False, default=0)
    is_out_of_stock = db.Column(db.Boolean, nullable=False, default=False)

    # Ordered list of StoredFile ids (max 5)
    image_file_ids = db.Column(db.JSON, nullable=False, default=list)
    video_url = db.Column(db.String(500), nullable=False, default="")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} stock_qty={self.stock_qty}>"

    @property
    def is_available(self) -> bool:
        return (self.stock_qty or 0) > 0 and not self.is_out_of_stock

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "category": self.category,
            "sku": self.sku,
            "description": self.description,
            "gettingPrice": self.getting_price,
            "sellingPrice": self.selling_price,
            "stockQty": self.stock_qty,
            "isOutOfStock": self.is_out_of_stock,
            "isAvailable": self.is_available,
            "imageFileIds": list(self.image_file_ids or []),
            "videoUrl": self.video_url,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }

    def to_public_dict(self) -> dict:
        """Customer-facing projection: no cost price, no SKU."""
        data = self.to_dict()
        data.pop("gettingPrice")
        data.pop("sku")
        return data


class Category(db.Model):
    """Admin-defined category names, shown even when no product uses them yet."""
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}
