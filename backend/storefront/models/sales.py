from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


SALE_TYPE_SALE = "SALE"
SALE_TYPE_RETURN = "RETURN"

DISCOUNT_TYPES = ("flat", "percent")
PAYMENT_METHODS = ("cash", "card", "online")


class Sale(db.Model):
    """
    Sale or return record. Immutable after insert.

    A RETURN is a compensating Sale row pointing at the SALE it reverses via
    original_sale_id. The unique constraint on original_sale_id allows at most
    one RETURN per SALE (NULLs, i.e. plain sales, do not collide).

    All amounts are snapshots taken at sale time and never recomputed from
    current product prices.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("bill_no", name="uq_sales_bill_no"),
        db.UniqueConstraint("original_sale_id", name="uq_sales_original_sale"),
        db.Index("ix_sales_type_created", "type", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable bill number (e.g., "REDA-20260101-00001", "RTN-REDA-...")
    bill_no = db.Column(db.String(80), nullable=False)

    type = db.Column(db.String(8), nullable=False, default=SALE_TYPE_SALE)
    original_sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True)

    subtotal = db.Column(db.Integer, nullable=False)
    discount = db.Column(db.Float, nullable=False, default=0)
    discount_type = db.Column(db.String(8), nullable=False, default="flat")
    discount_amount = db.Column(db.Integer, nullable=False, default=0)
    total = db.Column(db.Integer, nullable=False)
    total_cost = db.Column(db.Integer, nullable=False)
    profit = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(16), nullable=False)

    created_by = db.Column(db.Integer, db.ForeignKey("admins.id"), nullable=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    lines = db.relationship(
        "SaleLine",
        backref="sale",
        lazy=True,
        order_by="SaleLine.position",
        cascade="all, delete-orphan",
    )
    original_sale = db.relationship("Sale", remote_side=[id], uselist=False)

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "billNo": self.bill_no,
            "type": self.type,
            "originalSaleId": self.original_sale_id,
            "subtotal": self.subtotal,
            "discount": self.discount,
            "discountType": self.discount_type,
            "discountAmount": self.discount_amount,
            "total": self.total,
            "totalCost": self.total_cost,
            "profit": self.profit,
            "paymentMethod": self.payment_method,
            "createdBy": self.created_by,
            "createdAt": to_utc_z(self.created_at),
        }
        if include_lines:
            data["items"] = [line.to_dict() for line in self.lines]
        return data


class SaleLine(db.Model):
    """
    One line item on a sale, with name/sku/price snapshots.

    product_id is a plain column, not a foreign key: products may be deleted
    later while their sales history stays intact.
    """
    __tablename__ = "sale_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    product_id = db.Column(db.Integer, nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=False, default="")

    qty = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Integer, nullable=False)
    getting_price = db.Column(db.Integer, nullable=False)
    subtotal = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "productName": self.product_name,
            "sku": self.sku,
            "qty": self.qty,
            "unitPrice": self.unit_price,
            "gettingPrice": self.getting_price,
            "subtotal": self.subtotal,
        }


class BillSequence(db.Model):
    """
    Atomic per-day bill number sequence.

    WHY: Counting existing sales to derive the next number races under
    concurrent checkouts. One row per calendar day is incremented in place.
    """
    __tablename__ = "bill_sequences"
    __table_args__ = (
        db.UniqueConstraint("sequence_date", name="uq_bill_sequences_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sequence_date = db.Column(db.String(8), nullable=False)  # YYYYMMDD
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
