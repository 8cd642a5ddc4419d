from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


FEEDBACK_STATUSES = ("pending", "approved", "rejected")
STOCK_REQUEST_STATUSES = ("pending", "fulfilled", "rejected")


class StoreSettings(db.Model):
    """Single-row storefront settings (site name, WhatsApp number, banners)."""
    __tablename__ = "store_settings"

    id = db.Column(db.Integer, primary_key=True)
    site_name = db.Column(db.String(120), nullable=False)
    whatsapp_number = db.Column(db.String(32), nullable=False)
    banner_images = db.Column(db.JSON, nullable=False, default=list)
    slider_images = db.Column(db.JSON, nullable=False, default=list)
    address = db.Column(db.String(255), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False, default="")
    footer_text = db.Column(db.String(255), nullable=False, default="")
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "siteName": self.site_name,
            "whatsappNumber": self.whatsapp_number,
            "bannerImages": list(self.banner_images or []),
            "sliderImages": list(self.slider_images or []),
            "address": self.address,
            "email": self.email,
            "footerText": self.footer_text,
        }


class Feedback(db.Model):
    """Customer rating + comment; only approved entries are shown publicly."""
    __tablename__ = "feedback"
    __table_args__ = (
        db.Index("ix_feedback_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), nullable=False)
    message = db.Column(db.Text, nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "message": self.message,
            "rating": self.rating,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
        }


class StockRequest(db.Model):
    """Customer request for an item that is out of stock or not carried."""
    __tablename__ = "stock_requests"
    __table_args__ = (
        db.Index("ix_stock_requests_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), nullable=False)
    phone = db.Column(db.String(30), nullable=False)
    item_name = db.Column(db.String(200), nullable=False)
    details = db.Column(db.String(500), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="pending")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "itemName": self.item_name,
            "details": self.details,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class StoredFile(db.Model):
    """Uploaded binary (product/banner images). Identified by id only."""
    __tablename__ = "stored_files"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    filename = db.Column(db.String(255), nullable=False)
    content_type = db.Column(db.String(100), nullable=False)
    size = db.Column(db.Integer, nullable=False)
    data = db.Column(db.LargeBinary, nullable=False)
    uploaded_by = db.Column(db.Integer, db.ForeignKey("admins.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
