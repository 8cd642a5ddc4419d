# Overview: Single-row storefront settings with configured defaults.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import ValidationFailed
from ..models import StoreSettings
from ..validation import EMAIL_RE, ModelValidationPolicy, validate_payload


SETTINGS_POLICY = ModelValidationPolicy(
    fields={
        "siteName": "site_name",
        "whatsappNumber": "whatsapp_number",
        "bannerImages": "banner_images",
        "sliderImages": "slider_images",
        "address": "address",
        "email": "email",
        "footerText": "footer_text",
    },
    required_on_create=frozenset({"siteName", "whatsappNumber"}),
    non_blank=frozenset({"siteName", "whatsappNumber"}),
)


def default_settings() -> dict:
    store_name = current_app.config.get("STORE_NAME", "Reda Store")
    return {
        "siteName": store_name,
        "whatsappNumber": current_app.config.get("WHATSAPP_NUMBER", ""),
        "bannerImages": [],
        "sliderImages": [],
        "address": "Colombo, Sri Lanka",
        "email": "info@redastore.lk",
        "footerText": f"© 2026 {store_name}. All rights reserved.",
    }


def get_settings() -> dict:
    row = db.session.query(StoreSettings).order_by(StoreSettings.id.asc()).first()
    return row.to_dict() if row else default_settings()


def save_settings(payload: dict) -> dict:
    """
    Replace the stored settings (upsert).

    siteName and whatsappNumber are required; email must be valid or empty.
    Omitted optional fields fall back to empty values.
    """
    patch = validate_payload(model=StoreSettings, payload=payload, policy=SETTINGS_POLICY, partial=False)

    email = patch.get("email") or ""
    if email and not EMAIL_RE.match(email):
        raise ValidationFailed("Invalid email")

    row = db.session.query(StoreSettings).order_by(StoreSettings.id.asc()).first()
    if row is None:
        row = StoreSettings()
        db.session.add(row)

    row.site_name = patch["site_name"]
    row.whatsapp_number = patch["whatsapp_number"]
    row.banner_images = patch.get("banner_images") or []
    row.slider_images = patch.get("slider_images") or []
    row.address = patch.get("address") or ""
    row.email = email
    row.footer_text = patch.get("footer_text") or ""

    db.session.commit()
    return row.to_dict()


def whatsapp_number() -> str:
    return get_settings()["whatsappNumber"]
