# backend/storefront/config.py
from __future__ import annotations
import os


def _csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storefront.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///storefront.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Bill numbers look like REDA-20260101-00001
    BILL_PREFIX = os.environ.get("BILL_PREFIX", "REDA")

    # Report windows (daily/monthly/yearly) are cut in this timezone
    REPORT_TIMEZONE = os.environ.get("REPORT_TIMEZONE", "UTC")

    # Shared secret required to self-register an admin account
    ADMIN_REGISTER_CODE = os.environ.get("ADMIN_REGISTER_CODE", "")

    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "168"))

    MAX_UPLOAD_FILES = int(os.environ.get("MAX_UPLOAD_FILES", "5"))
    MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

    # Defaults served by /api/settings until an admin saves real values
    STORE_NAME = os.environ.get("STORE_NAME", "Reda Store")
    WHATSAPP_NUMBER = os.environ.get("WHATSAPP_NUMBER", "+94721126526")
    PUBLIC_BASE_URL = os.environ.get("PUBLIC_BASE_URL", "http://localhost:3000")

    CORS_ALLOWED_ORIGINS = _csv(
        os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        )
    )
