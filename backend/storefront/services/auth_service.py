# Overview: Admin accounts, password hashing and credential checks.

"""
Authentication Service

Every back-office action must be attributable to an admin account.
Passwords are hashed with bcrypt (cost factor 12) and must meet a minimum
strength rule. Session tokens are managed separately (see session_service.py).
"""

import hmac
import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..errors import Conflict, Forbidden, ValidationFailed
from ..models import Admin
from ..models.auth import ROLES, ROLE_CASHIER
from ..validation import EMAIL_RE
from .audit_service import append_audit_log, ACTION_LOGIN


class PasswordValidationError(ValidationFailed):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw is timing-safe; malformed hashes simply fail."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email) -> str:
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        raise ValidationFailed("Valid email required")
    return email.strip().lower()


def create_admin(*, name: str, email: str, password: str, role: str = ROLE_CASHIER) -> Admin:
    """
    Create an admin account. Used by registration and by the CLI.

    Raises ValidationFailed on bad input, Conflict if the email is taken.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationFailed("Name is required")
    if role not in ROLES:
        raise ValidationFailed(f"role must be one of: {', '.join(ROLES)}")
    if not isinstance(password, str):
        raise ValidationFailed("Password is required")

    email = normalize_email(email)
    if db.session.query(Admin).filter_by(email=email).first():
        raise Conflict("Email already registered")

    admin = Admin(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=role,
    )
    db.session.add(admin)
    db.session.commit()
    return admin


def register_admin(payload: dict) -> Admin:
    """Self-registration gated by the shared ADMIN_REGISTER_CODE."""
    expected = current_app.config.get("ADMIN_REGISTER_CODE") or ""
    supplied = payload.get("registerCode")
    if not expected or not isinstance(supplied, str) or not hmac.compare_digest(supplied, expected):
        raise Forbidden("Invalid register code")

    return create_admin(
        name=payload.get("name"),
        email=payload.get("email"),
        password=payload.get("password"),
        role=payload.get("role") or ROLE_CASHIER,
    )


def authenticate(email: str, password: str) -> Admin | None:
    """
    Returns the Admin if credentials are valid, None otherwise.

    A successful login appends a LOGIN audit entry.
    """
    if not isinstance(email, str) or not isinstance(password, str):
        return None

    admin = db.session.query(Admin).filter_by(email=email.strip().lower()).first()
    if not admin or not verify_password(password, admin.password_hash):
        return None

    append_audit_log(action=ACTION_LOGIN, admin_id=admin.id, data={"email": admin.email})
    db.session.commit()
    return admin
