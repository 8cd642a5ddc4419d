# Overview: Admin registration, login/logout and current-admin lookup.

# backend/storefront/routes/auth.py
"""
Authentication API routes

- Registration requires the shared ADMIN_REGISTER_CODE
- Login issues a bearer token; only its SHA-256 hash is stored
- Logout revokes the presented token
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth
from ..errors import StorefrontError
from ..services import auth_service
from ..services import session_service
from storefront.time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """
    Request body: {name, email, password, role?, registerCode}

    Returns:
        201: {message, admin, token}
        400: invalid input
        403: wrong register code
        409: email already registered
    """
    try:
        data = request.get_json(silent=True) or {}
        admin = auth_service.register_admin(data)
        _, token = session_service.create_session(admin.id)

        return jsonify({
            "message": "Registered successfully",
            "admin": admin.to_dict(),
            "token": token,
        }), 201

    except StorefrontError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to register admin")
        return jsonify({"error": "Server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate with {email, password} and create a session token.

    Token must be sent as "Authorization: Bearer <token>" on admin routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not email or not password:
            return jsonify({"error": "email and password required"}), 400

        admin = auth_service.authenticate(email, password)
        if not admin:
            return jsonify({"error": "Invalid email or password"}), 401

        session, token = session_service.create_session(admin.id)

        return jsonify({
            "admin": admin.to_dict(),
            "token": token,
            "expiresAt": to_utc_z(session.expires_at),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login admin")
        return jsonify({"error": "Server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.session_token)
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"admin": g.current_admin.to_dict()}), 200
