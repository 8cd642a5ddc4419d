# Overview: Request authentication and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets g.current_admin (the Admin row) and g.session_token (plaintext,
    used by logout). Returns 401 on a missing, unknown, revoked or expired token.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Unauthorized"}), 401

        admin = session_service.validate_session(token)
        if not admin:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_admin = admin
        g.session_token = token
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Restrict a route to the given roles. Must be stacked under @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            admin = getattr(g, "current_admin", None)
            if admin is None:
                return jsonify({"error": "Unauthorized"}), 401
            if admin.role not in roles:
                return jsonify({"error": "Forbidden"}), 403
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def optional_auth(f):
    """Attach g.current_admin when a valid token is present; never rejects."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        g.current_admin = session_service.validate_session(token) if token else None
        return f(*args, **kwargs)

    return decorated_function
