from flask import Blueprint, request

from ..decorators import require_auth
from ..services import settings_service


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
def get_settings():
    return {"settings": settings_service.get_settings()}, 200


@settings_bp.put("")
@require_auth
def save_settings():
    settings = settings_service.save_settings(request.get_json(silent=True))
    return {"message": "Settings saved", "settings": settings}, 200
