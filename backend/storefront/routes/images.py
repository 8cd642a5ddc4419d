from flask import Blueprint, g, request, make_response

from ..decorators import require_auth
from ..services import blob_service


images_bp = Blueprint("images", __name__, url_prefix="/api/images")


@images_bp.post("/upload")
@require_auth
def upload_images():
    """multipart/form-data with one or more "files" parts."""
    file_ids = blob_service.store_files(request.files.getlist("files"), admin_id=g.current_admin.id)
    return {"fileIds": file_ids}, 200


@images_bp.get("/<file_id>")
def get_image(file_id: str):
    stored = blob_service.get_file(file_id)
    response = make_response(stored.data)
    response.headers["Content-Type"] = stored.content_type
    response.headers["Content-Length"] = str(stored.size)
    response.headers["Cache-Control"] = "public, max-age=31536000"
    return response
