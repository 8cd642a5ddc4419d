# Overview: Binary image storage backing product and banner images.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import NotFound, ValidationFailed, parse_identifier
from ..models import StoredFile
from storefront.time_utils import utcnow


DEFAULT_CONTENT_TYPE = "image/jpeg"


def store_files(files, *, admin_id: int | None) -> list[str]:
    """
    Persist uploaded files (werkzeug FileStorage objects) in one transaction.

    Returns the new file ids as strings, in upload order.
    """
    max_files = current_app.config.get("MAX_UPLOAD_FILES", 5)
    max_bytes = current_app.config.get("MAX_UPLOAD_BYTES", 5 * 1024 * 1024)

    files = [f for f in files or [] if f and f.filename]
    if not files:
        raise ValidationFailed("No files provided")
    if len(files) > max_files:
        raise ValidationFailed(f"Maximum {max_files} files allowed")

    now = utcnow()
    stored: list[StoredFile] = []
    for upload in files:
        data = upload.read()
        if len(data) > max_bytes:
            raise ValidationFailed(f"File too large: {upload.filename}")
        row = StoredFile(
            filename=upload.filename,
            content_type=upload.mimetype or DEFAULT_CONTENT_TYPE,
            size=len(data),
            data=data,
            uploaded_by=admin_id,
            created_at=now,
        )
        db.session.add(row)
        stored.append(row)

    db.session.commit()
    return [str(row.id) for row in stored]


def get_file(file_id) -> StoredFile:
    row = db.session.get(StoredFile, parse_identifier(file_id, label="file ID"))
    if not row:
        raise NotFound("File not found")
    return row
