from io import BytesIO

from storefront.models import StoredFile


def _upload(client, headers, *files):
    data = {"files": [(BytesIO(content), name, mimetype) for name, content, mimetype in files]}
    return client.post("/api/images/upload", data=data, headers=headers, content_type="multipart/form-data")


def test_upload_and_serve(client, admin_headers, db_session):
    resp = _upload(client, admin_headers, ("pad.png", b"\x89PNG-bytes", "image/png"))

    assert resp.status_code == 200
    (file_id,) = resp.get_json()["fileIds"]

    served = client.get(f"/api/images/{file_id}")
    assert served.status_code == 200
    assert served.data == b"\x89PNG-bytes"
    assert served.headers["Content-Type"] == "image/png"
    assert served.headers["Cache-Control"] == "public, max-age=31536000"


def test_upload_keeps_order(client, admin_headers, db_session):
    resp = _upload(
        client,
        admin_headers,
        ("a.jpg", b"a", "image/jpeg"),
        ("b.jpg", b"b", "image/jpeg"),
    )
    ids = resp.get_json()["fileIds"]
    names = [db_session.get(StoredFile, int(i)).filename for i in ids]
    assert names == ["a.jpg", "b.jpg"]


def test_upload_requires_files(client, admin_headers):
    resp = client.post("/api/images/upload", data={}, headers=admin_headers, content_type="multipart/form-data")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "No files provided"


def test_upload_limits(app, client, admin_headers):
    too_many = [(f"{i}.jpg", b"x", "image/jpeg") for i in range(6)]
    resp = _upload(client, admin_headers, *too_many)
    assert resp.get_json()["error"] == "Maximum 5 files allowed"

    app.config["MAX_UPLOAD_BYTES"] = 4
    try:
        resp = _upload(client, admin_headers, ("big.jpg", b"12345", "image/jpeg"))
    finally:
        app.config["MAX_UPLOAD_BYTES"] = 5 * 1024 * 1024
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "File too large: big.jpg"


def test_upload_requires_auth(client, db_session):
    resp = _upload(client, {}, ("a.jpg", b"a", "image/jpeg"))
    assert resp.status_code == 401


def test_unknown_file(client, db_session):
    assert client.get("/api/images/12345").status_code == 404
    assert client.get("/api/images/not-a-number").status_code == 400
