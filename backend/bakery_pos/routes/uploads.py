# Overview: Image upload and download routes backed by the object storage.

from flask import Blueprint, jsonify, request, send_from_directory

from ..decorators import require_auth
from ..storage import get_storage
from ..validation import ValidationError

uploads_bp = Blueprint("uploads", __name__)


@uploads_bp.post("/api/uploads/<bucket>")
@require_auth
def upload_route(bucket: str):
    """
    Multipart form with a single `file` field.

    Returns {path, url}; store the url on the product, customer or shift.
    """
    upload = request.files.get("file")
    if upload is None:
        return jsonify({"error": "file is required"}), 400

    storage = get_storage()
    try:
        path = storage.upload(bucket, upload.filename, upload.read())
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"path": path, "url": storage.public_url(bucket, path)}), 201


@uploads_bp.get("/uploads/<bucket>/<path:path>")
def download_route(bucket: str, path: str):
    try:
        directory = get_storage().local_path(bucket)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 404
    return send_from_directory(directory, path)
