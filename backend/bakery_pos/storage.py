# Overview: Object storage for product, customer and staff images (local disk).

from __future__ import annotations

import os
import secrets

from flask import current_app
from werkzeug.utils import secure_filename

from .validation import ValidationError

BUCKETS = ("products", "customers", "shifts")
ALLOWED_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}
MAX_IMAGE_BYTES = 5 * 1024 * 1024


class LocalObjectStorage:
    """
    Bucket/path store rooted at UPLOAD_FOLDER.

    Stored names are random so uploads never overwrite each other; only the
    original extension is kept.
    """

    def __init__(self, root: str, public_base: str):
        self.root = root
        self.public_base = public_base.rstrip("/")

    def _bucket_dir(self, bucket: str) -> str:
        if bucket not in BUCKETS:
            raise ValidationError(f"bucket must be one of: {', '.join(BUCKETS)}")
        return os.path.join(self.root, bucket)

    def upload(self, bucket: str, filename: str, data: bytes) -> str:
        directory = self._bucket_dir(bucket)
        safe = secure_filename(filename or "")
        ext = safe.rsplit(".", 1)[-1].lower() if "." in safe else ""
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(f"Image must be one of: {', '.join(sorted(ALLOWED_EXTENSIONS))}")
        if not data:
            raise ValidationError("Empty upload")
        if len(data) > MAX_IMAGE_BYTES:
            raise ValidationError("Image is too large")

        os.makedirs(directory, exist_ok=True)
        path = f"{secrets.token_hex(8)}.{ext}"
        with open(os.path.join(directory, path), "wb") as fh:
            fh.write(data)
        return path

    def public_url(self, bucket: str, path: str) -> str:
        self._bucket_dir(bucket)
        return f"{self.public_base}/{bucket}/{path}"

    def local_path(self, bucket: str) -> str:
        return os.path.abspath(self._bucket_dir(bucket))


def get_storage() -> LocalObjectStorage:
    storage = current_app.extensions.get("bakery_pos.storage")
    if storage is None:
        root = current_app.config["UPLOAD_FOLDER"]
        if not os.path.isabs(root):
            root = os.path.join(current_app.instance_path, root)
        storage = LocalObjectStorage(root, current_app.config["PUBLIC_URL_BASE"])
        current_app.extensions["bakery_pos.storage"] = storage
    return storage
