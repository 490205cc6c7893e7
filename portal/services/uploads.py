# portal/services/uploads.py
from pathlib import Path
from werkzeug.utils import secure_filename
from flask import current_app

ASSET_CLIENT = "ClientAsset"
ASSET_DELIVERABLE = "Deliverable"

DEFAULT_EXTENSIONS = {"pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "txt", "zip", "png", "jpg", "jpeg"}


def allowed_ext(filename: str) -> bool:
    exts = current_app.config.get("ALLOWED_EXTENSIONS") or DEFAULT_EXTENSIONS
    suffix = Path(filename).suffix.lower().lstrip(".")
    return bool(suffix) and suffix in exts


def prepare_upload(file_storage):
    """
    Validates a single uploaded file and returns (safe_name, stream, mimetype)
    ready to be forwarded to the backend as multipart.
    """
    if file_storage is None or not file_storage.filename:
        raise ValueError("Choose a file to upload.")
    safe_name = secure_filename(file_storage.filename)
    if not safe_name:
        raise ValueError("Empty filename")
    if not allowed_ext(safe_name):
        raise ValueError(f"Unsupported file type: {file_storage.filename}")
    return safe_name, file_storage.stream, file_storage.mimetype or "application/octet-stream"


def split_assets(assets):
    """Client uploads and agent deliverables, in upload order."""
    assets = [a for a in (assets or []) if isinstance(a, dict)]
    client = [a for a in assets if a.get("type") == ASSET_CLIENT]
    deliverables = [a for a in assets if a.get("type") == ASSET_DELIVERABLE]
    return client, deliverables
