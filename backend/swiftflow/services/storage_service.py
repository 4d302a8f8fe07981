# Overview: Binary uploads (logos, product media, payment proofs) with a public-URL contract.

from __future__ import annotations

import os
import uuid

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..validation import ValidationError


IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}
VIDEO_EXTENSIONS = {"mp4", "mov", "webm"}

FOLDER_LOGOS = "logos"
FOLDER_PRODUCTS = "products"
FOLDER_PROOFS = "proofs"


class UploadError(Exception):
    """The object store rejected the write; the caller may retry."""


def _kind_for(extension: str, kinds: tuple[str, ...]) -> str:
    if "image" in kinds and extension in IMAGE_EXTENSIONS:
        return "image"
    if "video" in kinds and extension in VIDEO_EXTENSIONS:
        return "video"
    allowed = sorted(
        (IMAGE_EXTENSIONS if "image" in kinds else set()) | (VIDEO_EXTENSIONS if "video" in kinds else set())
    )
    raise ValidationError(f"Unsupported file type .{extension or '?'}; allowed: {', '.join(allowed)}")


def public_url(relative_path: str) -> str:
    base = current_app.config.get("PUBLIC_UPLOAD_BASE_URL", "/uploads").rstrip("/")
    return f"{base}/{relative_path}"


def save_upload(
    file: FileStorage | None,
    *,
    folder: str,
    owner_id: str,
    kinds: tuple[str, ...] = ("image",),
) -> dict:
    """
    Store an uploaded file under UPLOAD_FOLDER/<folder>/<owner_id>/ with a
    random name and return {"url", "kind", "path"}.

    Raises ValidationError for a missing or unsupported file and UploadError
    when the write itself fails.
    """
    if file is None or not file.filename:
        raise ValidationError("A file is required")

    original = secure_filename(file.filename)
    extension = original.rsplit(".", 1)[-1].lower() if "." in original else ""
    kind = _kind_for(extension, kinds)

    relative_dir = os.path.join(folder, secure_filename(owner_id))
    filename = f"{uuid.uuid4().hex}.{extension}"
    relative_path = os.path.join(relative_dir, filename).replace(os.sep, "/")

    root = current_app.config["UPLOAD_FOLDER"]
    try:
        os.makedirs(os.path.join(root, relative_dir), exist_ok=True)
        file.save(os.path.join(root, relative_dir, filename))
    except OSError as exc:
        current_app.logger.exception("Upload to %s failed", relative_path)
        raise UploadError("Upload failed, please try again") from exc

    current_app.logger.info("Stored %s upload %s", kind, relative_path)
    return {"url": public_url(relative_path), "kind": kind, "path": relative_path}
