"""Local-disk storage for uploaded spare-part images."""

from __future__ import annotations

import io
import logging
import re
import time
from pathlib import Path

from fastapi import HTTPException, UploadFile
from PIL import Image

from ..config import settings

PUBLIC_PREFIX = "/uploads"
_LOGGER = logging.getLogger(__name__)
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def get_upload_root() -> Path:
    """Return the upload directory, creating it if needed."""
    root = settings.UPLOAD_DIR
    root.mkdir(parents=True, exist_ok=True)
    return root


def _safe_filename(filename: str | None) -> str:
    if not filename or len(filename) > 200:
        raise HTTPException(status_code=400, detail="invalid filename")
    # keep the base name only; clients may send a full path
    base = Path(filename.replace("\\", "/")).name
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    if not cleaned:
        raise HTTPException(status_code=400, detail="invalid filename")
    return cleaned


def _verify_image(payload: bytes) -> None:
    try:
        Image.open(io.BytesIO(payload)).verify()
    except Exception:
        raise HTTPException(status_code=415, detail="unsupported file content; expected an image")


def stored_name(filename: str, now_ms: int | None = None) -> str:
    """Return the on-disk name: `<epoch-millis>-<sanitised name>`."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{stamp}-{_safe_filename(filename)}"


def save_image(upload: UploadFile) -> str:
    """Validate and store `upload`, returning its public path under `/uploads`."""
    name = stored_name(upload.filename)
    payload = upload.file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(payload) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=400, detail="file too large")
    if not payload:
        raise HTTPException(status_code=400, detail="empty file")
    _verify_image(payload)
    target = get_upload_root() / name
    target.write_bytes(payload)
    _LOGGER.info("upload_stored name=%s bytes=%d", name, len(payload))
    return f"{PUBLIC_PREFIX}/{name}"
