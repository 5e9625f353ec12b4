"""Object storage for report attachments.

Files are stored per organization: {upload_dir}/{organization_id}/{ulid}{ext}
and resolved through ``storage.public_base_url``. When no public base URL is
configured the store is considered unconfigured and the file is returned
inline as a ``data:`` URI instead.
"""

from __future__ import annotations

import asyncio
import base64
import io
import logging
import mimetypes
from pathlib import Path

from PIL import Image, ImageFilter, UnidentifiedImageError
from ulid import ULID

from echosphere.config import get_settings

logger = logging.getLogger(__name__)

_settings = get_settings()


def _base_dir() -> Path:
    return Path(_settings.storage.upload_dir)


def is_configured() -> bool:
    return bool(_settings.storage.public_base_url)


def _normalize_image(data: bytes, blur: bool) -> bytes | None:
    """Re-encode an image as JPEG (drops EXIF/GPS metadata), optionally blurred.

    Returns None when the bytes are not a readable image.
    """
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError):
        return None
    img = img.convert("RGB")
    if blur:
        img = img.filter(ImageFilter.GaussianBlur(radius=_settings.storage.blur_radius))
    buf = io.BytesIO()
    img.save(buf, "JPEG", quality=85)
    return buf.getvalue()


def to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def _save_sync(data: bytes, filename: str, organization_id: str, blur: bool) -> str:
    processed = _normalize_image(data, blur)
    if processed is not None:
        data, ext, mime_type = processed, ".jpg", "image/jpeg"
    else:
        ext = Path(filename or "").suffix.lower() or ".bin"
        mime_type = mimetypes.guess_type(f"file{ext}")[0] or "application/octet-stream"

    if not is_configured():
        logger.warning("Object storage not configured. Returning inline data URI for %s", filename)
        return to_data_uri(data, mime_type)

    org_dir = _base_dir() / organization_id
    org_dir.mkdir(parents=True, exist_ok=True)
    name = f"{ULID()}{ext}"
    (org_dir / name).write_bytes(data)
    base_url = _settings.storage.public_base_url.rstrip("/")
    return f"{base_url}/{organization_id}/{name}"


async def save_upload(data: bytes, filename: str, organization_id: str, blur: bool = False) -> str:
    """Store an attachment and return a publicly resolvable URL (or a data: URI)."""
    return await asyncio.to_thread(_save_sync, data, filename, organization_id, blur)


def decode_data_uri(uri: str) -> tuple[bytes, str]:
    """Split a ``data:<mime>;base64,<payload>`` URI into (bytes, mime type)."""
    header, _, payload = uri.partition(",")
    mime_type = header[5:].split(";")[0] if header.startswith("data:") else "image/jpeg"
    return base64.b64decode(payload), mime_type or "image/jpeg"
