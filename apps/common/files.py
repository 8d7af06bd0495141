import logging
import time
import uuid
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import PurePosixPath
from typing import Iterable, List, Optional, Tuple
from urllib.parse import unquote, urlparse

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import UploadedFile
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

MIB = 1024 * 1024

# (mime, extension) for each accepted magic number
_SIGNATURES: List[Tuple[bytes, str, str]] = [
    (b"\xff\xd8\xff", "image/jpeg", "jpg"),
    (b"\x89PNG\r\n\x1a\n", "image/png", "png"),
    (b"GIF87a", "image/gif", "gif"),
    (b"GIF89a", "image/gif", "gif"),
    (b"%PDF-", "application/pdf", "pdf"),
]

EXTENSION_MIME_TYPES = {
    "pdf": "application/pdf",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
}


@dataclass
class IngestResult:
    urls: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def sniff_mime(header: bytes) -> Optional[Tuple[str, str]]:
    """Return ``(mime, ext)`` from the leading bytes, or None when unsupported."""
    for magic, mime, ext in _SIGNATURES:
        if header.startswith(magic):
            return mime, ext
    if len(header) >= 12 and header[:4] == b"RIFF" and header[8:12] == b"WEBP":
        return "image/webp", "webp"
    return None


def mime_from_extension(name: str) -> Optional[str]:
    ext = PurePosixPath(name).suffix.lower().lstrip(".")
    return EXTENSION_MIME_TYPES.get(ext)


def validate_upload(upload: UploadedFile) -> Tuple[bool, str, Optional[Tuple[str, str]]]:
    """Size-check and content-sniff one upload; the declared name is ignored."""
    max_bytes = int(settings.MAX_UPLOAD_SIZE_MB * MIB)
    if upload.size > max_bytes:
        return False, f"File too large (max {settings.MAX_UPLOAD_SIZE_MB:g}MB per file)", None

    upload.seek(0)
    header = upload.read(16)
    upload.seek(0)
    sniffed = sniff_mime(header)
    if sniffed is None or sniffed[0] not in settings.SUPPORTED_UPLOAD_TYPES:
        return False, "Unsupported file type (allowed: JPEG, PNG, WebP, GIF, PDF)", None

    if sniffed[0].startswith("image/"):
        try:
            Image.open(BytesIO(upload.read())).verify()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            return False, f"Corrupt image: {e}", None
        finally:
            upload.seek(0)
    return True, "ok", sniffed


def upload_key(user_id, ext: str) -> str:
    """Collision-resistant, user-scoped storage key."""
    millis = int(time.time() * 1000)
    return f"{settings.UPLOADS_PREFIX}/{user_id}/{millis}-{uuid.uuid4().hex[:12]}.{ext}"


def save_upload(upload: UploadedFile, user_id, ext: str) -> str:
    key = upload_key(user_id, ext)
    upload.seek(0)
    saved = default_storage.save(key, ContentFile(b"".join(upload.chunks())))
    return saved


def ingest_uploads(files: Iterable[UploadedFile], user_id, build_url) -> IngestResult:
    """Validate and store each file independently.

    One bad file never aborts its siblings: successes land in ``urls`` and each
    failure adds a ``"<name>: <reason>"`` line to ``errors``.
    """
    result = IngestResult()
    for upload in files:
        name = getattr(upload, "name", None) or "file"
        try:
            ok, msg, sniffed = validate_upload(upload)
            if not ok:
                result.errors.append(f"{name}: {msg}")
                continue
            key = save_upload(upload, user_id, sniffed[1])
            url = build_url(default_storage.url(key))
            result.urls.append(url)
            logger.info("stored upload user=%s name=%s key=%s", user_id, name, key)
        except Exception as e:
            logger.exception("upload failed user=%s name=%s", user_id, name)
            result.errors.append(f"{name}: {e}")
    return result


def storage_key_from_url(url: str) -> Optional[str]:
    """Map a public upload URL back to its storage key.

    Returns None for URLs that do not point into the uploads area.
    """
    path = unquote(urlparse(url).path or "")
    marker = f"/{settings.UPLOADS_PREFIX}/"
    idx = path.find(marker)
    if idx < 0:
        return None
    rest = path[idx + len(marker):]
    if not rest or ".." in PurePosixPath(rest).parts:
        return None
    return f"{settings.UPLOADS_PREFIX}/{rest}"


def key_owner(key: str) -> Optional[str]:
    parts = PurePosixPath(key).parts
    return parts[1] if len(parts) >= 3 else None

