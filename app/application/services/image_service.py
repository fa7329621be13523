"""Product image uploads: validation, storage keys, batch writes."""

import io
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import structlog
from PIL import Image

from app.config import get_settings
from app.core.exceptions import StorageException, ValidationException
from app.infrastructure.storage import StorageBackend

settings = get_settings()
logger = structlog.get_logger(__name__)

PRODUCT_IMAGE_PREFIX = "products"
AVATAR_PREFIX = "avatars"
AVATAR_MIME_TYPES = ("image/jpeg", "image/png", "image/gif")

# Pillow format name -> (MIME type, stored extension)
IMAGE_FORMATS = {
    "JPEG": ("image/jpeg", "jpg"),
    "PNG": ("image/png", "png"),
    "GIF": ("image/gif", "gif"),
    "BMP": ("image/bmp", "bmp"),
    "WEBP": ("image/webp", "webp"),
}

_ALNUM = string.ascii_letters + string.digits


def detect_image_type(content: bytes) -> Optional[Tuple[str, str]]:
    """
    Identify an image from its bytes.

    Returns (mime_type, extension) for a readable image in one of the
    accepted formats, otherwise None. The filename and the client's
    Content-Type header are never consulted.
    """
    if not content:
        return None
    try:
        with Image.open(io.BytesIO(content)) as image:
            kind = image.format
            image.verify()
    except Exception:
        return None
    return IMAGE_FORMATS.get(kind)


@dataclass
class UploadedImage:
    """An uploaded file, fully buffered in memory."""

    filename: str
    content_type: Optional[str]
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def detected(self) -> Optional[Tuple[str, str]]:
        return detect_image_type(self.content)

    @property
    def mime_type(self) -> Optional[str]:
        detected = self.detected
        return detected[0] if detected else None

    @property
    def extension(self) -> Optional[str]:
        detected = self.detected
        return detected[1] if detected else None


def random_alnum(length: int) -> str:
    return "".join(secrets.choice(_ALNUM) for _ in range(length))


def generate_image_key(extension: str, now: Optional[datetime] = None) -> str:
    """products/YYYYMMDD_HHMMSS_<8 alnum>.<ext>"""
    now = now or datetime.now()
    return f"{PRODUCT_IMAGE_PREFIX}/{now:%Y%m%d_%H%M%S}_{random_alnum(8)}.{extension}"


def validate_images(
    files: Sequence[UploadedImage],
    field: str = "images",
    allowed_types: Optional[Iterable[str]] = None,
    indexed: bool = True,
) -> None:
    """Reject the whole batch before anything is written."""
    max_bytes = settings.MAX_IMAGE_SIZE_KB * 1024
    allowed = tuple(allowed_types) if allowed_types else None
    errors: Dict[str, List[str]] = {}

    for index, upload in enumerate(files):
        key = f"{field}.{index}" if indexed else field
        if upload.size == 0:
            errors.setdefault(key, []).append(f"The {key} failed to upload.")
            continue
        if upload.size > max_bytes:
            errors.setdefault(key, []).append(
                f"The {key} must not be greater than {settings.MAX_IMAGE_SIZE_KB} kilobytes."
            )
            continue
        mime_type = upload.mime_type
        if mime_type is None:
            errors.setdefault(key, []).append(f"The {key} must be an image.")
        elif allowed and mime_type not in allowed:
            kinds = ", ".join(t.split("/", 1)[1] for t in allowed)
            errors.setdefault(key, []).append(f"The {key} must be a file of type: {kinds}.")

    if errors:
        raise ValidationException(errors)


def store_product_images(storage: StorageBackend, files: Sequence[UploadedImage]) -> List[str]:
    """
    Write a batch of product images and return their keys in upload order.

    Writes are fail-fast; if any write fails, the objects already written
    for this batch are removed before the error propagates.
    """
    validate_images(files)

    keys: List[str] = []
    try:
        for upload in files:
            key = generate_image_key(upload.extension)
            storage.put(key, upload.content, upload.mime_type)
            keys.append(key)
    except Exception:
        logger.error("Image batch failed", written=len(keys), total=len(files))
        discard(storage, keys)
        raise

    if keys:
        logger.info("Product images stored", count=len(keys))
    return keys


def discard(storage: StorageBackend, keys: Iterable[str]) -> None:
    """Best-effort removal of objects written by a failed operation."""
    for key in keys:
        try:
            storage.delete(key)
        except StorageException:
            logger.warning("Could not remove orphaned object", key=key)


def store_avatar(storage: StorageBackend, upload: UploadedImage) -> str:
    validate_images([upload], field="avatar", allowed_types=AVATAR_MIME_TYPES, indexed=False)
    key = f"{AVATAR_PREFIX}/{secrets.token_hex(16)}.{upload.extension}"
    storage.put(key, upload.content, upload.mime_type)
    return key
