"""
Storage backends addressed by path-like keys.

- LocalStorage: a directory on disk ("public" disk for avatars and exports,
  optionally product images in development).
- S3Storage: any S3-compatible bucket (Cloudflare R2, MinIO, AWS S3).
"""

import logging
import mimetypes
from functools import lru_cache
from pathlib import Path
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import get_settings
from app.core.exceptions import StorageException

settings = get_settings()
logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """Contract shared by every disk."""

    def put(self, key: str, content: bytes, content_type: Optional[str] = None) -> None:
        ...

    def get(self, key: str) -> bytes:
        ...

    def exists(self, key: str) -> bool:
        ...

    def delete(self, key: str) -> None:
        ...

    def mime_type(self, key: str) -> Optional[str]:
        ...

    def url(self, key: str) -> str:
        ...


def _guess_mime_type(key: str) -> Optional[str]:
    return mimetypes.guess_type(key)[0]


class LocalStorage:
    """Filesystem disk rooted at ``root``; objects are served from ``base_url``."""

    def __init__(self, root: str, base_url: str):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        path = (self.root / key.lstrip("/")).resolve()
        # Keys like "../secrets" must not escape the disk
        if path != self.root and self.root not in path.parents:
            raise FileNotFoundError(key)
        return path

    def put(self, key: str, content: bytes, content_type: Optional[str] = None) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            logger.error("Local write failed for %s: %s", key, e)
            raise StorageException(f"Could not write {key}") from e

    def get(self, key: str) -> bytes:
        return self._path(key).read_bytes()

    def exists(self, key: str) -> bool:
        try:
            return self._path(key).is_file()
        except FileNotFoundError:
            return False

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except FileNotFoundError:
            return
        except OSError as e:
            logger.error("Local delete failed for %s: %s", key, e)
            raise StorageException(f"Could not delete {key}") from e

    def mime_type(self, key: str) -> Optional[str]:
        return _guess_mime_type(key)

    def url(self, key: str) -> str:
        return f"{self.base_url}/{key.lstrip('/')}"


class S3Storage:
    """
    S3-compatible bucket.

    Objects are private; product images are served through the API proxy,
    so ``url`` only reports the raw bucket location.
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        region: str = "auto",
        client=None,
    ):
        self.bucket = bucket
        self.endpoint_url = endpoint_url or None
        self.access_key = access_key or None
        self.secret_key = secret_key or None
        self.region = region
        self._client = client

    @property
    def client(self):
        """Lazy-load S3 client."""
        if self._client is None:
            config = Config(
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "standard"},
            )
            self._client = boto3.client(
                "s3",
                endpoint_url=self.endpoint_url,
                aws_access_key_id=self.access_key,
                aws_secret_access_key=self.secret_key,
                region_name=self.region,
                config=config,
            )
        return self._client

    def put(self, key: str, content: bytes, content_type: Optional[str] = None) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type or _guess_mime_type(key) or "application/octet-stream",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 upload failed for %s: %s", key, e)
            raise StorageException(f"Could not upload {key}") from e
        logger.info("Uploaded object: %s", key)

    def get(self, key: str) -> bytes:
        response = self.client.get_object(Bucket=self.bucket, Key=key)
        return response["Body"].read()

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            if error_code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 delete failed for %s: %s", key, e)
            raise StorageException(f"Could not delete {key}") from e
        logger.info("Deleted object: %s", key)

    def mime_type(self, key: str) -> Optional[str]:
        response = self.client.head_object(Bucket=self.bucket, Key=key)
        return response.get("ContentType") or _guess_mime_type(key)

    def url(self, key: str) -> str:
        endpoint = (self.endpoint_url or f"https://s3.{self.region}.amazonaws.com").rstrip("/")
        return f"{endpoint}/{self.bucket}/{key}"


@lru_cache
def get_public_disk() -> LocalStorage:
    """Public disk — avatars and generated reports, served under /storage."""
    return LocalStorage(settings.PUBLIC_STORAGE_DIR, f"{settings.APP_URL.rstrip('/')}/storage")


@lru_cache
def get_product_disk() -> StorageBackend:
    """Disk holding product images."""
    if settings.PRODUCT_IMAGE_DISK == "local":
        return LocalStorage(settings.PRODUCT_IMAGE_DIR, f"{settings.APP_URL.rstrip('/')}/v1/products/images")
    if settings.PRODUCT_IMAGE_DISK != "r2":
        raise RuntimeError(f"Unknown PRODUCT_IMAGE_DISK: {settings.PRODUCT_IMAGE_DISK}")
    if not settings.R2_BUCKET:
        raise RuntimeError("R2 storage not configured. Set R2_BUCKET or use PRODUCT_IMAGE_DISK=local.")
    return S3Storage(
        bucket=settings.R2_BUCKET,
        endpoint_url=settings.R2_ENDPOINT,
        access_key=settings.R2_ACCESS_KEY_ID,
        secret_key=settings.R2_SECRET_ACCESS_KEY,
        region=settings.R2_REGION,
    )
