from __future__ import annotations

import io
import logging
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

from ..core.constants import DEFAULT_PHOTO_MAX_BYTES
from ..core.exceptions import PhotoStorageError, ValidationError

logger = logging.getLogger(__name__)

_FORMATS = {"PNG": ("png", "image/png"), "JPEG": ("jpg", "image/jpeg")}


class PhotoStorage(Protocol):
    """External photo store: takes the raw bytes, returns a reference URL."""

    def upload(self, data: bytes) -> str:
        raise NotImplementedError


def validate_photo(data: bytes, *, max_bytes: int = DEFAULT_PHOTO_MAX_BYTES) -> tuple[str, str]:
    """Check size and image type; returns (extension, content type)."""

    if not data:
        raise ValidationError("Photo is empty")
    if len(data) > max_bytes:
        raise ValidationError(f"Photo size exceeds maximum allowed ({max_bytes / 1024 / 1024:g}MB)")

    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise ValidationError("Photo is not a valid image") from None

    if fmt not in _FORMATS:
        raise ValidationError(f"Unsupported photo format: {fmt}")
    return _FORMATS[fmt]


def photo_key(extension: str, *, folder: str = "photos") -> str:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    unique_id = str(uuid.uuid4())[:8]
    return f"{folder}/session-{timestamp}_{unique_id}.{extension}"


def retry_with_backoff(operation: Callable[[], str], *, attempts: int = 3, base_delay: float = 1.0, sleep=time.sleep) -> str:
    """Exponential backoff (1s, 2s, 4s, ...) for transient storage failures."""

    for attempt in range(attempts):
        try:
            return operation()
        except (BotoCoreError, ClientError, OSError) as e:
            if attempt == attempts - 1:
                raise
            delay = base_delay * (2 ** attempt)
            logger.info("photo upload attempt %d failed (%s); retrying in %.1fs", attempt + 1, e, delay)
            sleep(delay)
    raise PhotoStorageError("Max retries exceeded")


class S3PhotoStorage(PhotoStorage):
    """Uploads to an S3-compatible bucket (AWS S3 or Cloudflare R2)."""

    def __init__(
        self,
        *,
        bucket_name: str,
        endpoint_url: Optional[str] = None,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        region_name: str = "auto",
        public_domain: Optional[str] = None,
        max_bytes: int = DEFAULT_PHOTO_MAX_BYTES,
        attempts: int = 3,
        client=None,
    ):
        self.bucket_name = bucket_name
        self.public_domain = public_domain
        self.max_bytes = int(max_bytes)
        self.attempts = int(attempts)
        self.s3_client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region_name,
        )

    def upload(self, data: bytes) -> str:
        extension, content_type = validate_photo(data, max_bytes=self.max_bytes)
        key = photo_key(extension)

        def _put() -> str:
            self.s3_client.upload_fileobj(
                io.BytesIO(data),
                self.bucket_name,
                key,
                ExtraArgs={"ContentType": content_type},
            )
            return key

        try:
            retry_with_backoff(_put, attempts=self.attempts)
        except (BotoCoreError, ClientError) as e:
            raise PhotoStorageError("Failed to upload photo") from e

        if self.public_domain:
            return f"{self.public_domain.rstrip('/')}/{key}"
        # private bucket: callers resolve the key themselves
        return key


class LocalPhotoStorage(PhotoStorage):
    """Writes photos below a local directory (development)."""

    def __init__(self, *, directory: str | Path, base_url: str = "/static", max_bytes: int = DEFAULT_PHOTO_MAX_BYTES):
        self.directory = Path(directory)
        self.base_url = base_url.rstrip("/")
        self.max_bytes = int(max_bytes)

    def upload(self, data: bytes) -> str:
        extension, _ = validate_photo(data, max_bytes=self.max_bytes)
        key = photo_key(extension)
        target = self.directory / key
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise PhotoStorageError("Failed to store photo") from e
        return f"{self.base_url}/{key}"
