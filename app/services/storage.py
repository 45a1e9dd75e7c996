"""
Media storage for post pictures and chat attachments.
Firebase Storage bucket in production, a local directory in development.
"""

import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict

from app.utils.exceptions import StorageError, ValidationError
from app.utils.logger import get_logger

logger = get_logger(__name__)

IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

AUDIO_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/mp4": "m4a",
}


def validate_image(data: bytes, content_type: str, max_bytes: int) -> str:
    """
    Check an upload and return the file extension for it.

    Raises:
        ValidationError: If the type is not an allowed image or the file is too large.
    """
    ext = IMAGE_EXTENSIONS.get((content_type or "").lower())
    if ext is None:
        raise ValidationError(
            "Only JPEG, PNG, GIF and WEBP images are allowed",
            details={"content_type": content_type},
        )
    _check_size(data, max_bytes, "Image")
    return ext


def validate_audio(data: bytes, content_type: str, max_bytes: int) -> str:
    """Same checks as ``validate_image`` for WEBM and MP4 voice notes."""
    # Browsers append codecs, e.g. "audio/webm;codecs=opus"
    base_type = (content_type or "").split(";")[0].strip().lower()
    ext = AUDIO_EXTENSIONS.get(base_type)
    if ext is None:
        raise ValidationError(
            "Only WEBM and MP4 audio is allowed",
            details={"content_type": content_type},
        )
    _check_size(data, max_bytes, "Audio")
    return ext


def _check_size(data: bytes, max_bytes: int, label: str) -> None:
    if not data:
        raise ValidationError("Empty file")
    if len(data) > max_bytes:
        raise ValidationError(
            f"{label} too large",
            details={"size": len(data), "max_bytes": max_bytes},
        )


def build_path(area: str, uid: str, ext: str) -> str:
    return f"{area}/{uid}/{int(time.time() * 1000)}.{ext}"


class ImageStorage(ABC):
    """Upload and delete images by storage path."""

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes

    def upload_image(self, area: str, uid: str, data: bytes, content_type: str) -> Dict[str, str]:
        """
        Validate and store an image.

        Returns:
            Dict with the public ``url`` and the storage ``path`` needed to delete it.
        """
        ext = validate_image(data, content_type, self.max_bytes)
        path = build_path(area, uid, ext)
        url = self._put(path, data, content_type)
        logger.info(f"Image stored at {path} ({len(data)} bytes)")
        return {"url": url, "path": path}

    def upload_audio(self, uid: str, data: bytes, content_type: str) -> Dict[str, str]:
        """Validate and store a voice note under the ``audio`` area."""
        ext = validate_audio(data, content_type, self.max_bytes)
        path = build_path("audio", uid, ext)
        url = self._put(path, data, content_type)
        logger.info(f"Audio stored at {path} ({len(data)} bytes)")
        return {"url": url, "path": path}

    @abstractmethod
    def _put(self, path: str, data: bytes, content_type: str) -> str:
        pass

    @abstractmethod
    def delete(self, path: str) -> None:
        pass


class LocalFileStorage(ImageStorage):
    """Writes images under a directory served at ``base_url``."""

    def __init__(self, root: str, max_bytes: int, base_url: str = "/uploads"):
        super().__init__(max_bytes)
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _put(self, path: str, data: bytes, content_type: str) -> str:
        target = self.root / path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Could not write {path}") from e
        return f"{self.base_url}/{path}"

    def delete(self, path: str) -> None:
        target = self.root / path
        if target.exists():
            target.unlink()


class FirebaseImageStorage(ImageStorage):
    """Stores images as public blobs in the Firebase Storage bucket."""

    def __init__(self, bucket, max_bytes: int):
        super().__init__(max_bytes)
        self.bucket = bucket

    def _put(self, path: str, data: bytes, content_type: str) -> str:
        blob = self.bucket.blob(path)
        try:
            blob.upload_from_string(data, content_type=content_type)
            blob.make_public()
        except Exception as e:
            logger.error(f"Upload to {path} failed: {e}")
            raise StorageError(f"Could not upload {path}") from e
        return blob.public_url

    def delete(self, path: str) -> None:
        blob = self.bucket.blob(path)
        if blob.exists():
            blob.delete()
