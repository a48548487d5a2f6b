"""Local file storage for uploaded images.

Records only ever hold the relative path returned by :meth:`LocalFileStorage.save`;
image bytes are never inspected beyond the content-type and size checks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path, PurePosixPath

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from src.core.config import settings
from src.core.exceptions import DomainValidationError
from src.shared.ulid import generate_ulid

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/heic": ".heic",
}


@dataclass(frozen=True)
class ImageUpload:
    """An uploaded image already read into memory."""

    field: str
    content_type: str
    content: bytes

    @classmethod
    async def from_upload(cls, field: str, upload: UploadFile | None) -> ImageUpload | None:
        if upload is None:
            return None
        content = await upload.read()
        return cls(field=field, content_type=(upload.content_type or "").lower(), content=content)


class LocalFileStorage:
    def __init__(self, root: str | Path, max_bytes: int = settings.max_upload_bytes):
        self.root = Path(root)
        self.max_bytes = max_bytes

    def validate(self, image: ImageUpload) -> None:
        if image.content_type not in ALLOWED_IMAGE_TYPES:
            raise DomainValidationError(
                "Validation error",
                {image.field: [f"The {image.field} must be an image."]},
            )
        if not image.content:
            raise DomainValidationError("Validation error", {image.field: [f"The {image.field} is empty."]})
        if len(image.content) > self.max_bytes:
            limit_kb = self.max_bytes // 1024
            raise DomainValidationError(
                "Validation error",
                {image.field: [f"The {image.field} may not be greater than {limit_kb} kilobytes."]},
            )

    async def save(self, folder: str, image: ImageUpload) -> str:
        """Persist the image under ``folder`` and return its relative path."""
        self.validate(image)
        relative = PurePosixPath(folder) / f"{generate_ulid()}{ALLOWED_IMAGE_TYPES[image.content_type]}"
        target = self.root / relative
        await run_in_threadpool(self._write, target, image.content)
        logger.info("Stored %s at %s", image.field, relative)
        return str(relative)

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)


@lru_cache(1)
def get_storage() -> LocalFileStorage:
    return LocalFileStorage(settings.media_root)
