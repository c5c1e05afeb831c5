"""
Trailpost Backend — Blob Storage Service
==========================================

What:  Stores uploaded post photos and avatars, deletes replaced ones, and
       turns stored paths into public URLs.
Why:   Centralizes all file system operations with validation in one place.
How:   Validates extension, declared content type and size, then writes the
       bytes to a date-organized directory under a UUID filename.
Who:   Called by PostService (post photos) and UserService (avatars).

Attack vectors prevented:
    - Path traversal: UUID filenames contain no user input, and the media
      route refuses any path that resolves outside STORAGE_ROOT
    - DoS via large files: size limit checked before anything is written
    - Filename collision: UUID ensures uniqueness under concurrent uploads
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from trailpost.config import settings
from trailpost.exceptions import ValidationError, FileStorageError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/heic": ".heic",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".heic"}


class FileService:
    """
    Manages the blob lifecycle for uploaded images.

    Directory Structure:
        storage/
        └── 2024/
            └── 01/
                └── 15/
                    ├── a1b2c3d4-5678.jpg
                    └── e5f6g7h8-9012.png

    The relative path (e.g. "2024/01/15/a1b2c3d4-5678.jpg") is what the
    database stores; `public_url()` prefixes it with MEDIA_URL_PREFIX.
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                         If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        """
        Check that the file extension is an allowed image type.

        Returns: Normalized extension (lowercase with dot).
        Raises:  ValidationError if extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_content_type(self, content_type: Optional[str]) -> None:
        """
        Check the content type declared by the client, when one was sent.

        Mobile pickers sometimes send a bare "image" or nothing at all; only
        an explicit non-image type is rejected.
        """
        if not content_type or content_type in ("image", "application/octet-stream"):
            return
        if content_type.lower() not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{content_type}' is not supported. "
                    f"The file must be an image."
                ),
                field="file",
                context={"content_type": content_type},
            )

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Validate file size against the configured maximum.

        Raises:
            ValidationError for empty files and files over the limit
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty.", field="file")

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """
        Generate a unique YYYY/MM/DD/<uuid><ext> path.

        Returns: Tuple of (absolute_path, relative_path_from_storage_root).
        """
        now = datetime.now(timezone.utc)
        date_dir = now.strftime("%Y/%m/%d")
        unique_name = f"{uuid.uuid4()}{extension}"

        relative_path = f"{date_dir}/{unique_name}"
        absolute_path = self.storage_root / relative_path

        return absolute_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> str:
        """
        Write validated file content to disk.

        Returns: The relative path of the stored blob.
        Raises:  FileStorageError if directory creation or file write fails.
        """
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)

            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info("File stored: %s (%d bytes)", relative_path, len(content))
            return relative_path

        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

    async def save_upload(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        content_length: Optional[int] = None,
    ) -> str:
        """
        Complete validation and storage pipeline for one upload.

        Validation order (cheapest first):
            1. Extension check
            2. Declared content type
            3. Size check
            4. Store file

        Returns: Relative path to persist on the owning record.
        """
        ext = self.validate_extension(filename)
        self.validate_content_type(content_type)
        self.validate_size(content_length, len(content))
        return await self.store_file(content, ext)

    def resolve(self, relative_path: str) -> Optional[Path]:
        """
        Map a relative blob path to an absolute path inside the storage root.

        Returns None for paths that would escape the root (../ tricks).
        """
        full_path = (self.storage_root / relative_path).resolve()
        if not full_path.is_relative_to(self.storage_root):
            return None
        return full_path

    async def delete_file(self, relative_path: str) -> None:
        """
        Remove a stored blob (replaced avatar, post whose insert failed).

        Best-effort: a missing file is fine and an OS error is logged.
        The record that referenced the blob has already been updated, so a
        leftover file is orphaned storage, not a user-facing failure.
        """
        path = self.resolve(relative_path)
        if path is None:
            logger.warning("Refusing to delete path outside storage root: %s", relative_path)
            return
        try:
            if path.exists():
                os.remove(path)
                logger.info("Deleted blob: %s", relative_path)
            else:
                logger.debug("Delete: blob already gone: %s", relative_path)
        except OSError as e:
            logger.warning("Failed to delete blob %s: %s", relative_path, str(e))

    def public_url(self, relative_path: Optional[str]) -> Optional[str]:
        """Public URL of a stored blob, or None when there is no blob."""
        if not relative_path:
            return None
        return f"{settings.media_url_prefix}/{relative_path}"


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
