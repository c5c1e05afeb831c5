"""
Trailpost Backend — Media Route
=================================

What:  Serves stored post photos and avatars.
Who:   Called by <img> tags that reference a post's media_url or a
       profile's avatar_url.

Security:
    Paths are resolved against STORAGE_ROOT and anything that would land
    outside it is rejected, so ../ tricks cannot read arbitrary files.
"""

import logging
import mimetypes

from fastapi import APIRouter
from fastapi.responses import FileResponse

from trailpost.config import settings
from trailpost.exceptions import NotFoundError, ValidationError
from trailpost.services.file_service import file_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix=settings.media_url_prefix, tags=["Media"])


@router.get(
    "/{file_path:path}",
    summary="Serve an uploaded image",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found"},
    },
)
async def serve_file(file_path: str) -> FileResponse:
    full_path = file_service.resolve(file_path)
    if full_path is None:
        raise ValidationError(message="Invalid file path")

    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=file_path)

    media_type, _ = mimetypes.guess_type(full_path.name)
    return FileResponse(
        path=str(full_path),
        media_type=media_type or "application/octet-stream",
        # Blob names are random and never reused
        headers={"Cache-Control": "public, max-age=86400"},
    )
