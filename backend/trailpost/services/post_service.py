"""
Trailpost Backend — Post Service
==================================

What:  Creates posts (text and/or photo).
Who:   Called by POST /api/posts.

Creation Flow:
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐
    │  Upload  │───▶│  Validate   │───▶│  Store (DB)  │
    │  (Route) │    │  & Store    │    │  posts row   │
    └──────────┘    │  (FileServ) │    └──────────────┘
                    └─────────────┘

    The post is committed here rather than by the route: if the row cannot be
    written or committed, the photo that was just stored is deleted so no
    blob is left without a post.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trailpost.exceptions import StoreError, ValidationError
from trailpost.models.post import Post
from trailpost.schemas.post import PostResponse
from trailpost.schemas.user import AuthorSummary
from trailpost.services.file_service import file_service
from trailpost.services.lookups import require_user

logger = logging.getLogger(__name__)


class PostService:
    """Write-side operations on the post store."""

    async def create_post(
        self,
        db: AsyncSession,
        author_id: uuid.UUID,
        text: Optional[str] = None,
        photo_filename: Optional[str] = None,
        photo_content: Optional[bytes] = None,
        photo_content_type: Optional[str] = None,
    ) -> PostResponse:
        """
        Create a post authored by `author_id`.

        Args:
            db: Async database session
            author_id: The caller (from the bearer token)
            text: Optional body; whitespace-only counts as absent
            photo_filename / photo_content / photo_content_type: optional upload

        Raises:
            ValidationError: neither text nor photo, or an unacceptable photo
            NotFoundError: the author does not exist
            StoreError: the post could not be written
        """
        text = text.strip() if text else None
        has_photo = bool(photo_content)
        if not text and not has_photo:
            raise ValidationError(message="Text or photo is required", field="text")

        author = await require_user(db, author_id)

        media_path: Optional[str] = None
        if has_photo:
            media_path = await file_service.save_upload(
                filename=photo_filename or "photo.jpg",
                content=photo_content,
                content_type=photo_content_type,
            )

        post = Post(author_id=author.id, text=text or None, media_path=media_path)
        try:
            db.add(post)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error creating post for %s: %s", author_id, str(e), exc_info=True)
            if media_path:
                await file_service.delete_file(media_path)
            raise StoreError(
                message="Could not create the post. Please try again.",
                context={"author_id": str(author_id)},
            )

        logger.info("Post %s created by %s (photo=%s)", post.id, author_id, has_photo)

        # A new post has no engagement yet
        return PostResponse(
            id=post.id,
            author=AuthorSummary(id=author.id, username=author.username),
            text=post.text,
            media_url=file_service.public_url(post.media_path),
            created_at=post.created_at,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
post_service = PostService()
