"""
Trailpost Backend — Posts Route Handlers
==========================================

What:  Post creation, the public listing, and engagement mutations.
Who:   Called by the client's composer and by the buttons on each post card.

Request Flow (POST /api/posts):
    1. Client sends multipart/form-data with optional 'text' and 'photo'
    2. Photo bytes are read into memory (bounded by size validation)
    3. PostService validates, stores the photo, inserts and commits the row
    4. 201 Created with the new post

Every write is committed before the handler returns, so a failed commit
reaches the client as a 500 instead of a success.

Engagement routes return the resulting membership set (or comment list)
so the client can update counts and highlights without refetching the feed.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from trailpost.database import commit_session, get_db_session
from trailpost.schemas.common import ErrorResponse
from trailpost.schemas.post import (
    CommentRequest,
    CommentsResponse,
    LikesResponse,
    PostResponse,
    SavesResponse,
)
from trailpost.security import get_current_user_id
from trailpost.services.engagement_service import engagement_service
from trailpost.services.feed_service import feed_service
from trailpost.services.post_service import post_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/posts", tags=["Posts"])

_ENGAGEMENT_ERRORS = {
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    404: {"description": "Post not found", "model": ErrorResponse},
}


@router.post(
    "",
    status_code=201,
    response_model=PostResponse,
    responses={
        400: {"description": "No text and no photo, or an unacceptable photo", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
    },
    summary="Create a post",
    description="Multipart form with an optional `text` field and an optional `photo` file. At least one is required.",
)
async def create_post(
    text: Optional[str] = Form(default=None),
    photo: Optional[UploadFile] = File(default=None),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> PostResponse:
    photo_content: Optional[bytes] = None
    photo_filename: Optional[str] = None
    photo_content_type: Optional[str] = None

    if photo is not None and photo.filename:
        try:
            photo_content = await photo.read()
            photo_filename = photo.filename
            photo_content_type = photo.content_type
        finally:
            await photo.close()
        logger.info(
            "Received photo upload: filename=%s, size=%d bytes",
            photo_filename, len(photo_content),
        )

    return await post_service.create_post(
        db=db,
        author_id=user_id,
        text=text,
        photo_filename=photo_filename,
        photo_content=photo_content,
        photo_content_type=photo_content_type,
    )


@router.get(
    "",
    response_model=List[PostResponse],
    summary="List every post, newest first",
)
async def list_posts(db: AsyncSession = Depends(get_db_session)) -> List[PostResponse]:
    return await feed_service.list_posts(db=db)


@router.post(
    "/{post_id}/like",
    response_model=LikesResponse,
    responses=_ENGAGEMENT_ERRORS,
    summary="Like a post (idempotent)",
)
async def like_post(
    post_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> LikesResponse:
    likes = await engagement_service.like(db, post_id, user_id)
    await commit_session(db)
    return LikesResponse(likes=likes)


@router.post(
    "/{post_id}/unlike",
    response_model=LikesResponse,
    responses=_ENGAGEMENT_ERRORS,
    summary="Remove a like (idempotent)",
)
async def unlike_post(
    post_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> LikesResponse:
    likes = await engagement_service.unlike(db, post_id, user_id)
    await commit_session(db)
    return LikesResponse(likes=likes)


@router.post(
    "/{post_id}/save",
    response_model=SavesResponse,
    responses=_ENGAGEMENT_ERRORS,
    summary="Save a post (idempotent)",
)
async def save_post(
    post_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SavesResponse:
    saves = await engagement_service.save(db, post_id, user_id)
    await commit_session(db)
    return SavesResponse(saves=saves)


@router.post(
    "/{post_id}/unsave",
    response_model=SavesResponse,
    responses=_ENGAGEMENT_ERRORS,
    summary="Remove a save (idempotent)",
)
async def unsave_post(
    post_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> SavesResponse:
    saves = await engagement_service.unsave(db, post_id, user_id)
    await commit_session(db)
    return SavesResponse(saves=saves)


@router.post(
    "/{post_id}/comment",
    response_model=CommentsResponse,
    responses={
        400: {"description": "Comment text required", "model": ErrorResponse},
        **_ENGAGEMENT_ERRORS,
    },
    summary="Comment on a post",
)
async def comment_on_post(
    post_id: UUID,
    body: Optional[CommentRequest] = None,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CommentsResponse:
    """Append a comment; the response holds every comment on the post, oldest first."""
    comments = await engagement_service.add_comment(
        db, post_id, user_id, body.text if body else None
    )
    await commit_session(db)
    return CommentsResponse(comments=comments)
