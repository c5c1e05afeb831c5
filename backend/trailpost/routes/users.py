"""
Trailpost Backend — Users Route Handlers
==========================================

What:  Profiles, directory search, follow/unfollow and the personal feed.
Who:   Called by the client's profile, search and home screens.

Identity:
    Every route here is authenticated. "Own" operations (profile edit,
    feed, follow) act on the user id from the bearer token.

Route ordering:
    /users/profile, /users/search and /users/feed are registered before the
    /users/{user_id}/... routes so literal segments are never parsed as ids.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from trailpost.database import commit_session, get_db_session
from trailpost.schemas.common import ErrorResponse, MessageResponse
from trailpost.schemas.post import PostResponse
from trailpost.schemas.user import ProfileResponse, UserSearchItem
from trailpost.security import get_current_user_id
from trailpost.services.feed_service import feed_service
from trailpost.services.social_graph import social_graph
from trailpost.services.user_service import user_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/users", tags=["Users"])

_AUTH_ERRORS = {401: {"description": "Missing or invalid token", "model": ErrorResponse}}


# ── Profiles ──────────────────────────────────────────────────────────────

@router.get(
    "/profile",
    response_model=ProfileResponse,
    responses=_AUTH_ERRORS,
    summary="The caller's own profile",
)
async def get_own_profile(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await user_service.get_profile(db, user_id)


@router.put(
    "/profile",
    response_model=ProfileResponse,
    responses={
        400: {"description": "Unacceptable avatar image", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Update bio, location and/or avatar",
    description="Multipart form. Omitted fields are left unchanged; a new avatar replaces the old one.",
)
async def update_own_profile(
    bio: Optional[str] = Form(default=None),
    location: Optional[str] = Form(default=None),
    avatar: Optional[UploadFile] = File(default=None),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    avatar_content: Optional[bytes] = None
    avatar_filename: Optional[str] = None
    avatar_content_type: Optional[str] = None

    if avatar is not None and avatar.filename:
        try:
            avatar_content = await avatar.read()
            avatar_filename = avatar.filename
            avatar_content_type = avatar.content_type
        finally:
            await avatar.close()

    return await user_service.update_profile(
        db,
        user_id,
        bio=bio,
        location=location,
        avatar_filename=avatar_filename,
        avatar_content=avatar_content,
        avatar_content_type=avatar_content_type,
    )


@router.get(
    "/profile/{profile_id}",
    response_model=ProfileResponse,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Another user's profile",
)
async def get_profile(
    profile_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    return await user_service.get_public_profile(db, profile_id)


# ── Directory ─────────────────────────────────────────────────────────────

@router.get(
    "/search",
    response_model=List[UserSearchItem],
    responses=_AUTH_ERRORS,
    summary="Search users by username, email, bio or display name",
    description="Case-insensitive substring match. The caller is never included. An empty query returns [].",
)
async def search_users(
    q: Optional[str] = Query(default=None, description="Substring to look for"),
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[UserSearchItem]:
    return await user_service.search(db, user_id, q)


# ── Feed ──────────────────────────────────────────────────────────────────

@router.get(
    "/feed",
    response_model=List[PostResponse],
    responses=_AUTH_ERRORS,
    summary="Posts by the caller and everyone the caller follows, newest first",
)
async def get_feed(
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> List[PostResponse]:
    return await feed_service.compose_feed(db, user_id)


# ── Social Graph ──────────────────────────────────────────────────────────

@router.post(
    "/{target_id}/follow",
    response_model=MessageResponse,
    responses={
        400: {"description": "Self-follow or already following", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Follow a user",
)
async def follow_user(
    target_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    result = await social_graph.follow(db, follower_id=user_id, target_id=target_id)
    await commit_session(db)
    return result


@router.post(
    "/{target_id}/unfollow",
    response_model=MessageResponse,
    responses={
        400: {"description": "Self-unfollow", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Unfollow a user (no-op if not following)",
)
async def unfollow_user(
    target_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    result = await social_graph.unfollow(db, follower_id=user_id, target_id=target_id)
    await commit_session(db)
    return result
