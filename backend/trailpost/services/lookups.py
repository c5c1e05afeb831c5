"""
Trailpost Backend — Record Lookups
====================================

What:  Load a user or post by id, or fail with NotFoundError.
Why:   Every mutation must prove the records it references exist before it
       writes; these helpers give all services the same failure shape.
"""

import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trailpost.exceptions import NotFoundError, StoreError
from trailpost.models.post import Post
from trailpost.models.user import User

logger = logging.getLogger(__name__)


async def require_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    """
    Raises:
        NotFoundError: no user with this id
        StoreError: the lookup itself failed
    """
    try:
        user = await db.get(User, user_id)
    except SQLAlchemyError as e:
        logger.error("Database error loading user %s: %s", user_id, str(e))
        raise StoreError(context={"user_id": str(user_id)})
    if user is None:
        raise NotFoundError(resource="user", resource_id=str(user_id))
    return user


async def require_post(db: AsyncSession, post_id: uuid.UUID) -> Post:
    """
    Raises:
        NotFoundError: no post with this id
        StoreError: the lookup itself failed
    """
    try:
        post = await db.get(Post, post_id)
    except SQLAlchemyError as e:
        logger.error("Database error loading post %s: %s", post_id, str(e))
        raise StoreError(context={"post_id": str(post_id)})
    if post is None:
        raise NotFoundError(resource="post", resource_id=str(post_id))
    return post
