"""
Trailpost Backend — Social Graph Service
==========================================

What:  Follow / unfollow and the derived following / followers sets.
Who:   Called by the users routes, the profile projection and the feed.

Consistency Model:
    A follow is one row in `follows`. "B in A.following" and "A in
    B.followers" are two readings of that same row, so there is no state in
    which only one side of an edge exists, and no second write that could
    fail after the first one succeeded. The row is committed with the
    request's unit of work before the caller sees success.

Rules:
    follow(A, A)               → InvalidOperationError
    follow(A, B) twice         → AlreadyExistsError on the second call
    unfollow(A, B) when absent → no-op
    unknown A or B             → NotFoundError
"""

import logging
import uuid
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trailpost.database import insert_ignore
from trailpost.exceptions import (
    AlreadyExistsError,
    InvalidOperationError,
    StoreError,
)
from trailpost.models.user import Follow
from trailpost.schemas.common import MessageResponse
from trailpost.services.lookups import require_user

logger = logging.getLogger(__name__)


class SocialGraphService:
    """Mutations and reads over the directed follow relation."""

    async def follow(
        self, db: AsyncSession, follower_id: uuid.UUID, target_id: uuid.UUID
    ) -> MessageResponse:
        """
        Make `follower_id` follow `target_id`.

        Raises:
            InvalidOperationError: follower and target are the same user
            NotFoundError: either user does not exist
            AlreadyExistsError: the edge already exists
            StoreError: the edge could not be written
        """
        if follower_id == target_id:
            raise InvalidOperationError(
                message="You cannot follow yourself",
                context={"user_id": str(follower_id)},
            )

        await require_user(db, target_id)
        await require_user(db, follower_id)

        try:
            # rowcount is 0 when the edge was already there, including when a
            # concurrent request inserted it between our lookup and this write
            result = await db.execute(
                insert_ignore(
                    db,
                    Follow.__table__,
                    {"follower_id": follower_id, "followee_id": target_id},
                )
            )
        except SQLAlchemyError as e:
            logger.error("Database error following %s -> %s: %s", follower_id, target_id, str(e))
            raise StoreError(
                message="Could not follow this user. Please try again.",
                context={"follower_id": str(follower_id), "target_id": str(target_id)},
            )

        if result.rowcount == 0:
            raise AlreadyExistsError(
                message="Already following",
                context={"target_id": str(target_id)},
            )

        logger.info("User %s followed %s", follower_id, target_id)
        return MessageResponse(message="Followed successfully")

    async def unfollow(
        self, db: AsyncSession, follower_id: uuid.UUID, target_id: uuid.UUID
    ) -> MessageResponse:
        """
        Remove the edge `follower_id` → `target_id` if it exists.

        Raises:
            InvalidOperationError: follower and target are the same user
            NotFoundError: either user does not exist
            StoreError: the delete failed
        """
        if follower_id == target_id:
            raise InvalidOperationError(
                message="You cannot unfollow yourself",
                context={"user_id": str(follower_id)},
            )

        await require_user(db, target_id)
        await require_user(db, follower_id)

        try:
            result = await db.execute(
                delete(Follow).where(
                    Follow.follower_id == follower_id,
                    Follow.followee_id == target_id,
                )
            )
        except SQLAlchemyError as e:
            logger.error("Database error unfollowing %s -> %s: %s", follower_id, target_id, str(e))
            raise StoreError(
                message="Could not unfollow this user. Please try again.",
                context={"follower_id": str(follower_id), "target_id": str(target_id)},
            )

        logger.info(
            "User %s unfollowed %s (edge_existed=%s)",
            follower_id, target_id, result.rowcount > 0,
        )
        return MessageResponse(message="Unfollowed successfully")

    async def following_ids(self, db: AsyncSession, user_id: uuid.UUID) -> List[uuid.UUID]:
        """Ids of the users `user_id` follows, oldest edge first."""
        result = await db.execute(
            select(Follow.followee_id)
            .where(Follow.follower_id == user_id)
            .order_by(Follow.created_at, Follow.followee_id)
        )
        return list(result.scalars().all())

    async def follower_ids(self, db: AsyncSession, user_id: uuid.UUID) -> List[uuid.UUID]:
        """Ids of the users following `user_id`, oldest edge first."""
        result = await db.execute(
            select(Follow.follower_id)
            .where(Follow.followee_id == user_id)
            .order_by(Follow.created_at, Follow.follower_id)
        )
        return list(result.scalars().all())


# ── Singleton Instance ────────────────────────────────────────────────────
social_graph = SocialGraphService()
