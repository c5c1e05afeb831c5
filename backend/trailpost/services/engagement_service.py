"""
Trailpost Backend — Engagement Engine
=======================================

What:  Likes, saves and comments on posts.
Who:   Called by the posts routes.

Membership Rules (likes and saves):
    like(P, U)    → U ∈ P.likes afterwards; a second like changes nothing
    unlike(P, U)  → U ∉ P.likes afterwards; unliking when absent changes nothing
    (save / unsave behave identically on P.saves)

    Each call writes at most one row: INSERT ... ON CONFLICT DO NOTHING for
    adds, DELETE for removals. Concurrent likes by different users never
    overwrite each other because no call rewrites the whole set.
    The resulting set is read back and returned so the client can refresh
    its count and its "liked by me" highlight.

Comment Rules:
    Text is required and must not be blank. Comments are appended in
    insertion order and never edited, reordered or removed.
"""

import logging
import uuid
from typing import List, Optional, Type, Union

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trailpost.database import insert_ignore
from trailpost.exceptions import StoreError, ValidationError
from trailpost.models.post import Comment, PostLike, PostSave
from trailpost.schemas.post import CommentResponse
from trailpost.services.feed_service import build_comment_response
from trailpost.services.lookups import require_post, require_user

logger = logging.getLogger(__name__)

MembershipModel = Type[Union[PostLike, PostSave]]


class EngagementService:
    """
    Mutation rules for post engagement.

    Responsibilities:
        - like() / unlike(): membership in the like set
        - save() / unsave(): membership in the save set
        - add_comment(): append to the comment sequence
    """

    async def _members(
        self, db: AsyncSession, model: MembershipModel, post_id: uuid.UUID
    ) -> List[uuid.UUID]:
        result = await db.execute(
            select(model.user_id)
            .where(model.post_id == post_id)
            .order_by(model.created_at, model.user_id)
        )
        return list(result.scalars().all())

    async def _add_member(
        self,
        db: AsyncSession,
        model: MembershipModel,
        post_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> List[uuid.UUID]:
        await require_post(db, post_id)
        await require_user(db, user_id)
        try:
            result = await db.execute(
                insert_ignore(db, model.__table__, {"post_id": post_id, "user_id": user_id})
            )
            members = await self._members(db, model, post_id)
        except SQLAlchemyError as e:
            logger.error(
                "Database error adding %s to %s of post %s: %s",
                user_id, model.__tablename__, post_id, str(e),
            )
            raise StoreError(context={"post_id": str(post_id), "set": model.__tablename__})

        if result.rowcount:
            logger.info("User %s added to %s of post %s", user_id, model.__tablename__, post_id)
        return members

    async def _remove_member(
        self,
        db: AsyncSession,
        model: MembershipModel,
        post_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> List[uuid.UUID]:
        await require_post(db, post_id)
        await require_user(db, user_id)
        try:
            result = await db.execute(
                delete(model).where(model.post_id == post_id, model.user_id == user_id)
            )
            members = await self._members(db, model, post_id)
        except SQLAlchemyError as e:
            logger.error(
                "Database error removing %s from %s of post %s: %s",
                user_id, model.__tablename__, post_id, str(e),
            )
            raise StoreError(context={"post_id": str(post_id), "set": model.__tablename__})

        if result.rowcount:
            logger.info("User %s removed from %s of post %s", user_id, model.__tablename__, post_id)
        return members

    async def like(self, db: AsyncSession, post_id: uuid.UUID, user_id: uuid.UUID) -> List[uuid.UUID]:
        """Add `user_id` to the post's likes. Returns the resulting like set."""
        return await self._add_member(db, PostLike, post_id, user_id)

    async def unlike(self, db: AsyncSession, post_id: uuid.UUID, user_id: uuid.UUID) -> List[uuid.UUID]:
        """Remove `user_id` from the post's likes. Returns the resulting like set."""
        return await self._remove_member(db, PostLike, post_id, user_id)

    async def save(self, db: AsyncSession, post_id: uuid.UUID, user_id: uuid.UUID) -> List[uuid.UUID]:
        """Add `user_id` to the post's saves. Returns the resulting save set."""
        return await self._add_member(db, PostSave, post_id, user_id)

    async def unsave(self, db: AsyncSession, post_id: uuid.UUID, user_id: uuid.UUID) -> List[uuid.UUID]:
        """Remove `user_id` from the post's saves. Returns the resulting save set."""
        return await self._remove_member(db, PostSave, post_id, user_id)

    async def add_comment(
        self,
        db: AsyncSession,
        post_id: uuid.UUID,
        user_id: uuid.UUID,
        text: Optional[str],
    ) -> List[CommentResponse]:
        """
        Append a comment and return the post's full comment sequence.

        Workflow:
            1. Reject missing/blank text (before touching the database)
            2. Resolve the post and the author
            3. Insert the comment; its autoincrement id places it last
            4. Read back every comment in insertion order

        Raises:
            ValidationError: text missing or blank
            NotFoundError: post or author does not exist
            StoreError: the insert or read-back failed
        """
        if text is None or not text.strip():
            raise ValidationError(message="Comment text required", field="text")

        await require_post(db, post_id)
        author = await require_user(db, user_id)

        try:
            db.add(Comment(post_id=post_id, author_id=author.id, author=author, text=text))
            await db.flush()

            result = await db.execute(
                select(Comment)
                .where(Comment.post_id == post_id)
                .order_by(Comment.id)
                .execution_options(populate_existing=True)
            )
            comments = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error commenting on post %s: %s", post_id, str(e))
            raise StoreError(
                message="Could not add the comment. Please try again.",
                context={"post_id": str(post_id)},
            )

        logger.info("User %s commented on post %s (%d comments)", user_id, post_id, len(comments))
        return [build_comment_response(c) for c in comments]


# ── Singleton Instance ────────────────────────────────────────────────────
engagement_service = EngagementService()
