"""
Trailpost Backend — Feed Composer
===================================

What:  Builds the caller's feed and the public post listing, and owns the
       projection of posts into API responses.
Who:   Called by GET /api/users/feed and GET /api/posts.

Feed Definition:
    feed(U) = posts whose author ∈ U.following ∪ {U}
    ordered by created_at DESC, then id DESC

    The id tie-break makes the order of posts with equal timestamps fixed
    for a given database state. There is no ranking, weighting, pagination
    or deduplication.

    Posts are reloaded with populate_existing so engagement written earlier
    in the same session is reflected in the response.

Projection:
    The author of each post and of each comment is reduced to
    {id, username}. Likes and saves become lists of user ids.
"""

import logging
import uuid
from typing import List

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trailpost.exceptions import StoreError
from trailpost.models.post import Comment, Post
from trailpost.models.user import Follow
from trailpost.schemas.post import CommentResponse, PostResponse
from trailpost.schemas.user import AuthorSummary
from trailpost.services.file_service import file_service
from trailpost.services.lookups import require_user

logger = logging.getLogger(__name__)


def build_comment_response(comment: Comment) -> CommentResponse:
    return CommentResponse(
        author=AuthorSummary(id=comment.author.id, username=comment.author.username),
        text=comment.text,
        created_at=comment.created_at,
    )


def build_post_response(post: Post) -> PostResponse:
    """Project a fully loaded Post (author, comments, likes, saves) for the API."""
    return PostResponse(
        id=post.id,
        author=AuthorSummary(id=post.author.id, username=post.author.username),
        text=post.text,
        media_url=file_service.public_url(post.media_path),
        created_at=post.created_at,
        likes=[like.user_id for like in post.likes],
        saves=[save.user_id for save in post.saves],
        comments=[build_comment_response(c) for c in post.comments],
    )


class FeedService:
    """
    Read-side views over the post store.

    Error Handling Strategy:
        Database failures become StoreError; NotFoundError from the caller
        lookup propagates unchanged.
    """

    async def compose_feed(self, db: AsyncSession, user_id: uuid.UUID) -> List[PostResponse]:
        """
        Posts by the caller and everyone the caller follows, newest first.

        Query plan:
            SELECT posts.* FROM posts
            WHERE author_id = :me
               OR author_id IN (SELECT followee_id FROM follows WHERE follower_id = :me)
            ORDER BY created_at DESC, id DESC

        Raises:
            NotFoundError: the caller's record does not exist
            StoreError: the query failed
        """
        await require_user(db, user_id)

        followed = select(Follow.followee_id).where(Follow.follower_id == user_id)
        try:
            result = await db.execute(
                select(Post)
                .where(or_(Post.author_id == user_id, Post.author_id.in_(followed)))
                .order_by(Post.created_at.desc(), Post.id.desc())
                .execution_options(populate_existing=True)
            )
            posts = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error composing feed for %s: %s", user_id, str(e), exc_info=True)
            raise StoreError(
                message="Could not load your feed. Please try again.",
                context={"user_id": str(user_id)},
            )

        logger.debug("Composed feed for %s: %d posts", user_id, len(posts))
        return [build_post_response(p) for p in posts]

    async def list_posts(self, db: AsyncSession) -> List[PostResponse]:
        """Every post, newest first (public listing)."""
        try:
            result = await db.execute(
                select(Post)
                .order_by(Post.created_at.desc(), Post.id.desc())
                .execution_options(populate_existing=True)
            )
            posts = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing posts: %s", str(e), exc_info=True)
            raise StoreError(message="Could not retrieve posts. Please try again.")

        return [build_post_response(p) for p in posts]


# ── Singleton Instance ────────────────────────────────────────────────────
feed_service = FeedService()
