"""
Trailpost Backend — User Directory Service
============================================

What:  Account lookups, profile projections, profile updates and directory
       search.
Who:   Called by the users routes; profile reads reuse the social graph
       for follower and following ids.

Directory Search:
    Case-insensitive substring match over username, email, bio and display
    name. The caller never appears in their own results, and an empty query
    returns nothing rather than the whole directory.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trailpost.exceptions import StoreError
from trailpost.models.user import User
from trailpost.schemas.user import ProfileResponse, UserSearchItem
from trailpost.services.file_service import file_service
from trailpost.services.lookups import require_user
from trailpost.services.social_graph import social_graph

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for the user directory.

    Responsibilities:
        - get_profile(): profile projection with follow edges
        - update_profile(): owner-only bio/location/avatar changes
        - search(): directory search
    """

    async def get_profile(self, db: AsyncSession, user_id: uuid.UUID) -> ProfileResponse:
        """
        Build the profile projection for `user_id`.

        Used for both the caller's own profile and any public profile; the
        projection never includes credential data.
        """
        user = await require_user(db, user_id)
        try:
            followers = await social_graph.follower_ids(db, user.id)
            following = await social_graph.following_ids(db, user.id)
        except SQLAlchemyError as e:
            logger.error("Database error loading follow edges for %s: %s", user_id, str(e))
            raise StoreError(context={"user_id": str(user_id)})

        return ProfileResponse(
            id=user.id,
            username=user.username,
            email=user.email,
            display_name=user.display_name,
            bio=user.bio or "",
            avatar_url=file_service.public_url(user.avatar_path),
            location=user.location or "",
            trips=user.trips or 0,
            reviews=user.reviews or 0,
            years=user.years or 0,
            followers=followers,
            following=following,
        )

    async def get_public_profile(self, db: AsyncSession, user_id: uuid.UUID) -> ProfileResponse:
        """Profile of any user, as seen by another signed-in user."""
        return await self.get_profile(db, user_id)

    async def update_profile(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        bio: Optional[str] = None,
        location: Optional[str] = None,
        avatar_filename: Optional[str] = None,
        avatar_content: Optional[bytes] = None,
        avatar_content_type: Optional[str] = None,
    ) -> ProfileResponse:
        """
        Update the caller's own profile.

        Fields left as None are unchanged. A new avatar is stored first, the
        user row is pointed at it and committed, and only then is the previous
        avatar blob deleted. A failed write removes the new blob instead.

        Raises:
            ValidationError: avatar is not an acceptable image
            NotFoundError: the caller's record does not exist
            StoreError: the update could not be written
        """
        user = await require_user(db, user_id)

        new_avatar: Optional[str] = None
        if avatar_content is not None:
            new_avatar = await file_service.save_upload(
                filename=avatar_filename or "avatar.jpg",
                content=avatar_content,
                content_type=avatar_content_type,
            )

        old_avatar = user.avatar_path
        if bio is not None:
            user.bio = bio
        if location is not None:
            user.location = location
        if new_avatar:
            user.avatar_path = new_avatar

        try:
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error updating profile %s: %s", user_id, str(e))
            if new_avatar:
                await file_service.delete_file(new_avatar)
            raise StoreError(
                message="Could not update the profile. Please try again.",
                context={"user_id": str(user_id)},
            )

        if new_avatar and old_avatar and old_avatar != new_avatar:
            await file_service.delete_file(old_avatar)

        logger.info("Profile updated for user %s (avatar_changed=%s)", user_id, bool(new_avatar))
        return await self.get_profile(db, user_id)

    async def search(
        self, db: AsyncSession, caller_id: uuid.UUID, query: Optional[str]
    ) -> List[UserSearchItem]:
        """
        Find users whose username, email, bio or display name contains `query`.

        How:
            lower(column) LIKE lower(%query%) via icontains(), with LIKE wildcards in
            the query escaped, so "a_b" matches the literal text "a_b".

        Returns:
            Matching users except the caller; an empty list for an empty query.
        """
        needle = (query or "").strip().lower()
        if not needle:
            return []

        try:
            result = await db.execute(
                select(User)
                .where(
                    or_(
                        User.username.icontains(needle, autoescape=True),
                        User.email.icontains(needle, autoescape=True),
                        User.bio.icontains(needle, autoescape=True),
                        User.display_name.icontains(needle, autoescape=True),
                    ),
                    User.id != caller_id,
                )
                .order_by(User.username)
            )
            users = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error searching users: %s", str(e), exc_info=True)
            raise StoreError(message="Could not search users. Please try again.")

        return [
            UserSearchItem(
                id=u.id,
                username=u.username,
                email=u.email,
                bio=u.bio or "",
                avatar_url=file_service.public_url(u.avatar_path),
            )
            for u in users
        ]


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
