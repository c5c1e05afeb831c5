"""
Trailpost Backend — User Service Unit Tests
=============================================

What:  Tests for directory search, profile projection and profile updates.

What we test:
    ✅ search is a case-insensitive substring match on several fields
    ✅ the caller never appears in their own results
    ✅ an empty query returns nothing
    ✅ profiles carry follower / following ids
    ✅ replacing an avatar deletes the previous file
    ✅ a failed commit keeps the previous avatar and drops the new one
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import SQLAlchemyError

from trailpost.exceptions import NotFoundError, StoreError, ValidationError
from trailpost.services.file_service import file_service
from trailpost.services.social_graph import SocialGraphService
from trailpost.services.user_service import UserService


class TestSearch:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_matches_username_case_insensitive(self, db_session, make_user):
        me = await make_user("me")
        await make_user("TrailRunner")
        await make_user("birdwatcher")

        results = await self.service.search(db_session, me.id, "trail")

        assert [u.username for u in results] == ["TrailRunner"]

    @pytest.mark.asyncio
    async def test_matches_email_and_bio(self, db_session, make_user):
        me = await make_user("me")
        await make_user("ann", email="ann@alps.example")
        await make_user("ben", bio="Weekend trips to the ALPS")
        await make_user("cat", bio="beaches")

        results = await self.service.search(db_session, me.id, "alps")

        assert {u.username for u in results} == {"ann", "ben"}

    @pytest.mark.asyncio
    async def test_excludes_caller(self, db_session, make_user):
        me = await make_user("hiker_me")
        await make_user("hiker_you")

        results = await self.service.search(db_session, me.id, "hiker")

        assert [u.username for u in results] == ["hiker_you"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", [None, "", "   "])
    async def test_empty_query_returns_nothing(self, db_session, make_user, query):
        me = await make_user("me")
        await make_user("someone")

        assert await self.service.search(db_session, me.id, query) == []

    @pytest.mark.asyncio
    async def test_like_wildcards_are_literal(self, db_session, make_user):
        me = await make_user("me")
        await make_user("a_b")
        await make_user("axb")

        results = await self.service.search(db_session, me.id, "a_b")

        assert [u.username for u in results] == ["a_b"]

    @pytest.mark.asyncio
    async def test_result_shape(self, db_session, make_user):
        me = await make_user("me")
        await make_user("zoe", bio="kayaks")

        [item] = await self.service.search(db_session, me.id, "zoe")

        assert item.email == "zoe@example.com"
        assert item.bio == "kayaks"
        assert item.avatar_url is None


class TestProfile:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_profile_includes_follow_edges(self, db_session, make_user):
        a = await make_user("a", location="Oslo", trips=3)
        b = await make_user("b")
        c = await make_user("c")
        graph = SocialGraphService()
        await graph.follow(db_session, a.id, b.id)
        await graph.follow(db_session, c.id, a.id)

        profile = await self.service.get_profile(db_session, a.id)

        assert profile.username == "a"
        assert profile.location == "Oslo"
        assert profile.trips == 3
        assert profile.following == [b.id]
        assert profile.followers == [c.id]

    @pytest.mark.asyncio
    async def test_profile_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_profile(db_session, uuid4())

    @pytest.mark.asyncio
    async def test_update_bio_and_location(self, db_session, make_user):
        a = await make_user("a", bio="old bio", location="Rome")

        profile = await self.service.update_profile(db_session, a.id, bio="new bio")

        assert profile.bio == "new bio"
        assert profile.location == "Rome"

    @pytest.mark.asyncio
    async def test_replacing_avatar_deletes_old_file(self, db_session, make_user, sample_image_bytes):
        a = await make_user("a")

        first = await self.service.update_profile(
            db_session, a.id, avatar_filename="me.png", avatar_content=sample_image_bytes,
        )
        first_path = first.avatar_url.removeprefix("/uploads/")
        assert file_service.resolve(first_path).exists()

        second = await self.service.update_profile(
            db_session, a.id, avatar_filename="me2.jpg", avatar_content=sample_image_bytes,
        )
        second_path = second.avatar_url.removeprefix("/uploads/")

        assert second_path != first_path
        assert file_service.resolve(second_path).exists()
        assert not file_service.resolve(first_path).exists()

    @pytest.mark.asyncio
    async def test_bad_avatar_leaves_profile_unchanged(self, db_session, make_user):
        a = await make_user("a", bio="unchanged")

        with pytest.raises(ValidationError):
            await self.service.update_profile(
                db_session, a.id, bio="changed", avatar_filename="notes.pdf", avatar_content=b"%PDF",
            )

        profile = await self.service.get_profile(db_session, a.id)
        assert profile.bio == "unchanged"
        assert profile.avatar_url is None

    @pytest.mark.asyncio
    async def test_commit_failure_keeps_old_avatar(self, mock_db_session, sample_image_bytes):
        mock_db_session.commit.side_effect = SQLAlchemyError("database is locked")
        user = MagicMock(avatar_path="2024/01/01/old.jpg")

        with patch("trailpost.services.user_service.require_user", AsyncMock(return_value=user)), \
             patch("trailpost.services.user_service.file_service") as mock_files:
            mock_files.save_upload = AsyncMock(return_value="2024/06/01/new.jpg")
            mock_files.delete_file = AsyncMock()

            with pytest.raises(StoreError):
                await self.service.update_profile(
                    mock_db_session, uuid4(), avatar_filename="me.jpg", avatar_content=sample_image_bytes,
                )

            mock_files.delete_file.assert_awaited_once_with("2024/06/01/new.jpg")
