"""
Trailpost Backend — Social Graph Unit Tests
=============================================

What:  Tests for follow / unfollow and the derived following / followers sets.
How:   Runs SocialGraphService against the in-memory test database.

What we test:
    ✅ follow creates both views of the edge at once
    ✅ self-follow / self-unfollow rejected
    ✅ duplicate follow rejected, graph unchanged
    ✅ unfollow removes both views; unfollow when absent is a no-op
    ✅ unknown users rejected
"""

from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import SQLAlchemyError

from trailpost.exceptions import (
    AlreadyExistsError,
    InvalidOperationError,
    NotFoundError,
    StoreError,
)
from trailpost.services.social_graph import SocialGraphService


class TestFollow:

    def setup_method(self):
        self.service = SocialGraphService()

    @pytest.mark.asyncio
    async def test_follow_updates_both_sides(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        result = await self.service.follow(db_session, alice.id, bob.id)

        assert result.message == "Followed successfully"
        assert await self.service.following_ids(db_session, alice.id) == [bob.id]
        assert await self.service.follower_ids(db_session, bob.id) == [alice.id]
        assert await self.service.following_ids(db_session, bob.id) == []
        assert await self.service.follower_ids(db_session, alice.id) == []

    @pytest.mark.asyncio
    async def test_follow_self_rejected(self, db_session, make_user):
        alice = await make_user("alice")

        with pytest.raises(InvalidOperationError, match="cannot follow yourself"):
            await self.service.follow(db_session, alice.id, alice.id)

        assert await self.service.following_ids(db_session, alice.id) == []

    @pytest.mark.asyncio
    async def test_follow_twice_rejected_and_graph_unchanged(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await self.service.follow(db_session, alice.id, bob.id)

        with pytest.raises(AlreadyExistsError, match="Already following"):
            await self.service.follow(db_session, alice.id, bob.id)

        assert await self.service.following_ids(db_session, alice.id) == [bob.id]
        assert await self.service.follower_ids(db_session, bob.id) == [alice.id]

    @pytest.mark.asyncio
    async def test_follow_unknown_target(self, db_session, make_user):
        alice = await make_user("alice")

        with pytest.raises(NotFoundError):
            await self.service.follow(db_session, alice.id, uuid4())

    @pytest.mark.asyncio
    async def test_follow_unknown_follower(self, db_session, make_user):
        bob = await make_user("bob")

        with pytest.raises(NotFoundError):
            await self.service.follow(db_session, uuid4(), bob.id)

    @pytest.mark.asyncio
    async def test_mutual_follow_is_two_edges(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        await self.service.follow(db_session, alice.id, bob.id)
        await self.service.follow(db_session, bob.id, alice.id)

        assert await self.service.following_ids(db_session, alice.id) == [bob.id]
        assert await self.service.follower_ids(db_session, alice.id) == [bob.id]

    @pytest.mark.asyncio
    async def test_store_failure_becomes_store_error(self, mock_db_session):
        mock_db_session.execute.side_effect = SQLAlchemyError("connection lost")

        with patch("trailpost.services.social_graph.require_user"), \
             patch("trailpost.services.social_graph.insert_ignore"):
            with pytest.raises(StoreError):
                await self.service.follow(mock_db_session, uuid4(), uuid4())


class TestUnfollow:

    def setup_method(self):
        self.service = SocialGraphService()

    @pytest.mark.asyncio
    async def test_unfollow_removes_both_sides(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await self.service.follow(db_session, alice.id, bob.id)

        result = await self.service.unfollow(db_session, alice.id, bob.id)

        assert result.message == "Unfollowed successfully"
        assert await self.service.following_ids(db_session, alice.id) == []
        assert await self.service.follower_ids(db_session, bob.id) == []

    @pytest.mark.asyncio
    async def test_unfollow_when_not_following_is_noop(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")

        result = await self.service.unfollow(db_session, alice.id, bob.id)

        assert result.message == "Unfollowed successfully"
        assert await self.service.following_ids(db_session, alice.id) == []

    @pytest.mark.asyncio
    async def test_unfollow_keeps_reverse_edge(self, db_session, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await self.service.follow(db_session, alice.id, bob.id)
        await self.service.follow(db_session, bob.id, alice.id)

        await self.service.unfollow(db_session, alice.id, bob.id)

        assert await self.service.following_ids(db_session, bob.id) == [alice.id]
        assert await self.service.follower_ids(db_session, alice.id) == [bob.id]

    @pytest.mark.asyncio
    async def test_unfollow_self_rejected(self, db_session, make_user):
        alice = await make_user("alice")

        with pytest.raises(InvalidOperationError):
            await self.service.unfollow(db_session, alice.id, alice.id)

    @pytest.mark.asyncio
    async def test_unfollow_unknown_user(self, db_session, make_user):
        alice = await make_user("alice")

        with pytest.raises(NotFoundError):
            await self.service.unfollow(db_session, alice.id, uuid4())
