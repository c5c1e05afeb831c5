"""
Trailpost Backend — Engagement Service Unit Tests
===================================================

What:  Tests for likes, saves and comments.
How:   Runs EngagementService against the in-memory test database.

What we test:
    ✅ like / save are idempotent set adds
    ✅ unlike / unsave are idempotent set removals
    ✅ different users' likes all survive
    ✅ comments require text and keep insertion order
    ✅ unknown posts rejected
"""

from uuid import uuid4

import pytest

from trailpost.exceptions import NotFoundError, ValidationError
from trailpost.services.engagement_service import EngagementService


class TestLikes:

    def setup_method(self):
        self.service = EngagementService()

    @pytest.mark.asyncio
    async def test_like_adds_member(self, db_session, make_user, make_post):
        alice = await make_user("alice")
        bob = await make_user("bob")
        post = await make_post(alice, "sunrise at the summit")

        likes = await self.service.like(db_session, post.id, bob.id)

        assert likes == [bob.id]

    @pytest.mark.asyncio
    async def test_like_twice_is_idempotent(self, db_session, make_user, make_post):
        alice = await make_user("alice")
        bob = await make_user("bob")
        post = await make_post(alice)

        await self.service.like(db_session, post.id, bob.id)
        likes = await self.service.like(db_session, post.id, bob.id)

        assert likes == [bob.id]

    @pytest.mark.asyncio
    async def test_likes_from_different_users_all_kept(self, db_session, make_user, make_post):
        alice = await make_user("alice")
        bob = await make_user("bob")
        carol = await make_user("carol")
        post = await make_post(alice)

        await self.service.like(db_session, post.id, bob.id)
        likes = await self.service.like(db_session, post.id, carol.id)

        assert set(likes) == {bob.id, carol.id}

    @pytest.mark.asyncio
    async def test_unlike_removes_member(self, db_session, make_user, make_post):
        alice = await make_user("alice")
        bob = await make_user("bob")
        post = await make_post(alice)
        await self.service.like(db_session, post.id, bob.id)

        likes = await self.service.unlike(db_session, post.id, bob.id)

        assert likes == []

    @pytest.mark.asyncio
    async def test_unlike_when_absent_is_noop(self, db_session, make_user, make_post):
        alice = await make_user("alice")
        bob = await make_user("bob")
        post = await make_post(alice)
        await self.service.like(db_session, post.id, alice.id)

        likes = await self.service.unlike(db_session, post.id, bob.id)

        assert likes == [alice.id]

    @pytest.mark.asyncio
    async def test_like_like_unlike_leaves_second_liker(self, db_session, make_user, make_post):
        author = await make_user("author")
        u1 = await make_user("u1")
        u2 = await make_user("u2")
        post = await make_post(author)

        await self.service.like(db_session, post.id, u1.id)
        await self.service.like(db_session, post.id, u2.id)
        likes = await self.service.unlike(db_session, post.id, u1.id)

        assert likes == [u2.id]

    @pytest.mark.asyncio
    async def test_like_unknown_post(self, db_session, make_user):
        bob = await make_user("bob")

        with pytest.raises(NotFoundError):
            await self.service.like(db_session, uuid4(), bob.id)


class TestSaves:

    def setup_method(self):
        self.service = EngagementService()

    @pytest.mark.asyncio
    async def test_save_and_unsave(self, db_session, make_user, make_post):
        alice = await make_user("alice")
        bob = await make_user("bob")
        post = await make_post(alice)

        assert await self.service.save(db_session, post.id, bob.id) == [bob.id]
        assert await self.service.save(db_session, post.id, bob.id) == [bob.id]
        assert await self.service.unsave(db_session, post.id, bob.id) == []
        assert await self.service.unsave(db_session, post.id, bob.id) == []

    @pytest.mark.asyncio
    async def test_saves_independent_of_likes(self, db_session, make_user, make_post):
        alice = await make_user("alice")
        bob = await make_user("bob")
        post = await make_post(alice)

        await self.service.save(db_session, post.id, bob.id)
        likes = await self.service.unlike(db_session, post.id, bob.id)

        assert likes == []
        assert await self.service.save(db_session, post.id, bob.id) == [bob.id]

    @pytest.mark.asyncio
    async def test_unsave_unknown_post(self, db_session, make_user):
        bob = await make_user("bob")

        with pytest.raises(NotFoundError):
            await self.service.unsave(db_session, uuid4(), bob.id)


class TestComments:

    def setup_method(self):
        self.service = EngagementService()

    @pytest.mark.asyncio
    async def test_comment_appended(self, db_session, make_user, make_post):
        alice = await make_user("alice")
        bob = await make_user("bob")
        post = await make_post(alice)

        comments = await self.service.add_comment(db_session, post.id, bob.id, "Great view!")

        assert len(comments) == 1
        assert comments[0].text == "Great view!"
        assert comments[0].author.id == bob.id
        assert comments[0].author.username == "bob"

    @pytest.mark.asyncio
    async def test_comments_keep_insertion_order(self, db_session, make_user, make_post):
        alice = await make_user("alice")
        bob = await make_user("bob")
        post = await make_post(alice)

        await self.service.add_comment(db_session, post.id, bob.id, "first")
        await self.service.add_comment(db_session, post.id, alice.id, "second")
        comments = await self.service.add_comment(db_session, post.id, bob.id, "third")

        assert [c.text for c in comments] == ["first", "second", "third"]
        assert [c.author.username for c in comments] == ["bob", "alice", "bob"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, "", "   "])
    async def test_comment_requires_text(self, db_session, make_user, make_post, text):
        alice = await make_user("alice")
        post = await make_post(alice)

        with pytest.raises(ValidationError, match="Comment text required"):
            await self.service.add_comment(db_session, post.id, alice.id, text)

    @pytest.mark.asyncio
    async def test_comment_rejected_before_post_lookup(self, mock_db_session):
        """Blank text fails without touching the database."""
        with pytest.raises(ValidationError):
            await self.service.add_comment(mock_db_session, uuid4(), uuid4(), "")

        mock_db_session.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_comment_unknown_post(self, db_session, make_user):
        alice = await make_user("alice")

        with pytest.raises(NotFoundError):
            await self.service.add_comment(db_session, uuid4(), alice.id, "hello?")
