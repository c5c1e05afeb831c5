"""
Trailpost Backend — Post and Engagement SQLAlchemy Models
===========================================================

What:  ORM models for posts, their comments, and the like/save membership sets.
Who:   Used by the post, engagement and feed services and by Alembic.

Table Design Rationale:
    - posts.author_id: set at creation, never updated by any code path
    - posts.media_path: relative blob path; text and media are each optional
      but the service refuses a post that has neither
    - post_likes / post_saves: one row per (post, user) pair. The composite
      primary key is what makes them sets; adds are insert-or-ignore so
      concurrent likes from different users are all kept
    - comments.id: autoincrement integer. Ordering by it reproduces
      insertion order, which is the only order comments ever have

Relationships use lazy="selectin" so that loading a post in an async
session also loads its author, comments (with their authors), likes and
saves without implicit I/O on attribute access.
"""

import uuid
from datetime import datetime
from typing import List

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy import text as sql_text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trailpost.database import Base
from trailpost.models.user import User, utcnow


class Post(Base):
    """
    A post authored by one user.

    Lifecycle:
        1. Created with text and/or media
        2. Engagement rows (likes, saves, comments) accumulate over time
        3. Never edited or deleted in this application
    """

    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    text: Mapped[str | None] = mapped_column(Text, nullable=True)

    media_path: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Relative path from storage root to the attached photo",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=sql_text("CURRENT_TIMESTAMP"),
    )

    author: Mapped[User] = relationship(lazy="selectin")

    comments: Mapped[List["Comment"]] = relationship(
        lazy="selectin",
        order_by="Comment.id",
    )

    likes: Mapped[List["PostLike"]] = relationship(
        lazy="selectin",
        order_by="PostLike.created_at",
    )

    saves: Mapped[List["PostSave"]] = relationship(
        lazy="selectin",
        order_by="PostSave.created_at",
    )

    # Feed and listing queries sort newest first
    __table_args__ = (
        Index("idx_posts_created_at", created_at.desc()),
    )

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, author_id={self.author_id}, created_at='{self.created_at}')>"


class Comment(Base):
    """An append-only comment on a post."""

    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=sql_text("CURRENT_TIMESTAMP"),
    )

    author: Mapped[User] = relationship(lazy="selectin")


class PostLike(Base):
    """Membership of `user_id` in a post's like set."""

    __tablename__ = "post_likes"

    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class PostSave(Base):
    """Membership of `user_id` in a post's save (bookmark) set."""

    __tablename__ = "post_saves"

    post_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
