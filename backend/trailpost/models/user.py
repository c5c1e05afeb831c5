"""
Trailpost Backend — User and Follow SQLAlchemy Models
=======================================================

What:  ORM models for the `users` table and the `follows` edge table.
Why:   Account records and the social graph live in the same directory.
Who:   Used by the auth, user and social graph services and by Alembic.

Table Design Rationale:
    - UUID primary key: non-sequential, safe to hand to clients
    - username / email: unique indexes; username never changes after creation
    - password_hash: bcrypt output; never leaves the service layer
    - avatar_path: relative blob path, public URL is built in the API layer
    - trips / reviews / years: free-form display counters, no invariant

Social Graph:
    One `follows` row per directed edge, keyed by (follower_id, followee_id).
    A user's `following` and `followers` are both read from this table, so
    the two views are inverses of each other by construction and a single
    INSERT or DELETE changes both at once.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from trailpost.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A registered account.

    Lifecycle:
        1. Created at registration
        2. Profile fields (bio, avatar, location) mutated by the owner only
        3. Never deleted in this application
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier",
    )

    username: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        index=True,
        comment="Public handle, immutable after creation",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the account password",
    )

    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    bio: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default=text("''"))

    avatar_path: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Relative path from storage root to the current avatar",
    )

    location: Mapped[str] = mapped_column(
        String(255), nullable=False, default="", server_default=text("''")
    )

    # ── Display Counters ──────────────────────────────────────────────────
    trips: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    years: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"


class Follow(Base):
    """
    Directed follow edge: `follower_id` follows `followee_id`.

    The composite primary key makes the relation a set; the check
    constraint keeps self-edges out even if a caller skips the service.
    """

    __tablename__ = "follows"

    follower_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    followee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        CheckConstraint("follower_id <> followee_id", name="ck_follows_no_self_follow"),
        # Reverse lookups: "who follows X"
        Index("idx_follows_followee_id", "followee_id"),
    )

    def __repr__(self) -> str:
        return f"<Follow({self.follower_id} -> {self.followee_id})>"
