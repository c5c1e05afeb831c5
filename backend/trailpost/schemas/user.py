"""
Trailpost Backend — User, Auth and Profile Schemas
====================================================

What:  Pydantic models for registration, login, profiles and search results.
Why:   Every user-facing projection is an explicit model, so credential data
       (password_hash) can never reach a response by accident.

Projections:
    AuthorSummary   → {id, username}; embedded in posts and comments
    UserSearchItem  → {id, username, email, bio, avatar_url}
    ProfileResponse → full profile, including follower/following id lists
"""

import uuid
from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    """Body of POST /api/auth/register."""
    username: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1)
    display_name: Optional[str] = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    """
    Body of POST /api/auth/login.

    `username` accepts either the username or the email address.
    """
    username: str = Field(min_length=1, description="Username or email")
    password: str = Field(min_length=1)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class AuthorSummary(BaseModel):
    """Display-safe projection of a user: id and username only."""
    id: uuid.UUID
    username: str

    model_config = {"from_attributes": True}


class UserSearchItem(BaseModel):
    """One directory search hit."""
    id: uuid.UUID
    username: str
    email: str
    bio: str = ""
    avatar_url: Optional[str] = None


class ProfileResponse(BaseModel):
    """
    What:  A user's profile as shown on the profile screens.
    Who:   GET /api/users/profile (own) and GET /api/users/profile/{id}.
    """
    id: uuid.UUID
    username: str
    email: str
    display_name: Optional[str] = None
    bio: str = ""
    avatar_url: Optional[str] = None
    location: str = ""
    trips: int = 0
    reviews: int = 0
    years: int = 0
    followers: List[uuid.UUID] = Field(default_factory=list)
    following: List[uuid.UUID] = Field(default_factory=list)


class TokenResponse(BaseModel):
    """
    What:  Result of a successful register or login.
    Why:   The client stores `token` and sends it as a Bearer credential.
    """
    token: str
    token_type: str = "bearer"
    user: AuthorSummary
