"""
Trailpost Backend — Post and Engagement Schemas
=================================================

What:  Pydantic models for posts, comments and membership-set results.
Why:   Authors and comment authors are always embedded as AuthorSummary,
       never as full user records.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from trailpost.schemas.user import AuthorSummary


class CommentRequest(BaseModel):
    """
    Body of POST /api/posts/{id}/comment.

    `text` is optional at the schema level so that a missing or blank value
    reaches the engagement service and is reported as a validation error.
    """
    text: Optional[str] = None


class CommentResponse(BaseModel):
    author: AuthorSummary
    text: str
    created_at: datetime


class PostResponse(BaseModel):
    """
    What:  A post with its engagement, as shown in feeds and listings.

    likes / saves are id lists so the client can compute both the count and
    whether the current user is a member.
    """
    id: uuid.UUID
    author: AuthorSummary
    text: Optional[str] = None
    media_url: Optional[str] = None
    created_at: datetime
    likes: List[uuid.UUID] = Field(default_factory=list)
    saves: List[uuid.UUID] = Field(default_factory=list)
    comments: List[CommentResponse] = Field(default_factory=list)


class LikesResponse(BaseModel):
    likes: List[uuid.UUID]


class SavesResponse(BaseModel):
    saves: List[uuid.UUID]


class CommentsResponse(BaseModel):
    comments: List[CommentResponse]
