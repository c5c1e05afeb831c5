from trailpost.models.user import Follow, User
from trailpost.models.post import Comment, Post, PostLike, PostSave

__all__ = ["User", "Follow", "Post", "Comment", "PostLike", "PostSave"]
