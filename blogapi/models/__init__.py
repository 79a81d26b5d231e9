from .user import User
from .post import Post, Comment, PostTag, PostLike

__all__ = [
    "User",
    "Post",
    "Comment",
    "PostTag",
    "PostLike",
]
