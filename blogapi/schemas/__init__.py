from .auth import UserCreate, UserLogin, ProfileUpdate, UserResponse, ProfileResponse, AuthResponse
from .posts import (
    PostCreate, PostUpdate, CommentCreate, AuthorSummary, CommentResponse,
    PostSummary, PostDetail, TagCount,
)

__all__ = [
    "UserCreate", "UserLogin", "ProfileUpdate", "UserResponse", "ProfileResponse", "AuthResponse",
    "PostCreate", "PostUpdate", "CommentCreate", "AuthorSummary", "CommentResponse",
    "PostSummary", "PostDetail", "TagCount",
]
