from pydantic import BaseModel, Field
from typing import Annotated, Optional, List, Literal
from datetime import datetime

Category = Literal[
    "Technology",
    "Lifestyle",
    "Travel",
    "Food",
    "Health",
    "Business",
    "Education",
    "Entertainment",
    "Sports",
    "Other",
]
Tag = Annotated[str, Field(max_length=50)]


class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=50)
    excerpt: Optional[str] = Field(None, max_length=300)
    category: Category
    tags: List[Tag] = []
    featured_image: Optional[str] = Field("", max_length=500)
    status: Literal["draft", "published"] = "draft"

    class Config:
        str_strip_whitespace = True


class PostUpdate(BaseModel):
    """Partial update; the author of a post cannot be changed."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=50)
    excerpt: Optional[str] = Field(None, max_length=300)
    category: Optional[Category] = None
    tags: Optional[List[Tag]] = None
    featured_image: Optional[str] = Field(None, max_length=500)
    status: Optional[Literal["draft", "published", "archived"]] = None

    class Config:
        str_strip_whitespace = True


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)

    class Config:
        str_strip_whitespace = True


class AuthorSummary(BaseModel):
    id: int
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None

    class Config:
        from_attributes = True


class CommentResponse(BaseModel):
    id: int
    content: str
    created_at: datetime
    author: AuthorSummary

    class Config:
        from_attributes = True


class PostSummary(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    featured_image: Optional[str] = None
    category: str
    tags: List[str] = []
    status: str
    views: int
    reading_time: int
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    author: AuthorSummary
    like_count: int = 0
    comment_count: int = 0

    class Config:
        from_attributes = True


class PostDetail(PostSummary):
    content: str
    comments: List[CommentResponse] = []
    is_liked: bool = False


class TagCount(BaseModel):
    tag: str
    count: int
