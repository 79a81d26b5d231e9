"""
Post model and the rows owned by a post: comments, tags and likes.
"""
from sqlalchemy import (
    Column, Integer, String, DateTime, Text, Boolean, ForeignKey, UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base

POST_CATEGORIES = (
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
)
POST_STATUSES = ("draft", "published", "archived")


def _now():
    return datetime.now(timezone.utc)


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_status_published_at", "status", "published_at"),
        Index("ix_posts_author_status", "author_id", "status"),
        Index("ix_posts_category_status", "category", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    slug = Column(String(220), unique=True, index=True, nullable=False)
    content = Column(Text, nullable=False)
    excerpt = Column(String(300))
    featured_image = Column(String(500), default="")
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    category = Column(String(30), nullable=False)
    status = Column(String(20), default="draft", nullable=False)  # draft, published, archived
    views = Column(Integer, default=0, nullable=False)
    reading_time = Column(Integer, default=0, nullable=False)
    published_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    # Relationships
    author = relationship("User", back_populates="posts")
    comments = relationship(
        "Comment",
        back_populates="post",
        cascade="all",
        order_by="Comment.id",
    )
    tag_rows = relationship("PostTag", cascade="all, delete-orphan", order_by="PostTag.id")
    like_rows = relationship("PostLike", cascade="all")

    @property
    def tags(self):
        return [row.name for row in self.tag_rows]

    @tags.setter
    def tags(self, names):
        wanted = []
        for name in names or []:
            name = name.strip().lower()
            if name and name not in wanted:
                wanted.append(name)
        kept = [row for row in self.tag_rows if row.name in wanted]
        existing = {row.name for row in kept}
        self.tag_rows = kept + [PostTag(name=name) for name in wanted if name not in existing]

    @property
    def like_count(self) -> int:
        return len(self.like_rows)

    @property
    def comment_count(self) -> int:
        return len(self.comments)

    def is_liked_by(self, user_id) -> bool:
        return user_id is not None and any(row.user_id == user_id for row in self.like_rows)


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(String(1000), nullable=False)
    created_at = Column(DateTime, default=_now)

    post = relationship("Post", back_populates="comments")
    author = relationship("User")


class PostTag(Base):
    __tablename__ = "post_tags"
    __table_args__ = (UniqueConstraint("post_id", "name", name="uq_post_tags_post_name"),)

    id = Column(Integer, primary_key=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(50), nullable=False, index=True)


class PostLike(Base):
    __tablename__ = "post_likes"

    # Composite key: a user likes a post at most once
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=_now)
