"""
Blog post routes: public reading, authoring, likes and comments.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Session

from ..auth import ensure_owner, get_optional_user, get_required_user
from ..database import get_db
from ..lifecycle import save_post
from ..likes import toggle_like
from ..logging_config import api_logger
from ..models.post import Comment, Post, PostTag, POST_CATEGORIES, POST_STATUSES
from ..models.user import User
from ..responses import not_found, pagination
from ..schemas.posts import (
    CommentCreate,
    CommentResponse,
    PostCreate,
    PostDetail,
    PostSummary,
    PostUpdate,
    TagCount,
)

router = APIRouter(prefix="/api/blogs", tags=["blogs"])

TOP_TAGS_LIMIT = 20

# Optional fields a client may reset with an explicit null
CLEARABLE_FIELDS = {"excerpt", "featured_image"}


def _public(query):
    return query.filter(Post.status == "published", Post.is_active.is_(True))


def get_post_or_404(db: Session, post_id: int) -> Post:
    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        not_found("Blog")
    return post


def get_public_post_or_404(db: Session, post_id: int) -> Post:
    post = _public(db.query(Post)).filter(Post.id == post_id).first()
    if not post:
        not_found("Blog")
    return post


def post_detail(post: Post, viewer: Optional[User]) -> PostDetail:
    detail = PostDetail.model_validate(post)
    return detail.model_copy(update={"is_liked": post.is_liked_by(viewer.id if viewer else None)})


# ------------------------------------------------------------
# Metadata
# ------------------------------------------------------------

@router.get("/meta/categories")
def get_categories():
    """List the fixed set of post categories."""
    return {"categories": list(POST_CATEGORIES)}


@router.get("/meta/tags")
def get_tags(db: Session = Depends(get_db)):
    """Top tags across published posts, most used first."""
    usage = func.count(PostTag.id).label("count")
    rows = _public(
        db.query(PostTag.name, usage).join(Post, Post.id == PostTag.post_id)
    ).group_by(PostTag.name).order_by(desc(usage), PostTag.name).limit(TOP_TAGS_LIMIT).all()

    return {"tags": [TagCount(tag=name, count=count) for name, count in rows]}


# ------------------------------------------------------------
# Reading
# ------------------------------------------------------------

@router.get("")
def list_posts(
    category: Optional[str] = None,
    tag: Optional[str] = None,
    author: Optional[int] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """List published posts with optional filtering and pagination."""
    query = _public(db.query(Post))

    if category:
        query = query.filter(Post.category == category)
    if tag:
        query = query.filter(Post.tag_rows.any(PostTag.name == tag.strip().lower()))
    if author:
        query = query.filter(Post.author_id == author)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Post.title.ilike(pattern),
            Post.content.ilike(pattern),
            Post.excerpt.ilike(pattern),
        ))

    total = query.count()
    posts = (
        query.order_by(Post.published_at.desc(), Post.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "blogs": [PostSummary.model_validate(p) for p in posts],
        "pagination": pagination(total, page, limit),
    }


@router.get("/user/my-blogs")
def list_my_posts(
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(" + "|".join(POST_STATUSES) + ")$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """List the current user's posts in any status."""
    query = db.query(Post).filter(Post.author_id == current_user.id)
    if status_filter:
        query = query.filter(Post.status == status_filter)

    total = query.count()
    posts = (
        query.order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "blogs": [PostSummary.model_validate(p) for p in posts],
        "pagination": pagination(total, page, limit),
    }


@router.get("/edit/{post_id}")
def get_post_for_edit(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Fetch any of the caller's own posts, whatever its status."""
    post = get_post_or_404(db, post_id)
    ensure_owner(current_user, post)
    return {"blog": post_detail(post, current_user)}


@router.get("/{slug}")
def get_post(
    slug: str,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """Read a published post by slug; counts as a view."""
    post = _public(db.query(Post)).filter(Post.slug == slug).first()
    if not post:
        not_found("Blog")

    db.query(Post).filter(Post.id == post.id).update(
        {Post.views: Post.views + 1}, synchronize_session=False
    )
    db.commit()
    db.refresh(post)

    return {"blog": post_detail(post, current_user)}


# ------------------------------------------------------------
# Authoring
# ------------------------------------------------------------

@router.post("", status_code=status.HTTP_201_CREATED)
def create_post(
    post_data: PostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Create a new post owned by the current user."""
    post = Post(author_id=current_user.id)
    save_post(db, post, post_data.model_dump())

    api_logger.info("Post created", post_id=post.id, slug=post.slug, author_id=current_user.id)
    return {"message": "Blog created successfully", "blog": post_detail(post, current_user)}


@router.put("/{post_id}")
def update_post(
    post_id: int,
    post_update: PostUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Update a post (owner or admin)."""
    post = get_post_or_404(db, post_id)
    ensure_owner(current_user, post)

    changes = {
        key: value
        for key, value in post_update.model_dump(exclude_unset=True).items()
        if value is not None or key in CLEARABLE_FIELDS
    }
    save_post(db, post, changes)

    return {"message": "Blog updated successfully", "blog": post_detail(post, current_user)}


@router.delete("/{post_id}")
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Delete a post with its comments, tags and likes (owner or admin)."""
    post = get_post_or_404(db, post_id)
    ensure_owner(current_user, post)

    db.delete(post)
    db.commit()

    api_logger.info("Post deleted", post_id=post_id, user_id=current_user.id)
    return {"message": "Blog deleted successfully"}


# ------------------------------------------------------------
# Engagement
# ------------------------------------------------------------

@router.post("/{post_id}/like")
def like_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Toggle the current user's like on a published post."""
    get_public_post_or_404(db, post_id)
    result = toggle_like(db, post_id, current_user.id)

    return {
        "message": "Blog liked" if result.liked else "Blog unliked",
        "is_liked": result.liked,
        "like_count": result.like_count,
    }


@router.post("/{post_id}/comments", status_code=status.HTTP_201_CREATED)
def add_comment(
    post_id: int,
    comment_data: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Append a comment to a published post."""
    post = get_public_post_or_404(db, post_id)

    comment = Comment(post_id=post.id, author_id=current_user.id, content=comment_data.content)
    db.add(comment)
    db.commit()
    db.refresh(comment)

    return {
        "message": "Comment added successfully",
        "comment": CommentResponse.model_validate(comment),
    }
