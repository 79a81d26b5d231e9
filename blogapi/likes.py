"""
Like toggling.

A like is a ``(post_id, user_id)`` row with a composite primary key, so the
toggle is a single DELETE or INSERT and never rewrites the post.
"""
from dataclasses import dataclass

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models.post import PostLike


@dataclass
class LikeResult:
    liked: bool
    like_count: int


def count_likes(db: Session, post_id: int) -> int:
    return db.scalar(select(func.count()).select_from(PostLike).where(PostLike.post_id == post_id))


def toggle_like(db: Session, post_id: int, user_id: int) -> LikeResult:
    """Flip ``user_id``'s like on ``post_id`` and report the resulting state."""
    removed = db.execute(
        delete(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id)
    ).rowcount

    liked = not removed
    if liked:
        try:
            db.add(PostLike(post_id=post_id, user_id=user_id))
            db.flush()
        except IntegrityError:
            # Another request inserted the same like first; the user likes it either way
            db.rollback()

    db.commit()
    return LikeResult(liked=liked, like_count=count_likes(db, post_id))
