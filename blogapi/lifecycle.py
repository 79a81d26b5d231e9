"""
Post persistence lifecycle.

Every create or update goes through ``save_post``, which applies the incoming
field changes, derives slug / reading time / publish timestamp from whatever
actually changed, and writes the row. The slug existence check and the write
are not isolated from other writers, so a lost race on ``posts.slug`` (UNIQUE)
is retried with a freshly derived slug.
"""
import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .logging_config import db_logger
from .models.post import Post
from .responses import conflict
from .slugs import unique_slug

WORDS_PER_MINUTE = 200
SLUG_MAX_ATTEMPTS = 5


def reading_time(content: str) -> int:
    """Minutes to read ``content`` at 200 words per minute (0 for no words)."""
    words = len((content or "").split())
    return math.ceil(words / WORDS_PER_MINUTE)


def _modified(post: Post, field: str) -> bool:
    return inspect(post).attrs[field].history.has_changes()


def prepare_post(db: Session, post: Post, now: Optional[datetime] = None) -> Post:
    """Derive slug, reading time and publish timestamp before a write.

    Each derived field only follows its own source: a content edit leaves the
    slug alone and a title edit leaves the reading time alone.
    """
    state = inspect(post)

    if _modified(post, "title") or not post.slug:
        exclude_id = post.id if state.has_identity else None
        post.slug = unique_slug(db, post.title, exclude_id=exclude_id)

    if _modified(post, "content"):
        post.reading_time = reading_time(post.content)

    if _modified(post, "status") and post.status == "published" and post.published_at is None:
        post.published_at = now or datetime.now(timezone.utc)

    return post


def _apply(post: Post, changes: Dict[str, Any]) -> None:
    for field, value in changes.items():
        if getattr(post, field) != value:
            setattr(post, field, value)


def _is_slug_conflict(exc: IntegrityError) -> bool:
    return "slug" in str(exc.orig).lower()


def save_post(db: Session, post: Post, changes: Optional[Dict[str, Any]] = None) -> Post:
    """Apply ``changes`` to ``post``, derive its computed fields and commit.

    Used for both creation (a transient ``Post``) and updates (a persistent
    one). The author is never part of ``changes`` on update.
    """
    changes = changes or {}

    for attempt in range(1, SLUG_MAX_ATTEMPTS + 1):
        _apply(post, changes)
        prepare_post(db, post)
        db.add(post)
        try:
            db.flush()
        except IntegrityError as exc:
            conflicting_slug = post.slug
            db.rollback()
            if not _is_slug_conflict(exc):
                raise
            db_logger.warning(
                "Slug taken by a concurrent write, retrying",
                slug=conflicting_slug,
                attempt=attempt,
            )
            # Force re-derivation from the title on the next pass
            post.slug = None
            continue

        db.commit()
        db.refresh(post)
        return post

    db_logger.error("Gave up assigning a unique slug", title=post.title, attempts=SLUG_MAX_ATTEMPTS)
    conflict("Could not assign a unique slug, please retry", {"attempts": SLUG_MAX_ATTEMPTS})
