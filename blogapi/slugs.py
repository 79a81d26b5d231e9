"""
Slug derivation and uniqueness resolution for posts.
"""
import re
from typing import Optional

from slugify import slugify as transliterate
from sqlalchemy.orm import Session

from .models.post import Post

FALLBACK_SLUG = "post"

_REMOVED_CHARS = re.compile(r"""[*+~.()'"!:@]""")

# Symbols spelled out instead of being dropped as unsafe
SYMBOL_WORDS = [
    ("&", "and"),
    ("%", "percent"),
    ("$", "dollar"),
    ("<", "less"),
    (">", "greater"),
    ("|", "or"),
]


def slugify(text: str) -> str:
    """Lower-case, ASCII-only, dash-separated slug for ``text``.

    Non-Latin scripts are transliterated (``Straße`` -> ``strasse``). Returns
    an empty string when nothing slug-safe is left; callers decide on a
    fallback.
    """
    text = _REMOVED_CHARS.sub("", text or "")
    return transliterate(text, entities=False, replacements=SYMBOL_WORDS)


def base_slug(title: str) -> str:
    return slugify(title) or FALLBACK_SLUG


def slug_taken(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
    """Whether a post other than ``exclude_id`` already holds ``slug``."""
    query = db.query(Post.id).filter(Post.slug == slug)
    if exclude_id is not None:
        query = query.filter(Post.id != exclude_id)
    return db.query(query.exists()).scalar()


def unique_slug(db: Session, title: str, exclude_id: Optional[int] = None) -> str:
    """First free slug out of ``base``, ``base-1``, ``base-2``, ..."""
    base = base_slug(title)
    candidate = base
    counter = 1
    with db.no_autoflush:
        while slug_taken(db, candidate, exclude_id):
            candidate = f"{base}-{counter}"
            counter += 1
    return candidate
