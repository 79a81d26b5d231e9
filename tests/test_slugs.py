"""
Tests for slug derivation and uniqueness.
"""
import pytest

from blogapi.slugs import FALLBACK_SLUG, base_slug, slug_taken, slugify, unique_slug


class TestSlugify:
    """Test the base title-to-slug transform."""

    @pytest.mark.parametrize("title,expected", [
        ("Hello World!", "hello-world"),
        ("Node.js: A (Quick) Guide @ 2024", "nodejs-a-quick-guide-2024"),
        ("  --Hello   World--  ", "hello-world"),
        ("Don't \"quote\" me", "dont-quote-me"),
        ("C++ & Rust ~ 2*2", "c-and-rust-22"),
        ("Café Olé", "cafe-ole"),
        ("already-a-slug", "already-a-slug"),
    ])
    def test_slugify(self, title, expected):
        assert slugify(title) == expected

    @pytest.mark.parametrize("title,expected", [
        ("Привет мир", "privet-mir"),
        ("Straße", "strasse"),
        ("Rock & Roll", "rock-and-roll"),
        ("100% Pure", "100percent-pure"),
        ("$5 Deals", "dollar5-deals"),
    ])
    def test_slugify_transliterates(self, title, expected):
        assert slugify(title) == expected

    def test_greek_title_is_not_the_fallback(self):
        slug = slugify("Ελληνικά")
        assert slug and slug != FALLBACK_SLUG
        assert slug.isascii() and slug.islower()
        assert base_slug("Ελληνικά") == slug

    def test_slugify_punctuation_only_is_empty(self):
        assert slugify("!!! ... ???") == ""

    def test_base_slug_falls_back_when_empty(self):
        assert base_slug("!!!") == FALLBACK_SLUG
        assert base_slug("Hello") == "hello"


class TestUniqueSlug:
    """Test collision resolution against stored posts."""

    def test_unused_slug_is_returned_as_is(self, db):
        assert unique_slug(db, "Fresh Title") == "fresh-title"

    def test_sequential_posts_get_numbered_suffixes(self, make_post):
        slugs = [make_post(title="Hello World!").slug for _ in range(4)]
        assert slugs == ["hello-world", "hello-world-1", "hello-world-2", "hello-world-3"]

    def test_titles_with_same_base_share_the_sequence(self, make_post):
        first = make_post(title="Hello, World")
        second = make_post(title="hello world!!")
        assert first.slug == "hello-world"
        assert second.slug == "hello-world-1"

    def test_own_slug_is_not_a_collision(self, db, make_post):
        post = make_post(title="Hello World!")
        assert slug_taken(db, "hello-world")
        assert not slug_taken(db, "hello-world", exclude_id=post.id)
        assert unique_slug(db, "Hello World!", exclude_id=post.id) == "hello-world"

    def test_punctuation_only_titles_use_fallback(self, make_post):
        first = make_post(title="!!!")
        second = make_post(title="???")
        assert first.slug == "post"
        assert second.slug == "post-1"
