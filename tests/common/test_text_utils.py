"""Tests for catalog_sync/common/text_utils.py"""

from catalog_sync.common.text_utils import (
    collapse_whitespace,
    escape_sql_literal,
    slugify,
    upgrade_image_url,
)


class TestSlugify:
    def test_lowercases_and_hyphenates(self):
        assert slugify("Reverse Holofoil") == "reverse-holofoil"

    def test_strips_special_characters(self):
        assert slugify("1st Edition (Holo)!") == "1st-edition-holo"

    def test_collapses_whitespace_runs(self):
        assert slugify("  Unlimited   Holofoil ") == "unlimited-holofoil"

    def test_keeps_existing_hyphens(self):
        assert slugify("Non-Holo") == "non-holo"

    def test_empty_input(self):
        assert slugify("") == ""
        assert slugify(None) == ""

    def test_only_special_characters(self):
        assert slugify("☆★") == ""


class TestCollapseWhitespace:
    def test_collapses_and_trims(self):
        assert collapse_whitespace("  Pikachu \t  V  ") == "Pikachu V"

    def test_empty(self):
        assert collapse_whitespace("") == ""


class TestEscapeSqlLiteral:
    def test_quotes_value(self):
        assert escape_sql_literal("Pikachu") == "'Pikachu'"

    def test_doubles_single_quotes(self):
        assert escape_sql_literal("Farfetch'd") == "'Farfetch''d'"

    def test_escapes_backslashes(self):
        assert escape_sql_literal("a\\b") == "'a\\\\b'"

    def test_none_is_null(self):
        assert escape_sql_literal(None) == "NULL"


class TestUpgradeImageUrl:
    def test_swaps_rendition(self):
        assert upgrade_image_url("https://cdn/x/1_200w.jpg") == "https://cdn/x/1_400w.jpg"

    def test_other_urls_unchanged(self):
        assert upgrade_image_url("https://cdn/x/1.jpg") == "https://cdn/x/1.jpg"

    def test_empty(self):
        assert upgrade_image_url("") == ""
