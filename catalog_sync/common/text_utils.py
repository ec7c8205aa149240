"""
Text Utilities

Helper functions for text processing and cleanup.
"""

import re


def slugify(text: str) -> str:
    """
    Convert text to a lowercase, hyphenated slug.

    Characters outside [a-z0-9], whitespace and hyphen are dropped and
    whitespace runs become a single hyphen.

    Args:
        text: Text to slugify

    Returns:
        Slug, or '' for empty input

    Example:
        >>> slugify("Reverse Holofoil")
        'reverse-holofoil'
    """
    if not text:
        return ''

    slug = str(text).lower().strip()
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    return re.sub(r'\s+', '-', slug)


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace to a single space and trim."""
    if not text:
        return ''
    return re.sub(r'\s+', ' ', text).strip()


def escape_sql_literal(value) -> str:
    """
    Render a value as a quoted MySQL string literal.

    Args:
        value: Value to quote (None becomes NULL)

    Returns:
        SQL literal text
    """
    if value is None:
        return 'NULL'
    escaped = str(value).replace('\\', '\\\\').replace("'", "''")
    return f"'{escaped}'"


def upgrade_image_url(url: str) -> str:
    """Swap the 200px feed thumbnail for the 400px rendition."""
    if not url:
        return ''
    return url.replace('_200w', '_400w')
