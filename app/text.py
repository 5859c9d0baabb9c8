"""
Slug and excerpt helpers for post and category titles.
"""
import re
from typing import Iterable

SLUG_MAX_LENGTH = 100
EXCERPT_MAX_LENGTH = 150

# ASCII letters/digits, Hangul syllables, whitespace and hyphen survive slugification
_DISALLOWED = re.compile(r"[^a-z0-9가-힣\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")
_VALID_SLUG = re.compile(r"^[a-z0-9가-힣-]+$")

_MARKDOWN_MARKERS = re.compile(r"[#*`]")
_HTML_TAGS = re.compile(r"<[^>]*>")
_NEWLINES = re.compile(r"\n+")


def slugify(title: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Turn a title into a URL slug.

    The result is stable for a given title and slugify(slugify(t)) == slugify(t).
    """
    slug = _DISALLOWED.sub("", title.lower())
    slug = _WHITESPACE.sub("-", slug.strip())
    slug = _HYPHENS.sub("-", slug).strip("-")
    return slug[:max_length].rstrip("-")


def is_valid_slug(slug: str) -> bool:
    """Check that a slug is non-empty, short enough and uses only slug characters."""
    return 0 < len(slug) <= SLUG_MAX_LENGTH and bool(_VALID_SLUG.match(slug))


def unique_slug(base: str, used: Iterable[str], max_length: int = SLUG_MAX_LENGTH) -> str:
    """Return base, or base-1, base-2, ... whichever is first absent from used.

    The base is shortened as needed so a suffixed slug still fits max_length.
    """
    taken = set(used)
    candidate = base
    counter = 1
    while candidate in taken:
        suffix = f"-{counter}"
        candidate = base[: max_length - len(suffix)].rstrip("-") + suffix
        counter += 1
    return candidate


def make_excerpt(content: str, max_length: int = EXCERPT_MAX_LENGTH) -> str:
    """Plain-text summary of post content, cut on a word boundary when it is too long."""
    text = _MARKDOWN_MARKERS.sub("", content)
    text = _HTML_TAGS.sub("", text)
    text = _NEWLINES.sub(" ", text).strip()

    if len(text) <= max_length:
        return text

    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        truncated = truncated[:last_space]
    return truncated + "..."
