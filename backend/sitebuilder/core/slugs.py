from __future__ import annotations

import re

_PAGE_SLUG_RE = re.compile(r"/[a-z0-9\-/]*")
_SUBDOMAIN_RE = re.compile(r"[a-z0-9][a-z0-9-]{1,38}[a-z0-9]")
_NON_WORD_RE = re.compile(r"[^\w\s-]")
_SEPARATORS_RE = re.compile(r"[\s_-]+")


def slugify(text: str) -> str:
    """'Pizza Palace' -> 'pizza-palace'"""
    s = _NON_WORD_RE.sub("", (text or "").strip().lower())
    s = _SEPARATORS_RE.sub("-", s)
    return s.strip("-")


def is_valid_page_slug(slug: str | None) -> bool:
    """Starts with '/', then lowercase letters, digits, hyphens and slashes."""
    return bool(slug) and bool(_PAGE_SLUG_RE.fullmatch(slug))


def is_valid_subdomain(subdomain: str | None) -> bool:
    """3-40 chars of [a-z0-9-], not starting or ending with a hyphen."""
    return bool(subdomain) and bool(_SUBDOMAIN_RE.fullmatch(subdomain))
