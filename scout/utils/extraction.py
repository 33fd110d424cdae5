"""
Building blocks for best-effort extraction from unknown markup.

Each field of a scraped record is described by an ordered list of extractor
functions, most specific first. ``first_match`` runs them in order and keeps the
first non-empty value that satisfies the field's constraint.
"""

import re
from collections.abc import Callable, Iterable
from typing import TypeVar
from urllib.parse import urljoin, urlparse

from bs4.element import Tag

T = TypeVar("T")

Extractor = Callable[[Tag], T | None]

_WHITESPACE = re.compile(r"\s+")


def clean_text(element: Tag | None) -> str:
    """Element text with runs of whitespace collapsed to single spaces."""
    if element is None:
        return ""
    return _WHITESPACE.sub(" ", element.get_text()).strip()


def page_origin(url: str) -> str:
    """Extract base URL (scheme + netloc) from a full URL."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def resolve_url(href: str | None, page_url: str) -> str:
    """Make href absolute against the origin of page_url; "" for empty input."""
    href = (href or "").strip()
    if not href:
        return ""
    if href.startswith(("http://", "https://")):
        return href
    return urljoin(page_origin(page_url) + "/", href)


def select_text(selector: str) -> Extractor[str]:
    """Extractor for the cleaned text of the first element matching selector."""

    def extract(root: Tag) -> str | None:
        return clean_text(root.select_one(selector)) or None

    extract.__name__ = f"text({selector})"
    return extract


def select_attr(selector: str, attr: str) -> Extractor[str]:
    """Extractor for an attribute of the first element matching selector."""

    def extract(root: Tag) -> str | None:
        element = root.select_one(selector)
        if element is None:
            return None
        value = element.get(attr)
        return value.strip() if isinstance(value, str) and value.strip() else None

    extract.__name__ = f"attr({selector}@{attr})"
    return extract


def select_all(selector: str, limit: int | None = None) -> Extractor[list[Tag]]:
    """Extractor for every element matching selector, optionally capped."""

    def extract(root: Tag) -> list[Tag] | None:
        return root.select(selector, limit=limit) if limit else root.select(selector)

    extract.__name__ = f"all({selector})"
    return extract


def first_match(
    root: Tag,
    extractors: Iterable[Extractor[T]],
    accept: Callable[[T], bool] | None = None,
) -> T | None:
    """Return the first non-empty extractor result that passes accept."""
    for extract in extractors:
        value = extract(root)
        if value and (accept is None or accept(value)):
            return value
    return None


def first_text(root: Tag, selectors: Iterable[str]) -> str | None:
    """Text of the first selector (in list order) that matches anything."""
    return first_match(root, [select_text(selector) for selector in selectors])
