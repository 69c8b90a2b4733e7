"""
Conversion of raw feed items into Record objects.

Feed adapters (PubMed, arXiv, journal RSS, news search) each emit dicts with
their own key names. This module maps them onto the canonical Record shape;
URL/title validation is left to the store.
"""

import re
from typing import Any, Optional, Union

from html2text import html2text

from bci_tracker.constants import ABSTRACT_MAX_LENGTH
from bci_tracker.models import Category, Record

_WHITESPACE = re.compile(r"\s+")

# Alternative keys used by the various adapters, most specific first
_TITLE_TRANSLATED_KEYS = ("title_translated", "titleZh")
_DATE_KEYS = ("date", "published", "updated")
_ABSTRACT_KEYS = ("abstract", "summary", "description")
_URL_KEYS = ("url", "link")


def coerce_category(value: Union[Category, str, None]) -> Category:
    """Map a category value to the enum; unknown values become UNSPECIFIED."""
    if isinstance(value, Category):
        return value
    try:
        return Category((value or "").strip().lower())
    except ValueError:
        return Category.UNSPECIFIED


def clean_text(value: Any) -> str:
    """Strip HTML and collapse whitespace."""
    if not value:
        return ""
    text = str(value)
    if "<" in text:
        text = html2text(text)
    return _WHITESPACE.sub(" ", text).strip()


def truncate(text: str, max_length: int = ABSTRACT_MAX_LENGTH) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "…"


def _first(raw: dict, keys) -> Any:
    for key in keys:
        value = raw.get(key)
        if value:
            return value
    return None


def _join_authors(authors: Any) -> str:
    """Authors may arrive as a string, a list of names or a list of dicts."""
    if not authors:
        return ""
    if isinstance(authors, str):
        return authors.strip()

    names = []
    for author in authors:
        if isinstance(author, dict):
            name = author.get("name", "")
        else:
            name = str(author)
        name = name.strip()
        if name:
            names.append(name)
    return ", ".join(names)


def normalize_record(
    raw: Any,
    provider: Optional[str] = None,
    category: Union[Category, str, None] = None,
) -> Optional[Record]:
    """
    Build a Record from a raw adapter item.

    Args:
        raw: Item dict, or an already-normalized Record (returned unchanged).
        provider: Feed identifier used when the item does not carry one.
        category: Category used when the item does not carry one.

    Returns:
        The Record, or None if `raw` is not something we can read.
    """
    if isinstance(raw, Record):
        return raw
    if not isinstance(raw, dict):
        return None

    return Record(
        url=str(_first(raw, _URL_KEYS) or "").strip(),
        title=clean_text(raw.get("title")),
        title_translated=clean_text(_first(raw, _TITLE_TRANSLATED_KEYS)),
        authors=_join_authors(raw.get("authors") or raw.get("author")),
        source=clean_text(raw.get("source")),
        date=str(_first(raw, _DATE_KEYS) or "").strip(),
        abstract=truncate(clean_text(_first(raw, _ABSTRACT_KEYS))),
        category=coerce_category(raw.get("category") or category),
        provider=str(raw.get("provider") or provider or "").strip(),
    )
