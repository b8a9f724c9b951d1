"""Text normalization for matching channel product names to stock records."""

from __future__ import annotations

import re

from returnsync.domain.model import DEFAULT_COLOR, extract_brand

_BRACKETED = re.compile(r"\[[^\]]*\]|\([^)]*\)")
_WHITESPACE = re.compile(r"\s+")
_BRAND_PREFIX = re.compile(r"^[a-zA-Z]{2}(?:\s+|$)")


def normalize_product_name(raw: str | None) -> str:
    """Strip ``[...]``/``(...)`` annotations and collapse whitespace.

    >>> normalize_product_name("[오늘출발] hm 니트 (재입고)")
    'hm 니트'
    """

    if not raw:
        return ""
    stripped = _BRACKETED.sub(" ", raw)
    return _WHITESPACE.sub(" ", stripped).strip()


def search_keyword(normalized_name: str) -> str:
    """Return the name remainder after a leading two-letter brand prefix."""

    return _BRAND_PREFIX.sub("", normalized_name, count=1).strip()


def option_as_color(option_name: str | None) -> str:
    """Colors on stock records come straight from the option string, with a placeholder."""

    if option_name is None:
        return DEFAULT_COLOR
    option = option_name.strip()
    return option or DEFAULT_COLOR


def display_name(raw: str | None) -> str:
    normalized = normalize_product_name(raw)
    if normalized:
        return normalized
    return (raw or "").strip()


def brand_for(name: str) -> str:
    return extract_brand(name)


__all__ = [
    "brand_for",
    "display_name",
    "normalize_product_name",
    "option_as_color",
    "search_keyword",
]
