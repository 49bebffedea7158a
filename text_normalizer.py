"""
Text utilities for cleaning extracted listing content.
"""
import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")

# Anything that is not a digit, separator or supported currency symbol
_PRICE_NOISE = re.compile(r"[^\d.,£$€]+")
# A comma between digits that is followed later by another separator is grouping
_GROUPING_COMMA = re.compile(r"(?<=\d),(?=\d+[.,]\d)")
_DECIMAL_COMMA = re.compile(r"(\d),(\d)")

_TITLE_BOILERPLATE = [
    re.compile(r"^\s*details about\s*", re.I),
    re.compile(r"new listing", re.I),
    re.compile(r"brand new\b", re.I),
    re.compile(r"used - ", re.I),
    re.compile(r"(\([0-9]+\) )?\s*product details - \s*ebay", re.I),
    re.compile(r"\|\s*ebay.*$", re.I),
]

_BLOCK_CLOSE = re.compile(r"</(?:p|h[1-6]|ul|ol)\s*>", re.I)
_LINE_BREAK = re.compile(r"<br\s*/?>", re.I)
_LIST_ITEM_OPEN = re.compile(r"<li\b[^>]*>", re.I)
_ANY_TAG = re.compile(r"<[^>]+>")
_SPACE_AROUND_NEWLINE = re.compile(r"[ \t]*\n[ \t]*")
_EXTRA_NEWLINES = re.compile(r"\n{3,}")

_ENTITIES = [
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&#x27;", "'"),
    ("&apos;", "'"),
    # Last so "&amp;lt;" decodes to "&lt;" rather than "<"
    ("&amp;", "&"),
]


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    return _WHITESPACE.sub(" ", s).strip()


def digits_only(s: Optional[str]) -> str:
    """Keep only the digits of a string."""
    if not s:
        return ""
    return re.sub(r"[^0-9]", "", s)


def normalize_price(price_text: Optional[str]) -> str:
    """
    Reduce raw price text to symbol, digits and a dot decimal separator.

    "£1,234.56" -> "£1234.56", "€12,50" -> "€12.50", "US $9.99" -> "$9.99".
    Returns "" when nothing numeric survives.
    """
    if not price_text:
        return ""
    s = _PRICE_NOISE.sub("", price_text)
    s = _GROUPING_COMMA.sub("", s)
    s = _DECIMAL_COMMA.sub(r"\1.\2", s)
    if not re.search(r"\d", s):
        return ""
    return s


def strip_title_boilerplate(title: Optional[str]) -> str:
    """Remove promotional prefixes and marketplace page-title suffixes."""
    s = title or ""
    for pattern in _TITLE_BOILERPLATE:
        s = pattern.sub("", s)
    return clean_text(s)


def bound_length(text: str, limit: int, marker: str) -> str:
    """
    Cut text so the result, marker included, is at most `limit` characters.

    Text already within the limit is returned unchanged (no marker).
    """
    if len(text) <= limit:
        return text
    keep = max(limit - len(marker), 0)
    return text[:keep] + marker


def decode_entities(s: str) -> str:
    for entity, char in _ENTITIES:
        s = s.replace(entity, char)
    return s


def html_to_text(html: Optional[str]) -> str:
    """
    Render rich description markup as readable plain text.

    Paragraph, heading and list ends become blank-line breaks, list items
    become "- " lines and the common entities are decoded.
    """
    if not html:
        return ""
    s = _WHITESPACE.sub(" ", html)
    s = _BLOCK_CLOSE.sub("\n\n", s)
    s = _LINE_BREAK.sub("\n", s)
    s = _LIST_ITEM_OPEN.sub("\n- ", s)
    s = _ANY_TAG.sub("", s)
    s = decode_entities(s)
    s = s.replace("\xa0", " ")
    s = re.sub(r"[ \t]{2,}", " ", s)
    s = _SPACE_AROUND_NEWLINE.sub("\n", s)
    s = _EXTRA_NEWLINES.sub("\n\n", s)
    return s.strip()
