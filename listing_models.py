"""
Data models for the listing extraction system.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Any

import config
from config import NOT_FOUND


@dataclass(frozen=True)
class AttributePair:
    """One labeled item specific, e.g. Brand: Boston."""

    label: str
    value: str

    @property
    def identity_key(self) -> str:
        return self.label.lower() + "\u0000" + self.value.lower()

    def to_dict(self) -> Dict[str, str]:
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True)
class ParsedListing:
    """Structured record extracted from one saved listing page."""

    title: str = NOT_FOUND
    price: str = NOT_FOUND
    description_html: str = NOT_FOUND
    item_specifics: Tuple[AttributePair, ...] = field(default_factory=tuple)
    item_id: str = NOT_FOUND
    category: str = NOT_FOUND

    def to_dict(self) -> Dict[str, Any]:
        """Wire format consumed by report, export and prompt builders."""
        return {
            "title": self.title,
            "price": self.price,
            "descriptionHtml": self.description_html,
            "itemSpecifics": [pair.to_dict() for pair in self.item_specifics],
            "itemId": self.item_id,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedListing":
        """Rebuild a listing from its wire format; blank fields become NOT_FOUND."""
        specifics = tuple(
            AttributePair(label=str(entry.get("label", "")), value=str(entry.get("value", "")))
            for entry in data.get("itemSpecifics") or []
            if isinstance(entry, dict)
        )
        return cls(
            title=data.get("title") or NOT_FOUND,
            price=data.get("price") or NOT_FOUND,
            description_html=data.get("descriptionHtml") or NOT_FOUND,
            item_specifics=specifics,
            item_id=data.get("itemId") or NOT_FOUND,
            category=data.get("category") or NOT_FOUND,
        )


@dataclass(frozen=True)
class ParserConfig:
    """Thresholds and markers used by ListingHTMLParser."""

    title_min_length: int = config.TITLE_MIN_LENGTH
    item_id_min_digits: int = config.ITEM_ID_MIN_DIGITS
    item_id_fallback_digits: int = config.ITEM_ID_FALLBACK_DIGITS
    description_min_length: int = config.DESCRIPTION_MIN_LENGTH
    fallback_min_length: int = config.FALLBACK_MIN_LENGTH
    fallback_max_length: int = config.FALLBACK_MAX_LENGTH
    description_max_length: int = config.DESCRIPTION_MAX_LENGTH
    category_separator: str = config.CATEGORY_SEPARATOR
    truncation_marker: str = config.TRUNCATION_MARKER
    fallback_truncation_marker: str = config.FALLBACK_TRUNCATION_MARKER
    page_disclaimer: str = config.PAGE_DISCLAIMER
    body_disclaimer: str = config.BODY_DISCLAIMER

    def __post_init__(self):
        if self.description_max_length <= len(self.truncation_marker):
            raise ValueError(
                f"description_max_length must exceed the truncation marker length "
                f"({len(self.truncation_marker)}), got {self.description_max_length}"
            )


class ListingValidationError(ValueError):
    """Raised when a parsed listing lacks the fields needed for an audit."""

    def __init__(self, missing_fields: List[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"Could not extract essential listing data ({', '.join(self.missing_fields)}) "
            "from the HTML file. Please ensure it's a valid eBay listing 'Webpage, Complete' file."
        )


def find_missing_fields(listing: ParsedListing) -> List[str]:
    """Names of the mandatory fields that are at their "nothing usable" state."""
    missing = []
    if listing.title == NOT_FOUND:
        missing.append("title")
    if listing.description_html == NOT_FOUND:
        missing.append("description")
    if not listing.item_specifics:
        missing.append("item specifics")
    return missing


def validate_listing(listing: ParsedListing) -> ParsedListing:
    """Return the listing unchanged, or raise ListingValidationError."""
    missing = find_missing_fields(listing)
    if missing:
        raise ListingValidationError(missing)
    return listing
