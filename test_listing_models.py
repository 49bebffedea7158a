"""
Tests for listing models and the boundary validator.
"""
import dataclasses

import pytest

from config import NOT_FOUND
from listing_models import (
    AttributePair,
    ListingValidationError,
    ParsedListing,
    ParserConfig,
    find_missing_fields,
    validate_listing,
)


def _listing(**overrides):
    fields = dict(
        title="Square Toilet Seat",
        price="£24.99",
        description_html="<p>Soft close</p>",
        item_specifics=(AttributePair("Brand", "Boston"),),
        item_id="204567890123",
        category="Bath > Toilet Seats",
    )
    fields.update(overrides)
    return ParsedListing(**fields)


def test_identity_key_is_case_insensitive():
    assert AttributePair("Brand", "Boston").identity_key == AttributePair("BRAND", "boston").identity_key
    assert AttributePair("ab", "c").identity_key != AttributePair("a", "bc").identity_key


def test_default_listing_is_all_sentinels():
    listing = ParsedListing()
    assert listing.title == listing.price == listing.description_html == NOT_FOUND
    assert listing.item_id == listing.category == NOT_FOUND
    assert listing.item_specifics == ()


def test_listing_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        _listing().title = "changed"


def test_to_dict_wire_format():
    assert _listing().to_dict() == {
        "title": "Square Toilet Seat",
        "price": "£24.99",
        "descriptionHtml": "<p>Soft close</p>",
        "itemSpecifics": [{"label": "Brand", "value": "Boston"}],
        "itemId": "204567890123",
        "category": "Bath > Toilet Seats",
    }


def test_from_dict_fills_blanks_with_sentinel():
    listing = ParsedListing.from_dict({"title": "", "itemSpecifics": [{"label": "Brand", "value": "Boston"}, "junk"]})

    assert listing.title == NOT_FOUND
    assert listing.description_html == NOT_FOUND
    assert listing.item_specifics == (AttributePair("Brand", "Boston"),)
    assert ParsedListing.from_dict(_listing().to_dict()) == _listing()


def test_validate_accepts_usable_listing():
    listing = _listing(price=NOT_FOUND, item_id=NOT_FOUND, category=NOT_FOUND)
    assert validate_listing(listing) is listing


def test_validate_names_missing_fields():
    listing = _listing(title=NOT_FOUND, item_specifics=())

    with pytest.raises(ListingValidationError) as exc_info:
        validate_listing(listing)

    assert exc_info.value.missing_fields == ["title", "item specifics"]
    assert "title, item specifics" in str(exc_info.value)
    assert isinstance(exc_info.value, ValueError)


def test_find_missing_fields_all():
    assert find_missing_fields(ParsedListing()) == ["title", "description", "item specifics"]


def test_parser_config_rejects_bound_smaller_than_marker():
    with pytest.raises(ValueError):
        ParserConfig(description_max_length=10)
