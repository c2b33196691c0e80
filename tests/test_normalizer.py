from decimal import Decimal

import pytest

from app.errors import MissingFilterError, ValidationError
from app.search.normalizer import normalize, parse_decimal, parse_limit


def test_strings_are_trimmed_and_blank_means_absent():
    query = normalize({"q": "  botox ", "city": "   ", "category": ""}, require_filter=False)
    assert query.term == "botox"
    assert query.city is None
    assert query.category is None


def test_unrecognized_keys_are_ignored():
    query = normalize({"q": "spa", "order_by": "DROP TABLE", "page": "3"})
    assert query.term == "spa"


def test_malformed_price_filters_are_ignored():
    query = normalize({"q": "spa", "min_price": "cheap", "max_price": "50.5"})
    assert query.min_price is None
    assert query.max_price == Decimal("50.5")


@pytest.mark.parametrize("raw", ["NaN", "Infinity", "-inf", "1e", "", "1_0"])
def test_non_finite_or_invalid_decimals_are_absent(raw):
    assert parse_decimal(raw) is None


def test_camel_case_price_aliases():
    query = normalize({"city": "Phoenix", "minPrice": "10", "maxPrice": "99"})
    assert query.min_price == Decimal("10")
    assert query.max_price == Decimal("99")


def test_repeated_keys_use_first_value():
    query = normalize({"q": ["first", "second"]})
    assert query.term == "first"


@pytest.mark.parametrize("raw, expected", [
    (None, 10),
    ("", 10),
    ("abc", 10),
    ("2.5", 10),
    ("7", 7),
    ("0", 0),
    ("-3", -3),
    ("5_0", 10),
])
def test_parse_limit(raw, expected):
    assert parse_limit(raw, default=10) == expected


def test_missing_filter_rejected_when_required():
    with pytest.raises(MissingFilterError) as exc_info:
        normalize({"category": "spa"}, require_filter=True)
    assert isinstance(exc_info.value, ValidationError)
    assert exc_info.value.status_code == 400
    assert exc_info.value.public_message == "Missing q or city parameter"


def test_whitespace_only_term_does_not_satisfy_filter_policy():
    with pytest.raises(MissingFilterError):
        normalize({"q": "   "}, require_filter=True)


def test_unrestricted_listing_allowed_when_policy_off():
    query = normalize({}, require_filter=False)
    assert query.term is None
    assert query.city is None
    assert query.limit == 10


def test_city_alone_is_a_discriminating_filter():
    query = normalize({"city": "Phoenix"}, require_filter=True)
    assert query.city == "Phoenix"
