import pytest

from app.models import LISTING_FIELDS, ListingOut
from app.search.projector import ResultProjector, as_tags
from .test_utils import reported


@pytest.fixture
def projector():
    return ResultProjector()


@pytest.fixture
def full_row():
    return {
        "id": "b7e1", "business_name": "Glow Med Spa", "category": "Beauty",
        "subcategory": "Med Spa", "city": "Phoenix", "state": "AZ",
        "address": "1 Camelback Rd", "zip": "85016", "phone": "+1 602 555 0100",
        "email": "hi@glow.example", "website": "https://glow.example",
        "rating": 4.7, "review_count": 212, "price": 199.0, "min_price": 150.0,
        "max_price": 250.0, "offer_title": "Botox special",
        "offer_description": "20 units", "image_url": "https://img.example/1.jpg",
        "buy_url": "https://glow.example/buy", "book_url": "https://glow.example/book",
        "tags": ["fillers", "botox"], "sponsored": True, "score": 0.92,
        "title": "Glow", "description": "Med spa in Phoenix",
        "scene": "spa", "headline": "Look fresh",
    }


def test_every_canonical_field_is_always_present(projector):
    with reported("test_every_canonical_field_is_always_present"):
        projected = projector.project_row({"id": 1})
        assert tuple(projected) == LISTING_FIELDS
        assert projected["id"] == "1"
        assert projected["city"] is None
        assert projected["tags"] is None
        assert projected["sponsored"] is False


def test_projection_reparses_to_same_values(projector, full_row):
    with reported("test_projection_reparses_to_same_values"):
        projected = projector.project_row(full_row)
        reparsed = ListingOut.model_validate_json(ListingOut(**projected).model_dump_json())
        assert reparsed.model_dump() == projected
        assert projected["tags"] == ["botox", "fillers"]
        assert projected["rating"] == 4.7


def test_schema_variants_normalize_to_canonical_names(projector):
    row = {
        "id": 7, "name": "Old Schema Spa", "sub_category": "Facials",
        "reviews": "31", "zip_code": 85004, "image": "a.png",
        "is_sponsored": "t", "quality_score": "0.5",
    }
    projected = projector.project_row(row)
    assert projected["business_name"] == "Old Schema Spa"
    assert projected["subcategory"] == "Facials"
    assert projected["review_count"] == 31
    assert projected["zip"] == "85004"
    assert projected["image_url"] == "a.png"
    assert projected["sponsored"] is True
    assert projected["score"] == 0.5


def test_bad_values_fall_back_to_null_without_failing(projector):
    row = {
        "id": 3, "rating": "five stars", "review_count": 2.5,
        "price": float("nan"), "sponsored": "sometimes", "tags": 42,
        "business_name": {"nested": True},
    }
    projected = projector.project_row(row)
    assert projected["rating"] is None
    assert projected["review_count"] is None
    assert projected["price"] is None
    assert projected["sponsored"] is False
    assert projected["tags"] is None
    assert projected["business_name"] is None


@pytest.mark.parametrize("raw, expected", [
    (["b", "a", "a", " "], ["a", "b"]),
    ("{botox,\"lip filler\"}", ["botox", "lip filler"]),
    ("spa, facial ,spa", ["facial", "spa"]),
    ([], []),
])
def test_tags_accept_lists_arrays_and_strings(raw, expected):
    assert as_tags("tags", raw) == expected


def test_project_keeps_row_order(projector):
    rows = [{"id": 3}, {"id": 1}, {"id": 2}]
    assert [r["id"] for r in projector.project(rows)] == ["3", "1", "2"]
