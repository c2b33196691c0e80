import pytest

from app.db.memory import InMemoryDataSource
from app.search.pagination import clamp_limit
from app.search.query import ASC, DESC, NULLS_LAST, And, CompiledQuery, SortKey
from app.search.sorting import TIE_BREAK, SortComposer
from .conftest import make_listing


# -----------------------------------------------------------------
# Pagination
# -----------------------------------------------------------------
@pytest.mark.parametrize("requested", [-100, -1, 0, 1, 2, 10, 49, 50, 51, 10_000, None])
def test_clamp_is_idempotent_and_bounded(requested):
    once = clamp_limit(requested, max_limit=50)
    assert 1 <= once <= 50
    assert clamp_limit(once, max_limit=50) == once


def test_zero_limit_clamps_up_to_one():
    assert clamp_limit(0, max_limit=20) == 1


def test_absent_limit_uses_default():
    assert clamp_limit(None, max_limit=50, default=10) == 10
    assert clamp_limit(None, max_limit=5, default=10) == 5


# -----------------------------------------------------------------
# Composition du tri
# -----------------------------------------------------------------
def test_default_sort_chain():
    keys = SortComposer("rating").compose()
    assert keys == (
        SortKey("sponsored", DESC, NULLS_LAST, null_as=False),
        SortKey("score", DESC, NULLS_LAST),
        SortKey("rating", DESC, NULLS_LAST),
        SortKey("id", ASC, NULLS_LAST),
    )


def test_price_secondary_sort_keeps_id_tie_break():
    keys = SortComposer("price").compose(ranked=True)
    assert [k.field for k in keys] == ["sponsored", "relevance", "score", "price", "id"]
    assert keys[3].direction == ASC
    assert keys[-1] == TIE_BREAK


def test_unknown_secondary_sort_is_rejected():
    with pytest.raises(ValueError):
        SortComposer("distance")


# -----------------------------------------------------------------
# Ordre effectif
# -----------------------------------------------------------------
async def _order(rows, secondary="rating", limit=50):
    compiled = CompiledQuery(predicate=And(()), sort=SortComposer(secondary).compose(), limit=limit)
    result = await InMemoryDataSource(rows).execute(compiled)
    return [row["id"] for row in result]


@pytest.mark.asyncio
async def test_equal_rank_breaks_ties_on_smaller_id():
    rows = [
        make_listing(9, sponsored=True, score=3.0, rating=4.0),
        make_listing(2, sponsored=True, score=3.0, rating=4.0),
        make_listing(5, sponsored=True, score=3.0, rating=4.0),
    ]
    assert await _order(rows) == [2, 5, 9]


@pytest.mark.asyncio
async def test_unset_sponsorship_counts_as_not_sponsored():
    rows = [
        make_listing(1, sponsored=None, score=9.0),
        make_listing(2, sponsored=False, score=1.0),
        make_listing(3, sponsored=True, score=0.5),
    ]
    # 1 et 2 sont ex aequo sur le sponsoring : le score les départage
    assert await _order(rows) == [3, 1, 2]


@pytest.mark.asyncio
async def test_null_scores_and_ratings_sort_last():
    rows = [
        make_listing(1, score=None, rating=5.0),
        make_listing(2, score=2.0, rating=None),
        make_listing(3, score=2.0, rating=3.0),
        make_listing(4, score=None, rating=None),
    ]
    assert await _order(rows) == [3, 2, 1, 4]


@pytest.mark.asyncio
async def test_price_ascending_secondary_sort():
    rows = [
        make_listing(1, score=1.0, price=80),
        make_listing(2, score=1.0, price=None),
        make_listing(3, score=1.0, price=20),
    ]
    assert await _order(rows, secondary="price") == [3, 1, 2]
