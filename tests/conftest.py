# tests/conftest.py
import pytest
from unittest.mock import MagicMock, AsyncMock


def make_listing(listing_id, **fields):
    """Annonce minimale ; les champs non fournis sont absents de la ligne."""
    row = {"id": listing_id, "business_name": f"Business {listing_id}"}
    row.update(fields)
    return row


@pytest.fixture
def phoenix_listings():
    """
    3 annonces sponsorisées « botox » à Phoenix + 10 annonces hors critères.
    """
    matching = [
        make_listing(
            i, business_name=f"Glow Med Spa {i}", category="Med Spa",
            city="Phoenix", state="AZ", sponsored=True, score=5 - i,
            rating=4.5, tags=["botox", "fillers"],
            offer_title="Botox special", offer_description="20 units of Botox",
        )
        for i in (1, 2, 3)
    ]
    others = [
        make_listing(
            i, business_name=f"Taco Stand {i}", category="Restaurant",
            city="Phoenix" if i % 2 else "Tucson", state="AZ",
            sponsored=bool(i % 3 == 0), score=9.0, rating=4.9,
            tags=["food"], offer_title="Two tacos", offer_description="Lunch deal",
        )
        for i in range(10, 20)
    ]
    return matching + others


# --- Mocks des clients de bas niveau ---

@pytest.fixture
def mock_data_source():
    """Source de données mockée : aucune ligne par défaut."""
    data_source = MagicMock()
    data_source.execute = AsyncMock(return_value=[])
    return data_source


@pytest.fixture
def mock_db_connector():
    """Fixture pour un mock du connecteur PostgreSQL."""
    db_conn = MagicMock()
    db_conn.execute_query = AsyncMock(return_value=[])
    return db_conn


@pytest.fixture
def mock_cache_manager():
    """Fixture pour un mock du gestionnaire de cache Redis."""
    cache = MagicMock()
    cache.get = AsyncMock(return_value=None)  # Par défaut, le cache est toujours vide (miss)
    cache.set = AsyncMock()
    return cache


# --- Services de l'application ---

@pytest.fixture
def substring_compiler():
    """Compilateur en mode sous-chaîne (pas d'index plein texte)."""
    from app.search.compiler import QueryCompiler
    from app.search.strategies import SubstringStrategy

    return QueryCompiler(strategy=SubstringStrategy())


@pytest.fixture
def search_service_mock(mock_data_source, mock_cache_manager):
    """SearchService branché sur une source et un cache mockés."""
    from app.search.search_service import SearchService

    return SearchService(data_source=mock_data_source, cache=mock_cache_manager)
