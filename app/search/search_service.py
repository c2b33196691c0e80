"""Module contenant le service de recherche d'annonces."""
# app/search/search_service.py
import time
import uuid
from typing import Any, Mapping, Optional

import psutil
import pydantic
from redis.exceptions import RedisError

from app.cache import CacheManager
from app.db.data_source import DataSource
from app.errors import DataSourceError
from app.logger import logger
from app.models import SearchResponse
from app.search.compiler import QueryCompiler
from app.search.normalizer import normalize
from app.search.projector import ResultProjector
from app.search.query import CompiledQuery


class SearchService:
    """
    Service de recherche : normalise, compile, exécute puis projette.

    Aucun état mutable partagé entre requêtes : Query et CompiledQuery sont
    créées par requête et jamais modifiées. Pas de retry sur la source de
    données, l'appelant HTTP gère timeouts et nouvelles tentatives.
    """

    def __init__(
            self,
            data_source: DataSource,
            compiler: Optional[QueryCompiler] = None,
            projector: Optional[ResultProjector] = None,
            cache: Optional[CacheManager] = None,
            require_filter: Optional[bool] = None):
        self.data_source = data_source
        self.compiler = compiler or QueryCompiler()
        self.projector = projector or ResultProjector()
        self.cache = cache
        self.require_filter = require_filter

    def compile(self, params: Mapping[str, Any]) -> CompiledQuery:
        """Paramètres bruts -> CompiledQuery. Lève ValidationError avant tout accès aux données."""
        query = normalize(params, require_filter=self.require_filter)
        return self.compiler.compile(query)

    async def _cached(self, compiled: CompiledQuery) -> Optional[SearchResponse]:
        if self.cache is None:
            return None
        try:
            cached = await self.cache.get(compiled)
        except RedisError as e:
            logger.warning("Cache unavailable, skipping lookup: {error}", error=e)
            return None
        if not cached:
            return None
        try:
            response = SearchResponse.model_validate_json(cached)
        except pydantic.ValidationError as e:
            logger.warning("Corrupt cache entry ignored: {error}", error=e)
            return None
        logger.info("Cache HIT for key: {key}", key=compiled.cache_key())
        return response

    async def _store(self, compiled: CompiledQuery, response: SearchResponse) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(compiled, response.model_dump_json())
        except RedisError as e:
            logger.warning("Cache unavailable, response not stored: {error}", error=e)

    async def search(self, params: Mapping[str, Any]) -> SearchResponse:
        """
        Effectue une recherche.

        Args:
            params: Paramètres bruts (`q`, `city`, `category`, `subcategory`,
                `min_price`, `max_price`, `limit`), clés inconnues ignorées.

        Returns:
            Un objet SearchResponse avec les annonces projetées.

        Raises:
            ValidationError: Combinaison de filtres refusée (aucun appel à la source).
            DataSourceError: Échec de la source, avec identifiant de corrélation.
        """
        start_time = time.time()
        compiled = self.compile(params)

        cached = await self._cached(compiled)
        if cached is not None:
            return cached

        try:
            rows = await self.data_source.execute(compiled)
        except DataSourceError as e:
            e.correlation_id = uuid.uuid4().hex
            logger.error(
                "Data source error [{correlation_id}]: {error}",
                correlation_id=e.correlation_id, error=e
            )
            raise

        response = SearchResponse(results=self.projector.project(rows))
        await self._store(compiled, response)

        duration = time.time() - start_time
        memory_mb = psutil.Process().memory_info().rss / 1024 / 1024
        logger.info(
            "Recherche (q: {term!r}, limit: {limit}) : {count} résultats | "
            "Durée = {duration:.4f}s | RAM = {memory:.2f} Mo",
            term=params.get('q'), limit=compiled.limit, count=len(response.results),
            duration=duration, memory=memory_mb
        )
        return response
