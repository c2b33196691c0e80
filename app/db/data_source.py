"""Adaptateurs de source de données : exécutent une CompiledQuery."""
from typing import Any, Dict, List, Optional

import asyncpg

from app.db.postgres_connector import PostgresConnector
from app.db.sql import SqlRenderer
from app.errors import DataSourceError
from app.logger import logger
from app.search.query import CompiledQuery

Row = Dict[str, Any]


class DataSource:  # pylint: disable=too-few-public-methods
    """
    Contrat consommé par le service : un seul aller-retour par requête.

    `execute` retourne les lignes ou lève DataSourceError ; pas de curseur,
    pas de streaming, la limite est absolue.
    """

    async def execute(self, compiled: CompiledQuery) -> List[Row]:
        raise NotImplementedError


class PostgresDataSource(DataSource):
    """Exécute la requête compilée sur PostgreSQL via asyncpg."""

    def __init__(self, connector: PostgresConnector, renderer: Optional[SqlRenderer] = None):
        self.connector = connector
        self.renderer = renderer or SqlRenderer()

    async def execute(self, compiled: CompiledQuery) -> List[Row]:
        sql, params = self.renderer.render(compiled)
        logger.debug("SQL: {sql} | params: {params}", sql=sql, params=params)
        try:
            return await self.connector.execute_query(sql, *params)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            raise DataSourceError(f"{type(e).__name__}: {e}") from e
