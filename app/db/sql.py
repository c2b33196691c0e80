"""
Rendu d'une CompiledQuery en SQL PostgreSQL paramétré.

Toutes les valeurs passent par des paramètres `$n` ; seuls les noms de
colonnes (issus de la configuration) sont insérés dans le texte, après
validation et mise entre guillemets.
"""
import re
from typing import Any, List, Optional, Sequence, Tuple

from app.config import settings
from app.search.query import (
    DESC, NULLS_FIRST, RELEVANCE, And, CompiledQuery, ContainsCI, Equals, Or,
    Predicate, Range, SortKey, TextSearch,
)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Colonnes tableau : comparées sur leur texte joint
ARRAY_FIELDS = frozenset({'tags'})


def quote_identifier(name: str) -> str:
    """Met un identifiant (éventuellement `schema.table`) entre guillemets après validation."""
    parts = name.split('.')
    for part in parts:
        if not _IDENTIFIER.match(part):
            raise ValueError(f"Invalid SQL identifier: {name!r}")
    return '.'.join(f'"{part}"' for part in parts)


class SqlRenderer:
    """Traduit l'arbre de prédicats et le tri en une requête SELECT paramétrée."""

    def __init__(
            self,
            table: Optional[str] = None,
            ts_config: Optional[str] = None,
            array_fields: Sequence[str] = ARRAY_FIELDS):
        self.table = quote_identifier(table or settings.LISTINGS_TABLE)
        self.ts_config = ts_config or settings.TEXT_SEARCH_CONFIG
        self.array_fields = frozenset(array_fields)

    # -----------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------
    @staticmethod
    def _bind(params: List[Any], value: Any) -> str:
        params.append(value)
        return f"${len(params)}"

    def _text_column(self, field: str) -> str:
        column = quote_identifier(field)
        if field in self.array_fields:
            return f"array_to_string({column}, ' ')"
        return column

    def _tsquery(self, node: TextSearch, params: List[Any]) -> str:
        config = self._bind(params, self.ts_config)
        term = self._bind(params, node.term)
        return f"websearch_to_tsquery({config}::text::regconfig, {term})"

    # -----------------------------------------------------------------
    # Prédicats
    # -----------------------------------------------------------------
    def render_predicate(self, predicate: Predicate, params: List[Any]) -> str:
        """Rend un nœud ; les valeurs sont ajoutées à `params`."""
        if isinstance(predicate, And):
            if not predicate.predicates:
                return "TRUE"
            return "(" + " AND ".join(
                self.render_predicate(p, params) for p in predicate.predicates
            ) + ")"

        if isinstance(predicate, Or):
            if not predicate.predicates:
                return "FALSE"
            return "(" + " OR ".join(
                self.render_predicate(p, params) for p in predicate.predicates
            ) + ")"

        if isinstance(predicate, Equals):
            return f"{quote_identifier(predicate.field)} = {self._bind(params, predicate.value)}"

        if isinstance(predicate, ContainsCI):
            pattern = self._bind(params, f"%{predicate.pattern}%")
            return f"{self._text_column(predicate.field)} ILIKE {pattern} ESCAPE '\\'"

        if isinstance(predicate, Range):
            column = quote_identifier(predicate.field)
            bounds = []
            if predicate.lower is not None:
                bounds.append(f"{column} >= {self._bind(params, predicate.lower)}::numeric")
            if predicate.upper is not None:
                bounds.append(f"{column} <= {self._bind(params, predicate.upper)}::numeric")
            if not bounds:
                return "TRUE"
            return "(" + " AND ".join(bounds) + ")"

        if isinstance(predicate, TextSearch):
            return f"{quote_identifier(predicate.field)} @@ {self._tsquery(predicate, params)}"

        raise TypeError(f"Unsupported predicate: {predicate!r}")

    # -----------------------------------------------------------------
    # Tri
    # -----------------------------------------------------------------
    def render_sort_key(
            self,
            key: SortKey,
            rank: Optional[TextSearch],
            params: List[Any]) -> Optional[str]:
        if key.field == RELEVANCE:
            if rank is None:
                return None
            expr = f"ts_rank({quote_identifier(rank.field)}, {self._tsquery(rank, params)})"
        else:
            expr = quote_identifier(key.field)
        if key.null_as is not None:
            expr = f"COALESCE({expr}, {'TRUE' if key.null_as else 'FALSE'})"
        direction = "DESC" if key.direction == DESC else "ASC"
        nulls = "NULLS FIRST" if key.nulls == NULLS_FIRST else "NULLS LAST"
        return f"{expr} {direction} {nulls}"

    def render(self, compiled: CompiledQuery) -> Tuple[str, List[Any]]:
        """Retourne `(sql, params)` pour asyncpg."""
        params: List[Any] = []
        where = self.render_predicate(compiled.predicate, params)
        order = [
            rendered for rendered in (
                self.render_sort_key(key, compiled.rank, params) for key in compiled.sort
            ) if rendered is not None
        ]
        sql = f"SELECT * FROM {self.table} WHERE {where}"
        if order:
            sql += " ORDER BY " + ", ".join(order)
        sql += f" LIMIT {self._bind(params, compiled.limit)}"
        return sql, params
