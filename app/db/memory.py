"""
Source de données en mémoire.

Évalue l'arbre de prédicats sur une liste de dictionnaires avec la même
sémantique que le rendu SQL : ILIKE échappé, comparaison NULL toujours
fausse, recherche « web » par mots et phrases, tri NULLS FIRST/LAST.
Utilisée pour les jeux de démonstration et les tests.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from app.config import settings
from app.db.data_source import DataSource, Row
from app.search.query import (
    DESC, NULLS_FIRST, RELEVANCE, And, CompiledQuery, ContainsCI, Equals, Or,
    Predicate, Range, SortKey, TextSearch,
)
from app.search.sanitizer import unescape_like

_WORD = re.compile(r"\w+")
_WEBSEARCH_ITEM = re.compile(r'(-?)"([^"]*)"|(-?)(\S+)')

# Champs texte indexés quand la ligne n'a pas de colonne vectorisée
DOCUMENT_FIELDS = ('title', 'description', 'scene', 'headline')


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        return " ".join(str(v) for v in value)
    return str(value)


def _as_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _tokens(text: str) -> List[str]:
    return _WORD.findall(text.casefold())


def _parse_websearch(term: str) -> List[List[tuple]]:
    """
    Découpe un terme « web » en groupes OU de clauses ET.

    Chaque clause est `(negated, [tokens])` ; une phrase a plusieurs tokens.
    """
    groups: List[List[tuple]] = [[]]
    for match in _WEBSEARCH_ITEM.finditer(term):
        if match.group(2) is not None:
            negated, text = match.group(1) == "-", match.group(2)
        else:
            negated, text = match.group(3) == "-", match.group(4)
            if not negated and text.casefold() == "or":
                groups.append([])
                continue
        words = _tokens(text)
        if words:
            groups[-1].append((negated, words))
    return [group for group in groups if group]


def _contains_phrase(tokens: Sequence[str], phrase: Sequence[str]) -> int:
    """Nombre d'occurrences de la suite `phrase` dans `tokens`."""
    size = len(phrase)
    return sum(
        1 for i in range(len(tokens) - size + 1)
        if list(tokens[i:i + size]) == list(phrase)
    )


class InMemoryDataSource(DataSource):
    """Exécute une CompiledQuery sur des lignes en mémoire."""

    def __init__(
            self,
            rows: Iterable[Mapping[str, Any]],
            document_fields: Optional[Sequence[str]] = None):
        self.rows: List[Row] = [dict(row) for row in rows]
        self.document_fields = tuple(
            document_fields or (*settings.SEARCHABLE_FIELDS, *DOCUMENT_FIELDS)
        )

    # -----------------------------------------------------------------
    # Recherche plein texte
    # -----------------------------------------------------------------
    def _document(self, row: Mapping[str, Any], field: str) -> List[str]:
        vector = row.get(field)
        if isinstance(vector, str):
            return _tokens(vector)
        parts = (_as_text(row.get(name)) for name in self.document_fields)
        return _tokens(" ".join(p for p in parts if p))

    def relevance(self, row: Mapping[str, Any], node: TextSearch) -> float:
        """Nombre d'occurrences des clauses positives du meilleur groupe correspondant."""
        tokens = self._document(row, node.field)
        best = 0.0
        for group in _parse_websearch(node.term):
            hits = [_contains_phrase(tokens, words) for _, words in group]
            satisfied = all(
                (count == 0) if negated else (count > 0)
                for (negated, _), count in zip(group, hits)
            )
            if satisfied:
                score = sum(c for (negated, _), c in zip(group, hits) if not negated)
                best = max(best, float(score))
        return best

    def _text_match(self, row: Mapping[str, Any], node: TextSearch) -> bool:
        tokens = self._document(row, node.field)
        for group in _parse_websearch(node.term):
            if all(
                (_contains_phrase(tokens, words) == 0) if negated
                else (_contains_phrase(tokens, words) > 0)
                for negated, words in group
            ):
                return True
        return False

    # -----------------------------------------------------------------
    # Prédicats
    # -----------------------------------------------------------------
    def matches(self, row: Mapping[str, Any], predicate: Predicate) -> bool:
        if isinstance(predicate, And):
            return all(self.matches(row, p) for p in predicate.predicates)
        if isinstance(predicate, Or):
            return any(self.matches(row, p) for p in predicate.predicates)
        if isinstance(predicate, Equals):
            value = row.get(predicate.field)
            return value is not None and str(value) == predicate.value
        if isinstance(predicate, ContainsCI):
            text = _as_text(row.get(predicate.field))
            if text is None:
                return False
            return unescape_like(predicate.pattern).casefold() in text.casefold()
        if isinstance(predicate, Range):
            if predicate.lower is None and predicate.upper is None:
                return True
            value = _as_decimal(row.get(predicate.field))
            if value is None:
                return False
            if predicate.lower is not None and value < predicate.lower:
                return False
            if predicate.upper is not None and value > predicate.upper:
                return False
            return True
        if isinstance(predicate, TextSearch):
            return self._text_match(row, predicate)
        raise TypeError(f"Unsupported predicate: {predicate!r}")

    # -----------------------------------------------------------------
    # Tri
    # -----------------------------------------------------------------
    def _sort_value(self, row: Row, key: SortKey, relevance: Dict[int, float]) -> Any:
        if key.field == RELEVANCE:
            value = relevance.get(id(row))
        else:
            value = row.get(key.field)
        if value is None and key.null_as is not None:
            return key.null_as
        return value

    def _sort(self, rows: List[Row], compiled: CompiledQuery) -> List[Row]:
        relevance: Dict[int, float] = {}
        if compiled.rank is not None:
            relevance = {id(row): self.relevance(row, compiled.rank) for row in rows}

        # Tris stables successifs, de la clé la moins prioritaire à la plus prioritaire
        for key in reversed(compiled.sort):
            if key.field == RELEVANCE and compiled.rank is None:
                continue
            present = [r for r in rows if self._sort_value(r, key, relevance) is not None]
            missing = [r for r in rows if self._sort_value(r, key, relevance) is None]
            present = sorted(
                present,
                key=lambda r, k=key: self._sort_value(r, k, relevance),
                reverse=key.direction == DESC,
            )
            rows = missing + present if key.nulls == NULLS_FIRST else present + missing
        return rows

    async def execute(self, compiled: CompiledQuery) -> List[Row]:
        selected = [row for row in self.rows if self.matches(row, compiled.predicate)]
        ordered = self._sort(selected, compiled)
        return [dict(row) for row in ordered[:compiled.limit]]
