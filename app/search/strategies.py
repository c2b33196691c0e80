"""
Stratégies de recherche textuelle.

Le choix de la stratégie est une valeur de configuration (capacité de la
source de données), jamais une décision par requête : la forme de la
requête compilée reste ainsi prévisible.
"""
from typing import List, Optional, Sequence

from app.config import settings
from app.search.query import ContainsCI, Or, Predicate, TextSearch
from app.search.sanitizer import clean_term, escape_like, sanitize_websearch


class TextSearchStrategy:
    """Interface commune : compile un terme libre en prédicat."""

    name = "base"

    def compile(self, term: Optional[str]) -> Optional[Predicate]:
        """Prédicat pour `term`, ou None si le terme ne filtre rien."""
        raise NotImplementedError

    def rank(self, term: Optional[str]) -> Optional[TextSearch]:
        """Nœud fournissant un score de pertinence à la source, si la stratégie en a un."""
        return None


class TokenizedRelevanceStrategy(TextSearchStrategy):
    """
    Recherche « web » sur une colonne tsvector précalculée.

    Mots implicitement en ET, phrases entre guillemets, négation `-`.
    Le classement s'appuie sur le score de pertinence renvoyé par la base.
    """

    name = "tokenized"

    def __init__(self, vector_field: Optional[str] = None):
        self.vector_field = vector_field or settings.SEARCH_VECTOR_COLUMN

    def _text_search(self, term: Optional[str]) -> Optional[TextSearch]:
        term = clean_term(term)
        if term is None:
            return None
        cleaned = sanitize_websearch(term)
        if cleaned is None:
            return None
        return TextSearch(self.vector_field, cleaned)

    def compile(self, term: Optional[str]) -> Optional[Predicate]:
        if clean_term(term) is None:
            return None
        # Terme réduit à des opérateurs : tsquery vide, aucune ligne
        return self._text_search(term) or Or(())

    def rank(self, term: Optional[str]) -> Optional[TextSearch]:
        return self._text_search(term)


class SubstringStrategy(TextSearchStrategy):
    """ILIKE %terme% appliqué indépendamment à chaque champ, réunis par un OU."""

    name = "substring"

    def __init__(self, fields: Optional[Sequence[str]] = None):
        self.fields: List[str] = list(fields or settings.SEARCHABLE_FIELDS)
        if not self.fields:
            raise ValueError("SubstringStrategy requires at least one searchable field")

    def compile(self, term: Optional[str]) -> Optional[Predicate]:
        term = clean_term(term)
        if term is None:
            return None
        pattern = escape_like(term)
        return Or(tuple(ContainsCI(f, pattern) for f in self.fields))


STRATEGIES = {
    TokenizedRelevanceStrategy.name: TokenizedRelevanceStrategy,
    SubstringStrategy.name: SubstringStrategy,
}


def build_strategy(name: Optional[str] = None) -> TextSearchStrategy:
    """Instancie la stratégie configurée (settings.TEXT_SEARCH_STRATEGY par défaut)."""
    name = name or settings.TEXT_SEARCH_STRATEGY
    try:
        strategy_cls = STRATEGIES[name]
    except KeyError as e:
        raise ValueError(
            f"Unknown text search strategy '{name}'. Expected one of {sorted(STRATEGIES)}"
        ) from e
    return strategy_cls()
