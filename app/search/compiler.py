"""
Compilation d'une Query normalisée en CompiledQuery.

La compilation est pure et totale : aucune entrée normalisée ne la fait
échouer. Aucune valeur utilisateur n'atteint un ContainsCI sans passer par
`escape_like`.
"""
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from app.config import settings
from app.search.pagination import clamp_limit
from app.search.query import And, CompiledQuery, ContainsCI, Equals, Or, Predicate, Query, Range
from app.search.sanitizer import escape_like
from app.search.sorting import SortComposer
from app.search.strategies import TextSearchStrategy, build_strategy

MATCH_CONTAINS = "contains"
MATCH_EXACT = "exact"
FILTER_FIELDS = ('city', 'category', 'subcategory')

PRICE_OVERLAP = "overlap"
PRICE_SINGLE = "single"


class QueryCompiler:
    """Construit l'arbre de prédicats, le tri et la limite d'une recherche."""

    def __init__(
            self,
            strategy: Optional[TextSearchStrategy] = None,
            match_modes: Optional[Mapping[str, str]] = None,
            price_policy: Optional[str] = None,
            sort_composer: Optional[SortComposer] = None,
            max_limit: Optional[int] = None):
        self.strategy = strategy or build_strategy()
        self.match_modes: Dict[str, str] = dict(settings.FILTER_MATCH_MODES)
        self.match_modes.update(match_modes or {})
        for name in FILTER_FIELDS:
            mode = self.match_modes.setdefault(name, MATCH_CONTAINS)
            if mode not in (MATCH_CONTAINS, MATCH_EXACT):
                raise ValueError(f"Unknown match mode '{mode}' for field '{name}'")
        self.price_policy = price_policy or settings.PRICE_POLICY
        if self.price_policy not in (PRICE_OVERLAP, PRICE_SINGLE):
            raise ValueError(f"Unknown price policy '{self.price_policy}'")
        self.sort_composer = sort_composer or SortComposer()
        self.max_limit = max_limit or settings.MAX_LIMIT

    # -----------------------------------------------------------------
    # Filtres
    # -----------------------------------------------------------------
    def _field_filter(self, name: str, value: str) -> Predicate:
        if self.match_modes[name] == MATCH_EXACT:
            return Equals(name, value)
        return ContainsCI(name, escape_like(value))

    def _price_filter(
            self,
            lower: Optional[Decimal],
            upper: Optional[Decimal]) -> Optional[Predicate]:
        """
        Filtre de prix.

        En politique 'overlap', une annonce correspond si son prix unique
        OU sa plage [min_price, max_price] croise la plage demandée.
        Une plage demandée inversée ne correspond à rien.
        """
        if lower is None and upper is None:
            return None

        single = Range('price', lower, upper)
        inverted = lower is not None and upper is not None and lower > upper
        if self.price_policy == PRICE_SINGLE or inverted:
            return single

        range_bounds: List[Predicate] = []
        if upper is not None:
            range_bounds.append(Range('min_price', upper=upper))
        if lower is not None:
            range_bounds.append(Range('max_price', lower=lower))
        listing_range = range_bounds[0] if len(range_bounds) == 1 else And(tuple(range_bounds))
        return Or((single, listing_range))

    # -----------------------------------------------------------------
    # Compilation
    # -----------------------------------------------------------------
    def compile(self, query: Query) -> CompiledQuery:
        """Compile une Query normalisée en CompiledQuery immuable."""
        predicates: List[Predicate] = []

        text = self.strategy.compile(query.term)
        if text is not None:
            predicates.append(text)

        for name in FILTER_FIELDS:
            value = getattr(query, name)
            if value is not None:
                predicates.append(self._field_filter(name, value))

        price = self._price_filter(query.min_price, query.max_price)
        if price is not None:
            predicates.append(price)

        rank = self.strategy.rank(query.term)
        return CompiledQuery(
            predicate=And(tuple(predicates)),
            sort=self.sort_composer.compose(ranked=rank is not None),
            limit=clamp_limit(query.limit, max_limit=self.max_limit),
            rank=rank,
        )
