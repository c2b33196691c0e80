"""
Objets valeur de la recherche : Query, arbre de prédicats et CompiledQuery.

Tous les objets sont immuables (dataclasses gelées, tuples) : une requête
compilée peut être exécutée plusieurs fois et partagée entre coroutines.
"""
import hashlib
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class Query:
    """Intention de l'appelant, après normalisation."""
    term: Optional[str] = None
    city: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    limit: Optional[int] = None

    def has_discriminating_filter(self) -> bool:
        """Texte libre ou localisation présents."""
        return self.term is not None or self.city is not None


# -----------------------------------------------------------------
# Prédicats
# -----------------------------------------------------------------
@dataclass(frozen=True)
class Equals:
    field: str
    value: str


@dataclass(frozen=True)
class ContainsCI:
    """Sous-chaîne insensible à la casse. `pattern` est déjà échappé."""
    field: str
    pattern: str


@dataclass(frozen=True)
class Range:
    """Bornes inclusives ; une borne absente n'est pas testée."""
    field: str
    lower: Optional[Decimal] = None
    upper: Optional[Decimal] = None


@dataclass(frozen=True)
class TextSearch:
    """Recherche plein texte type « websearch » sur une colonne vectorisée."""
    field: str
    term: str


@dataclass(frozen=True)
class Or:
    predicates: Tuple["Predicate", ...] = ()


@dataclass(frozen=True)
class And:
    predicates: Tuple["Predicate", ...] = ()


Predicate = Union[Equals, ContainsCI, Range, TextSearch, Or, And]


# -----------------------------------------------------------------
# Tri et requête compilée
# -----------------------------------------------------------------
ASC = "asc"
DESC = "desc"
NULLS_FIRST = "first"
NULLS_LAST = "last"

# Champ virtuel : score de pertinence calculé par la source de données
RELEVANCE = "relevance"


@dataclass(frozen=True)
class SortKey:
    """Clé de tri ; `null_as` remplace NULL par une valeur avant comparaison."""
    field: str
    direction: str = ASC
    nulls: str = NULLS_LAST
    null_as: Optional[bool] = None


@dataclass(frozen=True)
class CompiledQuery:
    """Prédicat + clés de tri + limite bornée, prêt pour l'exécution."""
    predicate: And = field(default_factory=And)
    sort: Tuple[SortKey, ...] = ()
    limit: int = 10
    rank: Optional[TextSearch] = None

    def cache_key(self) -> str:
        """Clé stable dérivée de la requête compilée complète (jamais des paramètres bruts)."""
        digest = hashlib.sha256(repr(self).encode("utf-8")).hexdigest()
        return f"search:{digest}"


def walk(predicate: Predicate):
    """Parcourt l'arbre en profondeur (le nœud lui-même inclus)."""
    yield predicate
    if isinstance(predicate, (And, Or)):
        for child in predicate.predicates:
            yield from walk(child)
