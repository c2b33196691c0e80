"""
Projection des lignes de la source vers le schéma public.

Chaque ligne produit exactement les champs de ListingOut, quel que soit le
schéma d'origine (colonnes optionnelles absentes, `sub_category` au lieu de
`subcategory`, etc.). Une valeur inexploitable est remplacée par None.
"""
import math
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
from uuid import UUID

from app.errors import ProjectionError
from app.logger import logger
from app.models import LISTING_FIELDS, ListingOut

# Champ canonique -> colonnes sources acceptées, par ordre de préférence
FIELD_ALIASES: Dict[str, tuple] = {
    'business_name': ('business_name', 'name'),
    'subcategory': ('subcategory', 'sub_category'),
    'zip': ('zip', 'zip_code', 'postal_code'),
    'review_count': ('review_count', 'reviews', 'reviews_count'),
    'image_url': ('image_url', 'image'),
    'sponsored': ('sponsored', 'is_sponsored'),
    'score': ('score', 'quality_score', 'relevance_score'),
}

_TRUE_STRINGS = frozenset({'true', 't', '1', 'yes', 'y'})
_FALSE_STRINGS = frozenset({'false', 'f', '0', 'no', 'n', ''})


# -----------------------------------------------------------------
# Conversions
# -----------------------------------------------------------------
def as_str(field: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, Decimal, UUID)) and not isinstance(value, bool):
        return str(value)
    raise ProjectionError(field, value)


def as_float(field: str, value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ProjectionError(field, value)
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise ProjectionError(field, value) from e
    if not math.isfinite(result):
        raise ProjectionError(field, value)
    return result


def as_int(field: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ProjectionError(field, value)
    if isinstance(value, int):
        return value
    number = as_float(field, value)
    if not number.is_integer():
        raise ProjectionError(field, value)
    return int(number)


def as_bool(field: str, value: Any) -> bool:
    """Un indicateur absent vaut False (non sponsorisé)."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ProjectionError(field, value)


def as_tags(field: str, value: Any) -> Optional[List[str]]:
    """
    Tags en liste triée et dédoublonnée.

    Accepte une liste, un tableau Postgres littéral (`{a,b}`) ou une chaîne
    séparée par des virgules.
    """
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.startswith('{') and text.endswith('}'):
            text = text[1:-1]
        items: Iterable[Any] = (part.strip().strip('"') for part in text.split(','))
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = value
    else:
        raise ProjectionError(field, value)

    tags = set()
    for item in items:
        tag = as_str(field, item)
        if tag and tag.strip():
            tags.add(tag.strip())
    return sorted(tags)


CONVERTERS: Dict[str, Callable[[str, Any], Any]] = {
    'rating': as_float,
    'price': as_float,
    'min_price': as_float,
    'max_price': as_float,
    'score': as_float,
    'review_count': as_int,
    'sponsored': as_bool,
    'tags': as_tags,
}


class ResultProjector:
    """Projette les lignes brutes vers le schéma canonique ListingOut."""

    def _raw(self, row: Mapping[str, Any], field: str) -> Any:
        for key in FIELD_ALIASES.get(field, (field,)):
            value = row.get(key)
            if value is not None:
                return value
        return None

    def project_row(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Projette une ligne ; chaque champ invalide est remplacé par sa valeur nulle."""
        projected: Dict[str, Any] = {}
        for field in LISTING_FIELDS:
            convert = CONVERTERS.get(field, as_str)
            raw = self._raw(row, field)
            try:
                projected[field] = convert(field, raw)
            except ProjectionError as e:
                logger.warning(
                    "Projection fallback for listing {id}: {error}",
                    id=row.get('id'), error=e
                )
                projected[field] = convert(field, None)
        return ListingOut.model_validate(projected).model_dump()

    def project(self, rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Projette toutes les lignes, dans l'ordre reçu."""
        return [self.project_row(row) for row in rows]
