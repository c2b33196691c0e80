"""
Normalisation des paramètres de recherche bruts.

Les paramètres arrivent de la query string : toujours des chaînes (ou des
listes de chaînes pour une clé répétée), éventuellement absents ou mal
formés. Un filtre optionnel mal formé est ignoré, jamais une erreur.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from app.config import settings
from app.errors import MissingFilterError
from app.logger import logger
from app.search.query import Query
from app.search.sanitizer import clean_term

# Nom canonique -> clés acceptées (la première présente gagne)
PARAM_ALIASES = {
    'term': ('q',),
    'city': ('city',),
    'category': ('category',),
    'subcategory': ('subcategory', 'sub_category'),
    'min_price': ('min_price', 'minPrice'),
    'max_price': ('max_price', 'maxPrice'),
    'limit': ('limit',),
}


def _raw_value(params: Mapping[str, Any], name: str) -> Optional[str]:
    for key in PARAM_ALIASES[name]:
        value = params.get(key)
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if value is not None:
            return str(value)
    return None


def parse_decimal(raw: Optional[str]) -> Optional[Decimal]:
    """Décimal fini, ou None si absent / illisible."""
    raw = clean_term(raw)
    if raw is None:
        return None
    if "_" in raw:
        logger.debug("Ignoring malformed numeric filter: {raw!r}", raw=raw)
        return None
    try:
        value = Decimal(raw)
    except InvalidOperation:
        logger.debug("Ignoring malformed numeric filter: {raw!r}", raw=raw)
        return None
    if not value.is_finite():
        logger.debug("Ignoring non-finite numeric filter: {raw!r}", raw=raw)
        return None
    return value


def parse_limit(raw: Optional[str], default: int) -> int:
    """Entier demandé ; absent ou illisible -> `default`. Le bornage est fait plus loin."""
    raw = clean_term(raw)
    if raw is None:
        return default
    if "_" in raw:
        logger.debug("Ignoring malformed limit: {raw!r}", raw=raw)
        return default
    try:
        return int(raw)
    except ValueError:
        logger.debug("Ignoring malformed limit: {raw!r}", raw=raw)
        return default


def normalize(
        params: Mapping[str, Any],
        require_filter: Optional[bool] = None,
        default_limit: Optional[int] = None) -> Query:
    """
    Construit une Query typée à partir des paramètres bruts.

    Args:
        params: Mapping nom -> valeur brute (clés inconnues ignorées).
        require_filter: Exige `q` ou `city` (défaut : settings.REQUIRE_FILTER).
        default_limit: Limite quand `limit` est absent (défaut : settings.DEFAULT_LIMIT).

    Returns:
        La Query normalisée.

    Raises:
        MissingFilterError: Aucun filtre discriminant alors que la politique l'exige.
    """
    if require_filter is None:
        require_filter = settings.REQUIRE_FILTER
    default_limit = default_limit or settings.DEFAULT_LIMIT

    query = Query(
        term=clean_term(_raw_value(params, 'term')),
        city=clean_term(_raw_value(params, 'city')),
        category=clean_term(_raw_value(params, 'category')),
        subcategory=clean_term(_raw_value(params, 'subcategory')),
        min_price=parse_decimal(_raw_value(params, 'min_price')),
        max_price=parse_decimal(_raw_value(params, 'max_price')),
        limit=parse_limit(_raw_value(params, 'limit'), default_limit),
    )

    if require_filter and not query.has_discriminating_filter():
        raise MissingFilterError()

    return query
