"""Bornage du nombre de résultats demandé."""
from typing import Optional

from app.config import settings


def clamp_limit(
        requested: Optional[int],
        max_limit: Optional[int] = None,
        default: Optional[int] = None) -> int:
    """
    Retourne `requested` borné à [1, max_limit].

    Une limite absente prend la valeur par défaut (elle-même bornée) ;
    une limite nulle ou négative remonte à 1, jamais 0 résultat.
    """
    max_limit = max_limit or settings.MAX_LIMIT
    if requested is None:
        requested = default or settings.DEFAULT_LIMIT
    return min(max(requested, 1), max_limit)
