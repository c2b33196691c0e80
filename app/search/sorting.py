"""Composition de l'ordre de tri déterministe."""
from typing import Optional, Tuple

from app.config import settings
from app.search.query import ASC, DESC, NULLS_LAST, RELEVANCE, SortKey

SECONDARY_SORT_KEYS = {
    'rating': SortKey('rating', DESC, NULLS_LAST),
    'price': SortKey('price', ASC, NULLS_LAST),
}

# Dénouage final obligatoire : sans lui l'ordre des ex aequo est indéfini
TIE_BREAK = SortKey('id', ASC, NULLS_LAST)


class SortComposer:  # pylint: disable=too-few-public-methods
    """
    Construit la chaîne de tri.

    1) sponsorisé desc (NULL traité comme non sponsorisé)
    2) pertinence desc, si la stratégie textuelle en fournit une
    3) score desc, NULL en dernier
    4) note desc (ou prix asc), NULL en dernier
    5) id asc
    """

    def __init__(self, secondary: Optional[str] = None):
        secondary = secondary or settings.SECONDARY_SORT
        if secondary not in SECONDARY_SORT_KEYS:
            raise ValueError(
                f"Unknown secondary sort '{secondary}'. Expected one of {sorted(SECONDARY_SORT_KEYS)}"
            )
        self.secondary = SECONDARY_SORT_KEYS[secondary]

    def compose(self, ranked: bool = False) -> Tuple[SortKey, ...]:
        """Retourne les clés de tri ; `ranked` ajoute la pertinence de la source."""
        keys = [SortKey('sponsored', DESC, NULLS_LAST, null_as=False)]
        if ranked:
            keys.append(SortKey(RELEVANCE, DESC, NULLS_LAST))
        keys.append(SortKey('score', DESC, NULLS_LAST))
        keys.append(self.secondary)
        keys.append(TIE_BREAK)
        return tuple(keys)
