"""Nettoyage des termes libres avant leur insertion dans un prédicat."""
import re
from typing import Optional

ESCAPE_CHAR = "\\"

# Jokers LIKE et séparateurs de listes de prédicats
LIKE_METACHARACTERS = frozenset("\\%_,()")

# Opérateurs tsquery que websearch_to_tsquery ne doit pas recevoir tels quels
_TSQUERY_OPERATORS = re.compile(r"[&|!:*()<>\\]")
_WHITESPACE = re.compile(r"\s+")


def clean_term(term: Optional[str]) -> Optional[str]:
    """Trim ; une chaîne vide ou blanche signifie « pas de filtre texte »."""
    if term is None:
        return None
    stripped = term.strip()
    return stripped or None


def escape_like(term: str) -> str:
    """
    Échappe les métacaractères du langage LIKE/ILIKE.

    Chaque caractère de LIKE_METACHARACTERS est préfixé par ESCAPE_CHAR ;
    la casse est conservée (l'insensibilité est portée par ContainsCI).
    """
    return "".join(
        ESCAPE_CHAR + char if char in LIKE_METACHARACTERS else char
        for char in term
    )


def unescape_like(pattern: str) -> str:
    """Inverse de escape_like."""
    out = []
    escaped = False
    for char in pattern:
        if escaped:
            out.append(char)
            escaped = False
        elif char == ESCAPE_CHAR:
            escaped = True
        else:
            out.append(char)
    return "".join(out)


def sanitize_websearch(term: str) -> Optional[str]:
    """
    Prépare un terme pour une recherche plein texte « web ».

    Conserve les mots, les phrases entre guillemets et la négation `-`,
    retire les opérateurs tsquery et un guillemet non apparié.
    """
    cleaned = _TSQUERY_OPERATORS.sub(" ", term)
    if cleaned.count('"') % 2 == 1:
        last = cleaned.rfind('"')
        cleaned = cleaned[:last] + cleaned[last + 1:]
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    # Un terme réduit à des guillemets ou des tirets ne cherche rien
    if not cleaned.replace('"', "").replace("-", "").strip():
        return None
    return cleaned
