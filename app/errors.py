"""Exceptions du service de recherche."""
from typing import Optional


class SearchError(Exception):
    """Erreur de base du service de recherche."""

    status_code: int = 500
    public_message: str = "Search failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)


class ValidationError(SearchError):
    """Combinaison de paramètres invalide : rejetée avant tout accès aux données (4xx)."""

    status_code = 400
    public_message = "Invalid search parameters"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message)
        # Le message de validation est destiné à l'appelant
        self.public_message = str(self)


class MissingFilterError(ValidationError):
    """Aucun filtre discriminant (texte libre ou ville) alors que la politique l'exige."""

    def __init__(self, message: str = "Missing q or city parameter"):
        super().__init__(message)


class DataSourceError(SearchError):
    """
    La source de données est injoignable ou a rejeté la requête compilée (5xx).

    Le message interne n'est jamais exposé ; seul `public_message` et
    l'identifiant de corrélation le sont.
    """

    status_code = 500
    public_message = "Failed to search businesses"

    def __init__(self, message: Optional[str] = None, correlation_id: Optional[str] = None):
        super().__init__(message)
        self.correlation_id = correlation_id


class ProjectionError(SearchError):
    """Valeur d'une ligne incompatible avec le schéma canonique. Ne sort jamais du projecteur."""

    def __init__(self, field: str, value: object):
        super().__init__(f"Cannot project field '{field}' from value {value!r}")
        self.field = field
        self.value = value
