"""Modèles Pydantic pour les réponses de recherche."""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class ListingOut(BaseModel): # pylint: disable=too-few-public-methods
    """Annonce au format public : liste de champs fixe, champs absents à None."""
    id: Optional[str] = None
    business_name: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None

    # Localisation
    city: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None
    zip: Optional[str] = None

    # Contact
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None

    rating: Optional[float] = None
    review_count: Optional[int] = None
    price: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None

    # Offre
    offer_title: Optional[str] = None
    offer_description: Optional[str] = None
    image_url: Optional[str] = None
    buy_url: Optional[str] = None
    book_url: Optional[str] = None

    tags: Optional[List[str]] = None
    sponsored: bool = False
    score: Optional[float] = None

    # Champs texte
    title: Optional[str] = None
    description: Optional[str] = None
    scene: Optional[str] = None
    headline: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


LISTING_FIELDS = tuple(ListingOut.model_fields)


class SearchResponse(BaseModel): # pylint: disable=too-few-public-methods
    """Réponse de recherche."""
    results: List[ListingOut]


class ErrorResponse(BaseModel): # pylint: disable=too-few-public-methods
    """Réponse d'erreur : message générique uniquement."""
    error: str
