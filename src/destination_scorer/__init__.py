"""Rule-based travel destination scorer.

Ranks a destination catalog against a personality code and an optional
birth date/time element profile.
"""

from .engine import RecommendationEngine, get_personalization_context, recommend
from .exceptions import CatalogLoadError, DestinationScorerError, InvalidCodeKind
from .schema import (
    Companion,
    Destination,
    DestinationCatalog,
    PersonalizationContext,
    RankedResult,
    RegionFilter,
    UserProfile,
)

__version__ = "1.0.0"

__all__ = [
    "CatalogLoadError",
    "Companion",
    "Destination",
    "DestinationCatalog",
    "DestinationScorerError",
    "InvalidCodeKind",
    "PersonalizationContext",
    "RankedResult",
    "RecommendationEngine",
    "RegionFilter",
    "UserProfile",
    "get_personalization_context",
    "recommend",
]
