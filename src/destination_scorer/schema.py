"""Pydantic models for the destination scorer.

Input schemas for the user profile and the destination catalog, and
output schemas for scored and ranked recommendations.
"""

from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Mapping, Optional

from pydantic import (
    AfterValidator,
    AliasChoices,
    AliasGenerator,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# Enums
# =============================================================================


class Trait(str, Enum):
    """The six travel trait axes derived from a personality code."""
    SOCIAL = "social"  # Interaction with people
    NOVELTY = "novelty"  # Seeking new stimuli
    STRUCTURE = "structure"  # Planning and order
    FLEXIBILITY = "flexibility"  # Spontaneity and freedom
    SENSORY = "sensory"  # Food, views, nature
    CULTURE = "culture"  # History, art, meaning


class Element(str, Enum):
    """The five elements of the calendar heuristic."""
    WOOD = "wood"
    FIRE = "fire"
    EARTH = "earth"
    METAL = "metal"
    WATER = "water"


class Region(str, Enum):
    """Where a destination is, relative to the home country."""
    DOMESTIC = "domestic"
    OVERSEAS = "overseas"


class RegionFilter(str, Enum):
    """Region selector on the user profile."""
    ALL = "all"
    DOMESTIC = "domestic"
    OVERSEAS = "overseas"


class Companion(str, Enum):
    """Who the user travels with."""
    SOLO = "solo"
    COUPLE = "couple"
    FRIENDS = "friends"
    FAMILY = "family"


class Theme(str, Enum):
    """Destination theme tags."""
    CITY = "city"
    NATURE = "nature"
    BEACH = "beach"
    MOUNTAIN = "mountain"
    MUSEUM = "museum"
    FOOD = "food"
    NIGHTLIFE = "nightlife"
    ONSEN = "onsen"
    HISTORY = "history"
    ART = "art"


class Tier(str, Enum):
    """Letter grade derived from closeness to the top candidate."""
    S = "S"
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class BudgetFilterMode(str, Enum):
    """How strictly the budget filter admits destinations."""
    STRICT = "strict"  # destination budget == requested budget
    BAND = "band"  # within one level either way
    CAP = "cap"  # any cheaper, at most one level pricier


TRAIT_KEYS: tuple[str, ...] = tuple(t.value for t in Trait)
ELEMENT_KEYS: tuple[str, ...] = tuple(e.value for e in Element)

PERSONALITY_CODES: frozenset[str] = frozenset([
    "INTJ", "INTP", "ENTJ", "ENTP",
    "INFJ", "INFP", "ENFJ", "ENFP",
    "ISTJ", "ISTP", "ESTJ", "ESTP",
    "ISFJ", "ISFP", "ESFJ", "ESFP",
])

# Sentinel label for a pillar that could not be computed
UNKNOWN_PILLAR = "-"

TraitVector = dict[str, float]
ElementVector = dict[str, float]


def _freeze_mapping(value: Mapping[str, float]) -> Mapping[str, float]:
    return MappingProxyType(dict(value))


# Read-only profile vector for catalog entries; serializes as a plain dict
FrozenVector = Annotated[
    Mapping[str, float],
    AfterValidator(_freeze_mapping),
    PlainSerializer(dict, return_type=dict[str, float]),
]


# =============================================================================
# Input Models
# =============================================================================


class UserProfile(BaseModel):
    """Request-scoped user input. Never persisted.

    The request layer validates ranges and formats before building a
    profile; the personality code is checked by the trait mapper and a
    malformed birth time degrades to the no-time path.
    """
    model_config = ConfigDict(frozen=True)

    personality_code: str = Field(..., description="One of the 16 four-letter personality codes")
    travel_month: Optional[int] = Field(None, description="Intended travel month (1-12)")
    budget_level: Optional[int] = Field(None, description="Budget level (1=lowest ... 5=highest)")
    companion_type: Optional[Companion] = Field(None, description="Who the user travels with")
    region_filter: RegionFilter = Field(RegionFilter.ALL, description="Region restriction")
    birth_date: Optional[date] = Field(None, description="Birth date")
    birth_time: Optional[str] = Field(None, description="Birth time as HH:MM (24h)")
    max_flight_hours: Optional[float] = Field(
        None,
        description="Longest acceptable flight, used only when the distance penalty is enabled"
    )


class Destination(BaseModel):
    """Immutable catalog entry.

    Trait and element profiles may be partial; missing keys count as 0
    in similarity. Fields accept both snake_case and the camelCase names
    used by the catalog data files. Profiles are read-only mappings and
    list-like fields are tuples, so entries shared through the cached
    catalog cannot be changed in place.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=AliasGenerator(validation_alias=to_camel),
    )

    # Identity
    id: str = Field(..., description="Unique identifier")
    name: str = Field(..., description="Display name")
    country: str = Field(..., description="Country name")
    region: Region = Field(..., description="Domestic or overseas")
    city: Optional[str] = Field(None, description="City name")

    # Profiles
    trait_profile: FrozenVector = Field(
        default_factory=dict, validate_default=True, description="Partial trait vector (0-1)"
    )
    element_profile: FrozenVector = Field(
        default_factory=dict, validate_default=True, description="Partial element vector (0-1)"
    )

    # Seasonality
    best_months: Optional[tuple[int, ...]] = Field(None, description="Recommended travel months (1-12)")
    rainy_season_months: tuple[int, ...] = Field(default_factory=tuple, description="Rainy season months")
    heat_alert_months: tuple[int, ...] = Field(default_factory=tuple, description="Months with frequent heat alerts")

    # Cost
    budget_level: int = Field(..., description="Budget level (1=lowest ... 5=highest)")
    cost_index: Optional[float] = Field(None, description="Cost index (cheap=1, expensive=0)")

    # Companion-fit signals (0-1)
    access_ease: Optional[float] = None
    safety_index: Optional[float] = None
    language_ease: Optional[float] = None
    nightlife: Optional[float] = None
    group_ease: Optional[float] = None
    kid_friendly: Optional[bool] = None
    suitable_for: Optional[tuple[Companion, ...]] = None

    # Presentation
    themes: tuple[Theme, ...] = Field(default_factory=tuple)
    avg_flight_hours: Optional[float] = Field(
        None,
        validation_alias=AliasChoices("avg_flight_hours", "avgFlightHoursFromICN"),
        description="Average flight hours from the home hub"
    )
    must_try: tuple[str, ...] = Field(default_factory=tuple)
    notes: tuple[str, ...] = Field(default_factory=tuple)


class DestinationCatalog(BaseModel):
    """Read-only snapshot of the destination catalog."""
    model_config = ConfigDict(frozen=True)

    version: str = Field(default="1.0.0", description="Catalog version")
    destinations: tuple[Destination, ...] = Field(default_factory=tuple)

    @property
    def total_destinations(self) -> int:
        return len(self.destinations)

    def get(self, destination_id: str) -> Optional[Destination]:
        """Look up a destination by id."""
        return next((d for d in self.destinations if d.id == destination_id), None)


# =============================================================================
# Output Models
# =============================================================================


class PillarLabels(BaseModel):
    """Calendar pillar labels (the hour pillar carries only its branch)."""
    year_stem: str = UNKNOWN_PILLAR
    year_branch: str = UNKNOWN_PILLAR
    month_stem: str = UNKNOWN_PILLAR
    month_branch: str = UNKNOWN_PILLAR
    hour_branch: str = UNKNOWN_PILLAR


class TraitMatch(BaseModel):
    """One of the top query traits, with its rationale."""
    trait: Trait
    value: float
    label: str
    rationale: str


class ElementMatch(BaseModel):
    """One of the top query elements, with its rationale."""
    element: Element
    value: float
    label: str
    rationale: str


class Explanation(BaseModel):
    """Why a destination was recommended."""
    trait_top: list[TraitMatch] = Field(default_factory=list)
    element_top: list[ElementMatch] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


class ScoredCandidate(BaseModel):
    """A destination with its raw score, before presentation metrics."""
    destination: Destination
    raw_score: float
    explanation: Explanation


class RankedResult(BaseModel):
    """A recommendation as returned to callers."""
    destination: Destination
    raw_score: float
    closeness: float = Field(..., description="raw_score / top raw_score (0 when top <= 0)")
    share: float = Field(..., description="Softmax share among all scored candidates")
    percentile: int = Field(..., description="0 = best, 100 = worst")
    tier: Tier
    explanation: Explanation


class PersonalizationContext(BaseModel):
    """Intermediate vectors exposed for display and debugging."""
    traits: TraitVector
    elements: ElementVector
    pillars: PillarLabels
    companion_type: Optional[Companion] = None
