"""Explainer - human-readable reasons for a recommendation.

Principles:
- Every recommendation names the traits and elements that drove it
- Missing inputs are called out, not hidden
- Budget gaps come with practical advice
"""

from typing import Mapping, Optional

from .element_estimator import is_valid_birth_time
from .schema import (
    Companion,
    Destination,
    Element,
    ElementMatch,
    Explanation,
    Trait,
    TraitMatch,
    UserProfile,
)

NO_BIRTH_DATE_NOTE = "Personality-based recommendation (no birth date supplied)"
BIRTH_TIME_UNKNOWN_NOTE = "Birth time unknown: hour pillar excluded"

TRAIT_LABELS = {
    Trait.SOCIAL: "social / interaction",
    Trait.NOVELTY: "novelty / exploration",
    Trait.STRUCTURE: "structure / stability",
    Trait.FLEXIBILITY: "flexibility / freedom",
    Trait.SENSORY: "sensory / stimulation",
    Trait.CULTURE: "culture / history",
}

TRAIT_RATIONALES = {
    Trait.SOCIAL: "enjoys conversation-heavy activities such as local meetups and guided tours",
    Trait.NOVELTY: "gets the most out of new neighbourhoods and unusual attractions",
    Trait.STRUCTURE: "prefers planned routes and well-organised cities and transit",
    Trait.FLEXIBILITY: "stays at their best with loose schedules and relaxed routes",
    Trait.SENSORY: "the richer the food, night views and nature, the better",
    Trait.CULTURE: "finds real joy in history, art and traditional experiences",
}

ELEMENT_LABELS = {
    Element.WOOD: "wood (forests/gardens)",
    Element.FIRE: "fire (festivals/energy)",
    Element.EARTH: "earth (mountains/hot springs)",
    Element.METAL: "metal (cities/order)",
    Element.WATER: "water (sea/rivers)",
}

ELEMENT_RATIONALES = {
    Element.WOOD: "more forests, gardens and trekking suit you well",
    Element.FIRE: "festivals, night spots and lively streets fit your pace",
    Element.EARTH: "grounded mountain and hot-spring routes help you recharge",
    Element.METAL: "modern cities, architecture and galleries lift satisfaction",
    Element.WATER: "waterfront routes by sea, river or spring restore focus",
}

COMPANION_HINTS = {
    Companion.FAMILY: "Family trip: kid-friendly, easy routes for groups",
    Companion.COUPLE: "Couple trip: night views and easy getting around",
    Companion.FRIENDS: "Friends trip: easy routes and lodging for 3-4 people",
}

OVER_BUDGET_WARNING = "Well above budget: consider the off-season or a nearby alternative."
OVER_BUDGET_TIPS = (
    "Flights: low-cost carriers or layovers, flexible dates",
    "Stay: 3-star hotels or guesthouses one stop outside the centre",
    "Activities: focus on free walks and museums",
)
UNDER_BUDGET_TIP = "Budget headroom: a 4-star+ upgrade, one signature tour or a standout meal"

RAINY_SEASON_NOTE = "Travel month falls in the rainy season: plan indoor alternatives"
HEAT_ALERT_NOTE = "Heat alerts are common in the travel month: plan midday breaks"


class RecommendationExplainer:
    """Builds the explanation attached to each scored destination."""

    def explain(
        self,
        destination: Destination,
        profile: UserProfile,
        traits: Mapping[str, float],
        elements: Mapping[str, float],
    ) -> Explanation:
        """Explain a destination for a profile.

        Args:
            destination: The scored destination.
            profile: The user profile.
            traits: Query trait vector used for similarity.
            elements: Query element distribution.

        Returns:
            Explanation with the top traits, top elements and notes.
        """
        trait_top = [
            TraitMatch(
                trait=Trait(key),
                value=value,
                label=TRAIT_LABELS[Trait(key)],
                rationale=TRAIT_RATIONALES[Trait(key)],
            )
            for key, value in _top2(traits)
        ]
        element_top = [
            ElementMatch(
                element=Element(key),
                value=value,
                label=ELEMENT_LABELS[Element(key)],
                rationale=ELEMENT_RATIONALES[Element(key)],
            )
            for key, value in _top2(elements)
        ]

        notes = []
        if profile.birth_date is not None and element_top:
            notes.append(_summary("Birth elements", element_top))
        if trait_top:
            notes.append(_summary("Personality traits", trait_top))
        notes.extend(destination.notes)

        if profile.birth_date is None:
            notes.append(NO_BIRTH_DATE_NOTE)
        elif profile.birth_time and not is_valid_birth_time(profile.birth_time):
            notes.append(BIRTH_TIME_UNKNOWN_NOTE)

        hint = self._companion_hint(destination, profile.companion_type)
        if hint:
            notes.append(hint)

        notes.extend(self._season_advisories(destination, profile.travel_month))
        notes.extend(budget_advice(destination, profile.budget_level))

        return Explanation(trait_top=trait_top, element_top=element_top, notes=notes)

    def _companion_hint(
        self, destination: Destination, companion: Optional[Companion]
    ) -> Optional[str]:
        """Hint when the destination suits the companion type."""
        if companion == Companion.FAMILY and destination.kid_friendly:
            return COMPANION_HINTS[Companion.FAMILY]
        if companion == Companion.COUPLE:
            if (destination.nightlife or 0.0) + (destination.language_ease or 0.0) > 1.0:
                return COMPANION_HINTS[Companion.COUPLE]
        if companion == Companion.FRIENDS and (destination.group_ease or 0.0) > 0.6:
            return COMPANION_HINTS[Companion.FRIENDS]
        return None

    def _season_advisories(
        self, destination: Destination, travel_month: Optional[int]
    ) -> list[str]:
        """Weather advisories for the travel month."""
        if not travel_month:
            return []
        advisories = []
        if travel_month in destination.rainy_season_months:
            advisories.append(RAINY_SEASON_NOTE)
        if travel_month in destination.heat_alert_months:
            advisories.append(HEAT_ALERT_NOTE)
        return advisories


def budget_advice(destination: Destination, budget_level: Optional[int]) -> list[str]:
    """Suggestions for closing (or using) the gap to the requested budget."""
    if budget_level is None:
        return []
    delta = destination.budget_level - budget_level
    tips = []
    if delta >= 2:
        tips.append(OVER_BUDGET_WARNING)
    if delta > 0:
        tips.extend(OVER_BUDGET_TIPS)
    elif delta < 0:
        tips.append(UNDER_BUDGET_TIP)
    return tips


def _top2(vector: Mapping[str, float]) -> list[tuple[str, float]]:
    return sorted(vector.items(), key=lambda kv: kv[1], reverse=True)[:2]


def _summary(title: str, matches: list) -> str:
    names = ", ".join(m.label for m in matches)
    reasons = " / ".join(dict.fromkeys(m.rationale for m in matches))
    return f"{title} ({names}): {reasons}."
