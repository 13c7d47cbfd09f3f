"""Scorer - raw score for one destination against one profile.

raw = alpha * trait_cos
    + beta_local * element_cos
    - gamma * penalty
    + companion_weight * (fit - 0.5)
    + rank_nudge * (fit - 0.5)
    + season_adjustment
    + specialization_bonus

The query trait vector goes through three independent stages before
similarity: salience amplification, peak boost, companion blend.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from .config import ScorerConfig
from .element_estimator import estimate
from .explainer import RecommendationExplainer
from .schema import (
    ELEMENT_KEYS,
    TRAIT_KEYS,
    Companion,
    Destination,
    ElementVector,
    Explanation,
    TraitVector,
    UserProfile,
)
from .trait_mapper import clamp01, map_to_traits

# Trait focus per companion type, blended into the query traits
COMPANION_TRAIT_BIAS: dict[Companion, TraitVector] = {
    Companion.SOLO: {
        "social": 0.20, "novelty": 0.10, "structure": 0.40,
        "flexibility": 0.10, "sensory": 0.05, "culture": 0.15,
    },
    Companion.COUPLE: {
        "social": 0.25, "novelty": 0.10, "structure": 0.10,
        "flexibility": 0.15, "sensory": 0.30, "culture": 0.10,
    },
    Companion.FRIENDS: {
        "social": 0.35, "novelty": 0.20, "structure": 0.05,
        "flexibility": 0.25, "sensory": 0.10, "culture": 0.05,
    },
    Companion.FAMILY: {
        "social": 0.10, "novelty": 0.05, "structure": 0.35,
        "flexibility": 0.15, "sensory": 0.10, "culture": 0.25,
    },
}

# Relative weight of each destination signal in the companion-fit blend
COMPANION_SIGNAL_WEIGHTS: dict[Companion, dict[str, float]] = {
    Companion.SOLO: {
        "safety_index": 1.2, "access_ease": 1.0, "group_ease": 0.6,
        "nightlife": 0.5, "language_ease": 0.8,
    },
    Companion.COUPLE: {
        "safety_index": 0.8, "access_ease": 0.8, "group_ease": 0.6,
        "nightlife": 1.1, "language_ease": 0.8,
    },
    Companion.FRIENDS: {
        "safety_index": 0.8, "access_ease": 0.8, "group_ease": 1.2,
        "nightlife": 1.1, "language_ease": 0.8,
    },
    Companion.FAMILY: {
        "safety_index": 0.8, "access_ease": 0.8, "group_ease": 1.2,
        "nightlife": 0.5, "language_ease": 0.8,
    },
}

COMPANION_SIGNAL_FIELDS = ("safety_index", "access_ease", "language_ease", "nightlife", "group_ease")

KID_FRIENDLY_BUMP = 0.2
SUITABLE_FOR_BUMP = 0.2
NEUTRAL_FIT = 0.5


# =============================================================================
# Query trait stages
# =============================================================================


def enhance_salience(traits: TraitVector, factor: float) -> TraitVector:
    """Pull every trait away from 0.5 by a multiplicative factor."""
    return {k: clamp01(0.5 + (v - 0.5) * factor) for k, v in traits.items()}


def boost_top_traits(traits: TraitVector, first: float, second: float) -> TraitVector:
    """Multiply the two highest traits by (1 + first) and (1 + second)."""
    ranked = top_items(traits, 2)
    boosted = dict(traits)
    for (key, _), bonus in zip(ranked, (first, second)):
        boosted[key] = clamp01(boosted[key] * (1 + bonus))
    return boosted


def blend_with_companion(
    traits: TraitVector,
    companion: Optional[Companion],
    blend: float,
) -> TraitVector:
    """Interpolate each trait toward the companion's bias vector."""
    if companion is None:
        return dict(traits)
    bias = COMPANION_TRAIT_BIAS[companion]
    return {
        k: clamp01((1 - blend) * traits.get(k, 0.5) + blend * bias[k])
        for k in TRAIT_KEYS
    }


def top_items(vector: Mapping[str, float], n: int = 2) -> list[tuple[str, float]]:
    """Highest n entries by value; ties keep key order."""
    return sorted(vector.items(), key=lambda kv: kv[1], reverse=True)[:n]


# =============================================================================
# Score terms
# =============================================================================


def cosine_similarity(
    a: Mapping[str, float],
    b: Mapping[str, float],
    keys: Iterable[str],
) -> float:
    """Cosine similarity over a fixed key set; missing keys count as 0.

    Returns 0 when either vector has zero norm.
    """
    dot = norm_a = norm_b = 0.0
    for key in keys:
        av = a.get(key) or 0.0
        bv = b.get(key) or 0.0
        dot += av * bv
        norm_a += av * av
        norm_b += bv * bv
    denom = math.sqrt(norm_a) * math.sqrt(norm_b)
    return dot / denom if denom > 0 else 0.0


def companion_fit(destination: Destination, companion: Optional[Companion]) -> float:
    """Weighted blend of the destination's companion signals, in [0, 1].

    0.5 when no companion is given or the destination has no signals.
    """
    if companion is None:
        return NEUTRAL_FIT

    weights = COMPANION_SIGNAL_WEIGHTS[companion]
    total = 0.0
    weight_sum = 0.0
    for field, weight in weights.items():
        value = getattr(destination, field)
        if value is not None:
            total += value * weight
            weight_sum += weight

    if companion == Companion.FAMILY and destination.kid_friendly:
        total += KID_FRIENDLY_BUMP
    if destination.suitable_for and companion in destination.suitable_for:
        total += SUITABLE_FOR_BUMP

    if weight_sum == 0:
        return NEUTRAL_FIT
    return clamp01(total / weight_sum)


def companion_coverage(destination: Destination) -> float:
    """Share of companion signals the destination provides, in [0, 1]."""
    filled = sum(1.0 for f in COMPANION_SIGNAL_FIELDS if getattr(destination, f) is not None)
    if destination.kid_friendly is not None:
        filled += 0.5
    if destination.suitable_for is not None:
        filled += 0.5
    return clamp01(filled / (len(COMPANION_SIGNAL_FIELDS) + 1))


def month_distance(a: int, b: int) -> int:
    """Circular distance between two months."""
    d = abs(a - b)
    return min(d, 12 - d)


def season_adjustment(
    destination: Destination,
    travel_month: Optional[int],
    config: ScorerConfig,
) -> float:
    """Reward a best-month match, penalize a miss (less when adjacent).

    Destinations with shorter best-month lists are rewarded and penalized
    more strongly.
    """
    best = destination.best_months
    if not travel_month or not best:
        return 0.0

    scale = config.scoring_weights.season
    season = config.season
    specificity = clamp01(1 - len(best) / 12)

    if travel_month in best:
        return scale * season.bonus * (0.6 + 0.4 * specificity)

    near = any(month_distance(m, travel_month) == 1 for m in best)
    base = season.near_penalty if near else season.far_penalty
    return -scale * base * (0.5 + 0.5 * specificity)


def logistic(x: float, k: float, midpoint: float) -> float:
    return 1 / (1 + math.exp(-k * (x - midpoint)))


def penalty(destination: Destination, profile: UserProfile, config: ScorerConfig) -> float:
    """Non-season penalty in [0, 1]."""
    cfg = config.penalty
    p = 0.0

    if profile.budget_level is not None:
        delta = destination.budget_level - profile.budget_level
        if delta > 0:
            p += cfg.budget_over_rate * delta
        elif delta < 0:
            p -= cfg.budget_under_discount * -delta

    if profile.companion_type == Companion.SOLO:
        stability = (
            (destination.trait_profile.get("structure") or 0.0)
            + (destination.trait_profile.get("culture") or 0.0)
        )
        p -= cfg.solo_stability_bonus * stability

    if (
        cfg.distance_penalty_enabled
        and profile.max_flight_hours is not None
        and destination.avg_flight_hours is not None
    ):
        over = destination.avg_flight_hours - profile.max_flight_hours
        if over > 0:
            p += cfg.distance_penalty_weight * logistic(
                over, cfg.distance_logistic_k, cfg.distance_logistic_midpoint
            )

    return clamp01(p)


def specialization_bonus(
    query_traits: TraitVector,
    destination: Destination,
    config: ScorerConfig,
) -> float:
    """Reward destinations strong on the user's top two traits.

    Compares the destination's weighted value on those traits with its
    own trait mean, scaled by how far the top traits sit from neutral.
    """
    cfg = config.specialization
    ranked = top_items(query_traits, 2)
    (t1, v1), (t2, v2) = ranked[0], ranked[1]

    profile = destination.trait_profile
    mean = sum(profile.get(k) or 0.0 for k in TRAIT_KEYS) / len(TRAIT_KEYS)
    top_avg = cfg.first_weight * (profile.get(t1) or 0.0) + cfg.second_weight * (profile.get(t2) or 0.0)
    confidence = (abs(v1 - 0.5) + abs(v2 - 0.5)) / 2
    return cfg.gain * (top_avg - mean) * (0.6 + 0.4 * confidence)


# =============================================================================
# Scorer
# =============================================================================


@dataclass(frozen=True)
class ScoringQuery:
    """Per-request query vectors, computed once and reused per destination."""
    base_traits: TraitVector  # after salience and peak boost
    traits: TraitVector  # after companion blend
    elements: ElementVector
    has_birth_date: bool
    has_birth_time: bool
    element_weight: float


class DestinationScorer:
    """Scores destinations against a user profile.

    Scoring principles:
    - Trait similarity always counts; element similarity only with a birth date
    - A missing birth time softens, never removes, the element term
    - Companion bonuses scale with how much companion data a destination has
    - Missing optional inputs contribute neutral terms, never errors
    """

    def __init__(
        self,
        config: Optional[ScorerConfig] = None,
        explainer: Optional[RecommendationExplainer] = None,
    ):
        self.config = config or ScorerConfig()
        self.explainer = explainer or RecommendationExplainer()

    def build_query(self, profile: UserProfile) -> ScoringQuery:
        """Compute the query vectors for a profile.

        Raises:
            InvalidCodeKind: If the personality code is unknown.
        """
        base = build_query_traits(profile.personality_code, self.config)
        traits = blend_with_companion(
            base, profile.companion_type, self.config.trait_transform.companion_blend
        )
        element_estimate = estimate(profile.birth_date, profile.birth_time)

        weights = self.config.scoring_weights
        has_date = profile.birth_date is not None
        if not has_date:
            element_weight = 0.0
        elif element_estimate.has_hour:
            element_weight = weights.beta
        else:
            element_weight = weights.beta * weights.no_time_beta_factor

        return ScoringQuery(
            base_traits=base,
            traits=traits,
            elements=element_estimate.elements,
            has_birth_date=has_date,
            has_birth_time=element_estimate.has_hour,
            element_weight=element_weight,
        )

    def score(
        self,
        profile: UserProfile,
        destination: Destination,
        query: Optional[ScoringQuery] = None,
    ) -> tuple[float, Explanation]:
        """Score a single destination.

        Args:
            profile: The user profile.
            destination: The catalog entry to score.
            query: Precomputed query vectors for this profile.

        Returns:
            Tuple of (raw_score, explanation).
        """
        query = query or self.build_query(profile)
        cfg = self.config

        trait_cos = cosine_similarity(query.traits, destination.trait_profile, TRAIT_KEYS)
        element_cos = cosine_similarity(query.elements, destination.element_profile, ELEMENT_KEYS)

        fit = companion_fit(destination, profile.companion_type)
        companion_weight = (
            cfg.companion_fit.bonus_base
            + cfg.companion_fit.bonus_coverage * companion_coverage(destination)
        )

        raw_score = (
            cfg.scoring_weights.alpha * trait_cos
            + query.element_weight * element_cos
            - cfg.scoring_weights.gamma * penalty(destination, profile, cfg)
            + companion_weight * (fit - NEUTRAL_FIT)
            + cfg.companion_fit.rank_nudge * (fit - NEUTRAL_FIT)
            + season_adjustment(destination, profile.travel_month, cfg)
            + specialization_bonus(query.base_traits, destination, cfg)
        )

        explanation = self.explainer.explain(destination, profile, query.traits, query.elements)
        return raw_score, explanation


def build_query_traits(code: str, config: ScorerConfig) -> TraitVector:
    """Trait mapper output after salience amplification and peak boost."""
    transform = config.trait_transform
    traits = map_to_traits(code)
    traits = enhance_salience(traits, transform.salience)
    return boost_top_traits(traits, transform.peak_first, transform.peak_second)
