"""Rerank guard - keeps one destination or country from dominating.

Two adjustments on top of the raw score:
- A deterministic jitter from a stable hash of (code, companion, id), so
  the same request always produces the same order.
- Outside domestic searches, a small capped penalty for destinations
  whose country is crowded in the candidate pool.
"""

from collections import Counter
from typing import Iterable, Optional, Sequence

from .config import RerankConfig
from .schema import Destination, RegionFilter, ScoredCandidate, UserProfile

FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619


def stable_hash01(key: str) -> float:
    """32-bit FNV-1a hash of a string, mapped to [0, 1)."""
    h = FNV_OFFSET_BASIS
    for ch in key:
        h ^= ord(ch)
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return h / 2 ** 32


def jitter_key(profile: UserProfile, destination_id: str) -> str:
    companion = profile.companion_type.value if profile.companion_type else ""
    return f"{profile.personality_code}|{companion}|{destination_id}"


class RerankGuard:
    """Applies jitter and the country balance penalty to scored candidates."""

    def __init__(self, config: Optional[RerankConfig] = None):
        self.config = config or RerankConfig()

    def jitter(self, profile: UserProfile, destination_id: str) -> float:
        """Deterministic offset in [-jitter, +jitter)."""
        return (stable_hash01(jitter_key(profile, destination_id)) - 0.5) * 2 * self.config.jitter

    def country_penalty(self, country_count: int) -> float:
        """Penalty for a destination sharing its country with others."""
        step = self.config.country_penalty_step * (country_count - 1)
        return min(self.config.country_penalty_max, max(0.0, step))

    def apply(
        self,
        candidates: Sequence[ScoredCandidate],
        profile: UserProfile,
        pool: Iterable[Destination],
    ) -> list[ScoredCandidate]:
        """Return new candidates with adjusted raw scores, in input order.

        Args:
            candidates: Scored candidates.
            profile: The user profile (jitter key and region filter).
            pool: Destinations whose countries are counted.
        """
        by_country = Counter(d.country for d in pool)
        balance = profile.region_filter != RegionFilter.DOMESTIC

        adjusted = []
        for candidate in candidates:
            destination = candidate.destination
            score = candidate.raw_score + self.jitter(profile, destination.id)
            if balance:
                score -= self.country_penalty(by_country.get(destination.country, 1))
            adjusted.append(candidate.model_copy(update={"raw_score": score}))
        return adjusted


def sort_candidates(candidates: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
    """Descending raw score; ties broken by ascending destination id."""
    return sorted(candidates, key=lambda c: (-c.raw_score, c.destination.id))


def dominance_share(labels: Sequence[Optional[str]]) -> float:
    """Fraction of samples taken by the most frequent non-empty label.

    Used to check the dominance ceiling over a sweep of top-1 results.
    """
    counts = Counter(label for label in labels if label)
    if not counts:
        return 0.0
    return counts.most_common(1)[0][1] / max(1, len(labels))
