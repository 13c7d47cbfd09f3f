"""Presentation ranker - display metrics and the visibility cutoff.

Given candidates sorted by raw score, derives closeness to the top
score, tier letter, softmax share and percentile, hides candidates that
are too far behind, and truncates to the requested limit.
"""

import logging
import math
from typing import Optional, Sequence

from .config import PresentationConfig, TierThresholdsConfig
from .schema import RankedResult, ScoredCandidate, Tier

logger = logging.getLogger(__name__)


def softmax_shares(scores: Sequence[float], temperature: float) -> list[float]:
    """Softmax over raw scores; a low temperature favors the top."""
    if not scores:
        return []
    peak = max(scores)
    t = max(1e-6, temperature)
    exps = [math.exp((s - peak) / t) for s in scores]
    total = sum(exps) or 1.0
    return [e / total for e in exps]


def percentile_from_index(index: int, count: int) -> int:
    """0 for the best candidate, 100 for the worst."""
    if count <= 1:
        return 0
    return round(index / (count - 1) * 100)


def tier_from_closeness(closeness: float, tiers: Optional[TierThresholdsConfig] = None) -> Tier:
    """Letter grade for a closeness value."""
    tiers = tiers or TierThresholdsConfig()
    if closeness >= tiers.s:
        return Tier.S
    if closeness >= tiers.a:
        return Tier.A
    if closeness >= tiers.b:
        return Tier.B
    if closeness >= tiers.c:
        return Tier.C
    return Tier.D


class PresentationRanker:
    """Derives tier, share and percentile and applies the cutoff."""

    def __init__(self, config: Optional[PresentationConfig] = None):
        self.config = config or PresentationConfig()

    def rank(
        self,
        candidates: Sequence[ScoredCandidate],
        limit: Optional[int] = None,
        min_closeness: Optional[float] = None,
        min_share: Optional[float] = None,
    ) -> list[RankedResult]:
        """Build ranked results from candidates sorted best first.

        Args:
            candidates: Candidates sorted by descending raw score.
            limit: Maximum results (default from config).
            min_closeness: Hide candidates at or below this closeness.
            min_share: Hide candidates at or below this share.

        Returns:
            Ranked results; never empty when candidates were given.
        """
        cfg = self.config
        limit = cfg.default_limit if limit is None else limit
        min_closeness = cfg.min_closeness if min_closeness is None else min_closeness
        min_share = cfg.min_share if min_share is None else min_share

        top = candidates[0].raw_score if candidates else 0.0
        shares = softmax_shares([c.raw_score for c in candidates], cfg.softmax_temperature)

        ranked = []
        for index, (candidate, share) in enumerate(zip(candidates, shares)):
            closeness = candidate.raw_score / top if top > 0 else 0.0
            ranked.append(RankedResult(
                destination=candidate.destination,
                raw_score=candidate.raw_score,
                closeness=closeness,
                share=share,
                percentile=percentile_from_index(index, len(candidates)),
                tier=tier_from_closeness(closeness, cfg.tiers),
                explanation=candidate.explanation,
            ))

        visible = [r for r in ranked if r.closeness > min_closeness and r.share > min_share]
        if not visible and ranked:
            logger.debug("Visibility cutoff would hide all %d candidates; keeping them", len(ranked))
            visible = ranked

        return visible[:limit]
