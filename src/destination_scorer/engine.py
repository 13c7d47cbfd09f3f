"""Recommendation engine - the public entry points.

Pipeline:
1. Build query vectors (trait mapper + element estimator)
2. Narrow the catalog (region, budget with fallback)
3. Score each candidate
4. Re-rank (jitter, country balance) and sort
5. Derive presentation metrics, apply the cutoff, truncate

Everything is a pure function of (profile, catalog, options): no I/O
beyond loading the bundled catalog once, and no shared mutable state.
"""

import logging
from typing import Optional, Sequence, Union

from .catalog import load_default_catalog
from .catalog_filter import CatalogFilter, filter_by_region
from .config import ScorerConfig
from .element_estimator import estimate
from .presentation import PresentationRanker
from .rerank import RerankGuard, sort_candidates
from .schema import (
    Destination,
    DestinationCatalog,
    PersonalizationContext,
    RankedResult,
    ScoredCandidate,
    UserProfile,
)
from .scorer import DestinationScorer
from .trait_mapper import map_to_traits

logger = logging.getLogger(__name__)

CatalogInput = Union[DestinationCatalog, Sequence[Destination]]


class RecommendationEngine:
    """Recommends catalog destinations for a user profile."""

    def __init__(
        self,
        config: Optional[ScorerConfig] = None,
        catalog: Optional[CatalogInput] = None,
    ):
        """Initialize the engine.

        Args:
            config: Scorer configuration (defaults when omitted).
            catalog: Catalog used when a call does not pass one. The
                bundled sample catalog is used when neither is given.
        """
        self.config = config or ScorerConfig()
        self.catalog = _snapshot(catalog) if catalog is not None else None
        self.catalog_filter = CatalogFilter(self.config.catalog_filter.budget_mode)
        self.scorer = DestinationScorer(self.config)
        self.rerank_guard = RerankGuard(self.config.rerank)
        self.presentation = PresentationRanker(self.config.presentation)

    def recommend(
        self,
        profile: UserProfile,
        *,
        limit: Optional[int] = None,
        catalog: Optional[CatalogInput] = None,
        min_closeness: Optional[float] = None,
        min_share: Optional[float] = None,
    ) -> list[RankedResult]:
        """Rank destinations for a profile.

        Args:
            profile: Validated user profile.
            limit: Maximum number of results (default 5).
            catalog: Catalog override for this call.
            min_closeness: Override of the closeness cutoff.
            min_share: Override of the share cutoff.

        Returns:
            Ranked results, best first. Empty only when no destination
            survives the filter cascade.

        Raises:
            InvalidCodeKind: If the personality code is unknown.
        """
        query = self.scorer.build_query(profile)
        destinations = self._resolve_catalog(catalog)

        pool = self.catalog_filter.filter(destinations, profile)
        logger.debug(
            "Scoring %d of %d destinations for %s",
            len(pool), len(destinations), profile.personality_code,
        )

        scored = []
        for destination in pool:
            raw_score, explanation = self.scorer.score(profile, destination, query)
            scored.append(ScoredCandidate(
                destination=destination,
                raw_score=raw_score,
                explanation=explanation,
            ))

        regional = filter_by_region(destinations, profile.region_filter)
        adjusted = self.rerank_guard.apply(scored, profile, regional)

        return self.presentation.rank(
            sort_candidates(adjusted),
            limit=limit,
            min_closeness=min_closeness,
            min_share=min_share,
        )

    def get_personalization_context(self, profile: UserProfile) -> PersonalizationContext:
        """Expose the trait vector, element distribution and pillar labels.

        Raises:
            InvalidCodeKind: If the personality code is unknown.
        """
        traits = map_to_traits(profile.personality_code)
        element_estimate = estimate(profile.birth_date, profile.birth_time)
        return PersonalizationContext(
            traits=traits,
            elements=element_estimate.elements,
            pillars=element_estimate.pillars,
            companion_type=profile.companion_type,
        )

    def _resolve_catalog(self, catalog: Optional[CatalogInput]) -> tuple[Destination, ...]:
        if catalog is not None:
            return _snapshot(catalog)
        if self.catalog is not None:
            return self.catalog
        return load_default_catalog().destinations


def _snapshot(catalog: CatalogInput) -> tuple[Destination, ...]:
    """Copy the catalog into an immutable tuple."""
    if isinstance(catalog, DestinationCatalog):
        return catalog.destinations
    return tuple(catalog)


def recommend(
    profile: UserProfile,
    *,
    limit: Optional[int] = None,
    catalog: Optional[CatalogInput] = None,
    min_closeness: Optional[float] = None,
    min_share: Optional[float] = None,
    config: Optional[ScorerConfig] = None,
) -> list[RankedResult]:
    """Rank destinations for a profile with a fresh engine."""
    return RecommendationEngine(config).recommend(
        profile,
        limit=limit,
        catalog=catalog,
        min_closeness=min_closeness,
        min_share=min_share,
    )


def get_personalization_context(profile: UserProfile) -> PersonalizationContext:
    """Personalization context for a profile."""
    return RecommendationEngine().get_personalization_context(profile)
