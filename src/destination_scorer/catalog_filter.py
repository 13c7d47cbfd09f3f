"""Catalog filter - narrows the catalog to the candidate pool.

Applies the region restriction, then the budget admission rule. When the
budget rule leaves nothing and a budget was requested, relaxes the rule
in a fixed order until something is admitted.
"""

import logging
from typing import Callable, Optional, Sequence

from .schema import (
    BudgetFilterMode,
    Destination,
    RegionFilter,
    UserProfile,
)

logger = logging.getLogger(__name__)

BudgetRule = Callable[[int], bool]


class CatalogFilter:
    """Region and budget admission with cascading fallback.

    Results keep catalog order. The filter never raises; an exhausted
    cascade yields an empty pool.
    """

    # Admission rule per mode, on delta = destination budget - requested budget
    BUDGET_RULES: dict[BudgetFilterMode, BudgetRule] = {
        BudgetFilterMode.STRICT: lambda delta: delta == 0,
        BudgetFilterMode.BAND: lambda delta: abs(delta) <= 1,
        BudgetFilterMode.CAP: lambda delta: delta < 2,
    }

    # Relaxation order once the active mode admits nothing
    FALLBACK_MODES = (BudgetFilterMode.BAND, BudgetFilterMode.CAP)

    def __init__(self, budget_mode: BudgetFilterMode = BudgetFilterMode.STRICT):
        self.budget_mode = budget_mode

    def filter(
        self,
        catalog: Sequence[Destination],
        profile: UserProfile,
    ) -> list[Destination]:
        """Return the candidate pool for a profile."""
        pool, _ = self.filter_with_stage(catalog, profile)
        return pool

    def filter_with_stage(
        self,
        catalog: Sequence[Destination],
        profile: UserProfile,
    ) -> tuple[list[Destination], str]:
        """Return the candidate pool and the stage that produced it.

        Stages: "region" (no budget requested), the active mode name,
        "band_region", "cap_region", "band_global", "cap_global", or
        "exhausted".
        """
        regional = filter_by_region(catalog, profile.region_filter)

        if profile.budget_level is None:
            return regional, "region"

        budget = profile.budget_level
        pool = filter_by_budget(regional, budget, self.BUDGET_RULES[self.budget_mode])
        if pool:
            return pool, self.budget_mode.value

        for scope, candidates in (("region", regional), ("global", list(catalog))):
            for mode in self.FALLBACK_MODES:
                pool = filter_by_budget(candidates, budget, self.BUDGET_RULES[mode])
                if pool:
                    stage = f"{mode.value}_{scope}"
                    logger.debug(
                        "No %s budget match for level %d; fell back to %s (%d candidates)",
                        self.budget_mode.value, budget, stage, len(pool),
                    )
                    return pool, stage

        logger.debug("Budget fallback exhausted for level %d", budget)
        return [], "exhausted"


def filter_by_region(
    catalog: Sequence[Destination],
    region_filter: Optional[RegionFilter],
) -> list[Destination]:
    """Keep destinations in the requested region ("all" keeps everything)."""
    if region_filter is None or region_filter == RegionFilter.ALL:
        return list(catalog)
    return [d for d in catalog if d.region.value == region_filter.value]


def filter_by_budget(
    candidates: Sequence[Destination],
    budget_level: int,
    rule: BudgetRule,
) -> list[Destination]:
    """Keep destinations whose budget delta passes the rule."""
    return [d for d in candidates if rule(d.budget_level - budget_level)]
