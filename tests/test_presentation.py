"""Tests for presentation metrics and the visibility cutoff."""

import pytest

from destination_scorer.config import PresentationConfig, TierThresholdsConfig
from destination_scorer.presentation import (
    PresentationRanker,
    percentile_from_index,
    softmax_shares,
    tier_from_closeness,
)
from destination_scorer.schema import Destination, Explanation, ScoredCandidate, Tier


def _candidates(*scores: float) -> list[ScoredCandidate]:
    """Candidates named c0, c1, ... with the given (already sorted) scores."""
    return [
        ScoredCandidate(
            destination=Destination(
                id=f"c{i}", name=f"Candidate {i}", country="Japan", region="overseas", budget_level=2,
            ),
            raw_score=score,
            explanation=Explanation(),
        )
        for i, score in enumerate(scores)
    ]


class TestSoftmaxShares:
    """Tests for softmax_shares."""

    def test_empty(self):
        assert softmax_shares([], 0.08) == []

    def test_sums_to_one(self):
        assert sum(softmax_shares([0.6, 0.5, 0.2, -0.1], 0.08)) == pytest.approx(1.0)

    def test_equal_scores_equal_shares(self):
        assert softmax_shares([0.4, 0.4], 0.08) == pytest.approx([0.5, 0.5])

    def test_low_temperature_concentrates(self):
        cold = softmax_shares([0.6, 0.5], 0.08)
        warm = softmax_shares([0.6, 0.5], 1.0)
        assert cold[0] > warm[0]


class TestTierFromCloseness:
    """Tests for tier thresholds."""

    @pytest.mark.parametrize("closeness,tier", [
        (1.0, Tier.S),
        (0.90, Tier.S),
        (0.89, Tier.A),
        (0.78, Tier.A),
        (0.70, Tier.B),
        (0.64, Tier.B),
        (0.50, Tier.C),
        (0.49, Tier.D),
        (0.0, Tier.D),
    ])
    def test_default_thresholds(self, closeness, tier):
        assert tier_from_closeness(closeness) == tier

    def test_custom_thresholds(self):
        tiers = TierThresholdsConfig(s=0.99, a=0.95, b=0.9, c=0.8)
        assert tier_from_closeness(0.96, tiers) == Tier.A


class TestPercentileFromIndex:
    """Tests for percentile_from_index."""

    @pytest.mark.parametrize("index,count,expected", [
        (0, 0, 0),
        (0, 1, 0),
        (0, 5, 0),
        (4, 5, 100),
        (1, 3, 50),
        (1, 4, 33),
        (2, 4, 67),
    ])
    def test_percentile(self, index, count, expected):
        assert percentile_from_index(index, count) == expected


class TestPresentationRanker:
    """Tests for PresentationRanker.rank."""

    def test_empty(self):
        assert PresentationRanker().rank([]) == []

    def test_metrics(self):
        results = PresentationRanker().rank(_candidates(0.60, 0.57, 0.50, 0.45))
        assert results[0].closeness == 1.0
        assert results[0].tier == Tier.S
        assert results[0].percentile == 0
        assert results[1].closeness == pytest.approx(0.95)
        assert results[-1].percentile == 100
        shares = [r.share for r in results]
        assert all(0.0 < s <= 1.0 for s in shares)
        assert shares == sorted(shares, reverse=True)
        assert all(0 <= r.percentile <= 100 for r in results)

    def test_default_limit(self):
        results = PresentationRanker().rank(_candidates(*[0.5 - 0.001 * i for i in range(8)]))
        assert len(results) == 5

    def test_explicit_limit(self):
        assert len(PresentationRanker().rank(_candidates(0.5, 0.49, 0.48), limit=2)) == 2

    def test_cutoff_hides_far_behind(self):
        results = PresentationRanker().rank(_candidates(1.0, 0.95, 0.2))
        assert [r.destination.id for r in results] == ["c0", "c1"]

    def test_cutoff_on_closeness(self):
        results = PresentationRanker().rank(_candidates(0.5, 0.49, 0.01), min_share=0.0)
        assert [r.destination.id for r in results] == ["c0", "c1"]

    def test_percentile_uses_full_list(self):
        results = PresentationRanker().rank(_candidates(1.0, 0.95, 0.2))
        assert results[1].percentile == 50

    def test_cutoff_overrides(self):
        results = PresentationRanker().rank(_candidates(1.0, 0.95, 0.2), min_closeness=0.99)
        assert [r.destination.id for r in results] == ["c0"]

    def test_all_hidden_falls_back_to_unfiltered(self):
        results = PresentationRanker().rank(_candidates(-0.1, -0.2, -0.3))
        assert [r.destination.id for r in results] == ["c0", "c1", "c2"]
        assert all(r.closeness == 0.0 for r in results)
        assert all(r.tier == Tier.D for r in results)

    def test_config_defaults_used(self):
        ranker = PresentationRanker(PresentationConfig(default_limit=1))
        assert len(ranker.rank(_candidates(0.5, 0.49))) == 1

    def test_top_is_s_tier(self):
        for scores in [(0.9,), (0.3, 0.29), (0.05, 0.01, 0.0)]:
            assert PresentationRanker().rank(_candidates(*scores))[0].tier == Tier.S
