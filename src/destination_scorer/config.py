"""Configuration management for the destination scorer.

Tuned constants that may be adjusted per deployment live here. Fixed
tables (trait deltas, calendar lookups, companion bias vectors) are
module constants next to the code that uses them.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from .schema import BudgetFilterMode

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DESTINATION_SCORER_CONFIG"


class ScoringWeightsConfig(BaseModel):
    """Weights of the main score terms."""
    alpha: float = Field(0.50, description="Weight for trait cosine similarity")
    beta: float = Field(0.40, description="Weight for element cosine similarity")
    gamma: float = Field(0.35, description="Weight subtracted per unit of penalty")
    season: float = Field(1.00, description="Scale of the season adjustment")
    no_time_beta_factor: float = Field(
        0.7,
        description="Multiplier on beta when a birth date is given without a valid birth time"
    )


class TraitTransformConfig(BaseModel):
    """Query trait transforms applied before similarity."""
    salience: float = Field(1.35, description="Factor pulling each trait away from 0.5")
    peak_first: float = Field(0.18, description="Relative boost for the highest trait")
    peak_second: float = Field(0.10, description="Relative boost for the second highest trait")
    companion_blend: float = Field(0.18, description="Blend coefficient toward the companion bias vector")


class SpecializationConfig(BaseModel):
    """Bonus for destinations that stand out on the user's top traits."""
    gain: float = Field(0.10, description="Overall gain of the specialization bonus")
    first_weight: float = Field(0.6, description="Weight of the top trait")
    second_weight: float = Field(0.4, description="Weight of the second trait")


class CompanionFitConfig(BaseModel):
    """Companion-fit bonus weights."""
    bonus_base: float = Field(0.18, description="Companion weight with no fit signals")
    bonus_coverage: float = Field(0.24, description="Extra companion weight at full signal coverage")
    rank_nudge: float = Field(0.03, description="Small tie-break weight on the same fit score")


class SeasonConfig(BaseModel):
    """Travel month adjustments."""
    bonus: float = Field(0.08, description="Reward when the travel month is a best month")
    near_penalty: float = Field(0.10, description="Penalty when a best month is one month away")
    far_penalty: float = Field(0.22, description="Penalty when no best month is adjacent")


class PenaltyConfig(BaseModel):
    """Non-season penalty term."""
    budget_over_rate: float = Field(0.55, description="Penalty per level above the requested budget")
    budget_under_discount: float = Field(0.06, description="Discount per level below the requested budget")
    solo_stability_bonus: float = Field(
        0.08,
        description="Solo discount scaled by destination structure + culture"
    )
    distance_penalty_enabled: bool = Field(False, description="Apply the flight distance penalty")
    distance_penalty_weight: float = Field(0.25, description="Maximum flight distance penalty")
    distance_logistic_k: float = Field(0.8, description="Steepness of the distance logistic")
    distance_logistic_midpoint: float = Field(1.0, description="Overage hours at the logistic midpoint")


class CatalogFilterConfig(BaseModel):
    """Candidate pool filtering."""
    budget_mode: BudgetFilterMode = Field(
        BudgetFilterMode.STRICT,
        description="Budget admission mode (strict, band, cap)"
    )


class RerankConfig(BaseModel):
    """Anti-domination re-ranking."""
    jitter: float = Field(0.05, description="Maximum absolute deterministic jitter")
    country_penalty_step: float = Field(0.02, description="Penalty per other destination in the same country")
    country_penalty_max: float = Field(0.06, description="Cap on the country penalty")


class TierThresholdsConfig(BaseModel):
    """Closeness thresholds for tier letters."""
    s: float = 0.90
    a: float = 0.78
    b: float = 0.64
    c: float = 0.50


class PresentationConfig(BaseModel):
    """Presentation metrics and visibility cutoff."""
    softmax_temperature: float = Field(0.08, description="Softmax temperature (lower favors the top)")
    min_closeness: float = Field(0.05, description="Hide candidates at or below this closeness")
    min_share: float = Field(0.01, description="Hide candidates at or below this share")
    default_limit: int = Field(5, description="Number of results returned by default")
    tiers: TierThresholdsConfig = Field(default_factory=TierThresholdsConfig)


class ScorerConfig(BaseModel):
    """Complete configuration for the destination scorer."""
    scoring_weights: ScoringWeightsConfig = Field(default_factory=ScoringWeightsConfig)
    trait_transform: TraitTransformConfig = Field(default_factory=TraitTransformConfig)
    specialization: SpecializationConfig = Field(default_factory=SpecializationConfig)
    companion_fit: CompanionFitConfig = Field(default_factory=CompanionFitConfig)
    season: SeasonConfig = Field(default_factory=SeasonConfig)
    penalty: PenaltyConfig = Field(default_factory=PenaltyConfig)
    catalog_filter: CatalogFilterConfig = Field(default_factory=CatalogFilterConfig)
    rerank: RerankConfig = Field(default_factory=RerankConfig)
    presentation: PresentationConfig = Field(default_factory=PresentationConfig)


def load_config(path: Path) -> ScorerConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        The loaded ScorerConfig. Missing sections keep their defaults.
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    config = ScorerConfig.model_validate(data or {})
    logger.info("Loaded scorer config from %s", path)
    return config


def find_config_file() -> Optional[Path]:
    """Find a scorer configuration file.

    Looks in (order of priority):
    1. DESTINATION_SCORER_CONFIG environment variable
    2. ./scorer-config.yaml
    3. ./scorer-config.yml
    4. ~/.config/destination-scorer/config.yaml
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path)
        if path.exists():
            return path

    for name in ["scorer-config.yaml", "scorer-config.yml"]:
        path = Path(name)
        if path.exists():
            return path

    user_config = Path.home() / ".config" / "destination-scorer" / "config.yaml"
    if user_config.exists():
        return user_config

    return None


def resolve_config(path: Optional[Path] = None) -> ScorerConfig:
    """Load the given config file, else the first one found, else defaults."""
    path = path or find_config_file()
    if path is None:
        return ScorerConfig()
    return load_config(path)


def save_default_config(path: Path) -> None:
    """Save the default configuration to a YAML file.

    Args:
        path: Path where to save the configuration.
    """
    data = ScorerConfig().model_dump(mode="json")

    yaml_content = """# Destination Scorer Configuration
# =================================
#
# Tunes score weights, season and penalty terms, the budget filter mode,
# re-ranking jitter and the presentation cutoff.
#
# Copy this file to one of these locations:
#   - ./scorer-config.yaml (current directory)
#   - ~/.config/destination-scorer/config.yaml (user config)
#
# Or set the DESTINATION_SCORER_CONFIG environment variable.

"""
    yaml_content += yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(yaml_content)
