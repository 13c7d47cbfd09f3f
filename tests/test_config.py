"""Tests for scorer configuration loading."""

import pytest
from pydantic import ValidationError

from destination_scorer.config import (
    CONFIG_ENV_VAR,
    ScorerConfig,
    find_config_file,
    load_config,
    resolve_config,
    save_default_config,
)
from destination_scorer.schema import BudgetFilterMode


@pytest.fixture
def isolated_config_env(tmp_path, monkeypatch):
    """Run with no config file reachable from env, cwd or home."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestDefaults:
    """Reference defaults."""

    def test_scoring_weights(self):
        weights = ScorerConfig().scoring_weights
        assert (weights.alpha, weights.beta, weights.gamma) == (0.50, 0.40, 0.35)
        assert weights.no_time_beta_factor == 0.7

    def test_presentation(self):
        presentation = ScorerConfig().presentation
        assert presentation.softmax_temperature == 0.08
        assert presentation.min_closeness == 0.05
        assert presentation.min_share == 0.01
        assert presentation.default_limit == 5
        assert (presentation.tiers.s, presentation.tiers.a, presentation.tiers.b, presentation.tiers.c) == (
            0.90, 0.78, 0.64, 0.50,
        )

    def test_filter_and_penalty(self):
        config = ScorerConfig()
        assert config.catalog_filter.budget_mode == BudgetFilterMode.STRICT
        assert config.penalty.distance_penalty_enabled is False
        assert config.rerank.jitter == 0.05


class TestLoadConfig:
    """Tests for load_config."""

    def test_partial_file_keeps_defaults(self, tmp_path):
        path = tmp_path / "scorer-config.yaml"
        path.write_text("scoring_weights:\n  alpha: 0.6\ncatalog_filter:\n  budget_mode: band\n")
        config = load_config(path)
        assert config.scoring_weights.alpha == 0.6
        assert config.scoring_weights.beta == 0.40
        assert config.catalog_filter.budget_mode == BudgetFilterMode.BAND
        assert config.presentation.default_limit == 5

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == ScorerConfig()

    def test_invalid_budget_mode(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("catalog_filter:\n  budget_mode: loose\n")
        with pytest.raises(ValidationError):
            load_config(path)

    def test_saved_default_loads_back(self, tmp_path):
        path = tmp_path / "nested" / "scorer-config.yaml"
        save_default_config(path)
        assert path.read_text(encoding="utf-8").startswith("# Destination Scorer Configuration")
        assert load_config(path) == ScorerConfig()


class TestFindConfigFile:
    """Tests for config file discovery."""

    def test_nothing_found(self, isolated_config_env):
        assert find_config_file() is None
        assert resolve_config() == ScorerConfig()

    def test_env_var(self, isolated_config_env, monkeypatch):
        path = isolated_config_env / "custom.yaml"
        path.write_text("rerank:\n  jitter: 0.0\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert find_config_file() == path
        assert resolve_config().rerank.jitter == 0.0

    def test_env_var_missing_file_ignored(self, isolated_config_env, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(isolated_config_env / "missing.yaml"))
        assert find_config_file() is None

    def test_current_directory(self, isolated_config_env):
        (isolated_config_env / "scorer-config.yml").write_text("season:\n  bonus: 0.1\n")
        assert find_config_file().name == "scorer-config.yml"

    def test_user_config(self, isolated_config_env):
        user_dir = isolated_config_env / ".config" / "destination-scorer"
        user_dir.mkdir(parents=True)
        (user_dir / "config.yaml").write_text("season:\n  bonus: 0.1\n")
        assert find_config_file() == user_dir / "config.yaml"

    def test_explicit_path_wins(self, isolated_config_env, monkeypatch):
        env_path = isolated_config_env / "env.yaml"
        env_path.write_text("rerank:\n  jitter: 0.01\n")
        explicit = isolated_config_env / "explicit.yaml"
        explicit.write_text("rerank:\n  jitter: 0.02\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(env_path))
        assert resolve_config(explicit).rerank.jitter == 0.02
