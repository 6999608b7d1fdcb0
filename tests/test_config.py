"""Tests for configuration loading."""

import io
from pathlib import Path

import pytest
from rich.console import Console

from math_vocab.config import (
    AppConfig,
    RankingConfig,
    RecognitionConfig,
    get_config,
    print_config_summary,
    set_config,
)


class TestDefaults:
    """Test default configuration values."""

    def test_recognition_defaults(self):
        config = RecognitionConfig()
        assert config.base_confidence == 0.6
        assert config.context_window == 20
        assert config.alias_factor == 0.9
        assert config.usage_boost_cap == 0.2

    def test_ranking_defaults_sum_to_one(self):
        config = RankingConfig()
        total = (
            config.relevance_weight
            + config.context_weight
            + config.preference_weight
            + config.quality_weight
            + config.novelty_weight
        )
        assert total == pytest.approx(1.0)
        assert config.personalization_cap == 0.1


class TestEnvironment:
    """Test environment variable overrides."""

    def test_ranking_env_override(self, monkeypatch):
        monkeypatch.setenv("RANKING_NOVELTY_WEIGHT", "0.2")
        monkeypatch.setenv("RANKING_CACHE_SIZE", "0")
        config = RankingConfig()
        assert config.novelty_weight == 0.2
        assert config.cache_size == 0

    def test_recognition_env_override(self, monkeypatch):
        monkeypatch.setenv("RECOGNITION_BASE_CONFIDENCE", "0.5")
        assert RecognitionConfig().base_confidence == 0.5

    def test_load_reads_env_file(self, tmp_path, monkeypatch):
        # Register both keys so teardown removes what load_dotenv writes
        for key in ("RECOGNITION_ALIAS_FACTOR", "LOG_LEVEL"):
            monkeypatch.setenv(key, "")
            monkeypatch.delenv(key)

        env_file = tmp_path / ".env"
        env_file.write_text("RECOGNITION_ALIAS_FACTOR=0.75\nLOG_LEVEL=DEBUG\n", encoding="utf-8")

        config = AppConfig.load(env_file)

        assert config.recognition.alias_factor == 0.75
        assert config.log_level == "DEBUG"

    def test_dictionary_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DICTIONARY_PATH", str(tmp_path / "terms.csv"))
        config = AppConfig()
        assert config.dictionary_path == Path(tmp_path / "terms.csv")


class TestGlobalConfig:
    """Test the global config singleton."""

    def test_set_and_get(self):
        config = AppConfig(ranking=RankingConfig(cache_size=3))
        set_config(config)
        assert get_config() is config
        assert get_config().ranking.cache_size == 3

    def test_summary_lists_env_names(self):
        buffer = io.StringIO()
        print_config_summary(AppConfig(), console=Console(file=buffer, width=200))
        out = buffer.getvalue()
        assert "RANKING_NOVELTY_WEIGHT" in out
        assert "RECOGNITION_BASE_CONFIDENCE" in out
