"""Tests for config models and YAML loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from cli.config import get_paths, load_config_model
from cli.config_models import AmbiguityConfig, AttuneConfig, LLMConfig, LoggingConfig, MomentumConfig
from shared_types import StreakRule


class TestConfigModels:
    def test_defaults(self):
        config = AttuneConfig()
        assert config.llm.provider == "auto"
        assert config.ambiguity.late_hour == 18
        assert config.extraction.max_transcript_chars == 6000
        assert config.momentum.streak_rule == StreakRule.CHECKINS
        assert config.paths.db_path == Path("~/.attune/attune.db").expanduser()

    def test_invalid_provider(self):
        with pytest.raises(ValidationError):
            LLMConfig(provider="gemini")

    def test_log_level_normalised(self):
        assert LoggingConfig(level="debug").level == "DEBUG"
        with pytest.raises(ValidationError):
            LoggingConfig(level="chatty")

    def test_json_alias(self):
        assert LoggingConfig.model_validate({"json": True}).json_logs
        assert LoggingConfig(json_logs=True).json_logs

    def test_ambiguity_bounds(self):
        with pytest.raises(ValidationError):
            AmbiguityConfig(late_hour=24)
        with pytest.raises(ValidationError):
            AmbiguityConfig(materiality=1.5)
        with pytest.raises(ValidationError):
            AmbiguityConfig(confidence_min=0.9, confidence_max=0.5)

    def test_momentum(self):
        assert MomentumConfig(streak_rule="completion").streak_rule == StreakRule.COMPLETION
        with pytest.raises(ValidationError):
            MomentumConfig(lookback_days=0)

    def test_env_var_api_key(self, monkeypatch):
        monkeypatch.setenv("ATTUNE_TEST_KEY", "sk-from-env")
        config = AttuneConfig.from_dict({"llm": {"api_key": "${ATTUNE_TEST_KEY}"}})
        assert config.llm.api_key == "sk-from-env"

    def test_to_dict_roundtrip(self):
        config = AttuneConfig.from_dict({"ambiguity": {"late_hour": 20}})
        assert AttuneConfig.from_dict(config.to_dict()).ambiguity.late_hour == 20


class TestLoadConfig:
    def test_load_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "llm:\n  provider: claude\n"
            f"paths:\n  data_dir: {tmp_path}/data\n  db_path: {tmp_path}/data/a.db\n"
            "logging:\n  json: true\n"
            "momentum:\n  streak_rule: completion\n"
        )
        config = load_config_model(path)
        assert config.llm.provider == "claude"
        assert config.logging.json_logs
        assert config.momentum.streak_rule == StreakRule.COMPLETION

        paths = get_paths(config)
        assert paths["data_dir"].is_dir()
        assert paths["db_path"] == tmp_path / "data" / "a.db"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config_model(path).llm.provider == "auto"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("llm: [unclosed")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config_model(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("ambiguity:\n  late_hour: 30\n")
        with pytest.raises(ValueError, match="Config validation failed"):
            load_config_model(path)
