"""Pydantic configuration models for Attune."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from shared_types import StreakRule

VALID_LLM_PROVIDERS = {"auto", "claude", "openai"}


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "auto"
    model: Optional[str] = None  # None = provider's cheap default
    api_key: Optional[str] = None
    max_tokens: int = 1500

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        if v not in VALID_LLM_PROVIDERS:
            raise ValueError(f"Invalid LLM provider: {v}. Must be one of {VALID_LLM_PROVIDERS}")
        return v


class PathsConfig(BaseModel):
    """File paths configuration."""

    data_dir: Path = Path("~/.attune")
    db_path: Path = Path("~/.attune/attune.db")
    log_file: Path = Path("~/.attune/attune.log")

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        self.data_dir = self.data_dir.expanduser()
        self.db_path = self.db_path.expanduser()
        self.log_file = self.log_file.expanduser()
        return self


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    json_logs: bool = Field(default=False, alias="json")

    model_config = {"populate_by_name": True}

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class ExtractionConfig(BaseModel):
    """Item extraction limits."""

    enabled: bool = True
    max_transcript_chars: int = 6000
    prior_context_chars: int = 400


class AmbiguityConfig(BaseModel):
    """When a check-in update must be confirmed by the user."""

    late_hour: int = 18
    confidence_min: float = 0.45
    confidence_max: float = 0.80
    materiality: float = 0.20

    @field_validator("late_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        if not 0 <= v <= 23:
            raise ValueError(f"late_hour must be 0-23, got {v}")
        return v

    @field_validator("confidence_min", "confidence_max", "materiality")
    @classmethod
    def validate_fraction(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"Value must be 0-1, got {v}")
        return v

    @model_validator(mode="after")
    def validate_band(self):
        if self.confidence_min > self.confidence_max:
            raise ValueError(
                f"confidence_min ({self.confidence_min}) must not exceed confidence_max ({self.confidence_max})"
            )
        return self


class MomentumConfig(BaseModel):
    """Streak and momentum settings."""

    streak_rule: StreakRule = StreakRule.CHECKINS
    lookback_days: int = 30

    @field_validator("lookback_days")
    @classmethod
    def validate_lookback(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"lookback_days must be positive, got {v}")
        return v


class AttuneConfig(BaseModel):
    """Main configuration model."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    ambiguity: AmbiguityConfig = Field(default_factory=AmbiguityConfig)
    momentum: MomentumConfig = Field(default_factory=MomentumConfig)

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand ${VAR} patterns in API keys."""
        if self.llm.api_key:
            key = self.llm.api_key
            if key.startswith("${") and key.endswith("}"):
                env_var = key[2:-1]
                self.llm.api_key = os.getenv(env_var, "")
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "AttuneConfig":
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")
