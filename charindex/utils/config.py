"""Configuration management using Pydantic for validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

RESOURCES_DIR = Path(__file__).resolve().parent.parent / "resources"


class LexiconConfig(BaseSettings):
    """Word lists used by extraction, grouping and tiering."""

    stopwords_file: Path = RESOURCES_DIR / "stopwords.yaml"
    title_patterns_file: Path = RESOURCES_DIR / "title_patterns.yaml"


class GroupingConfig(BaseSettings):
    """Variant grouping configuration."""

    min_mentions: int = Field(default=3, ge=1)
    # Capped at min_mentions so a lower group floor also admits rarer anchors
    min_anchor_mentions: int = Field(default=3, ge=1)
    both_parts_ratio: float = Field(default=10.0, gt=0)

    @property
    def anchor_floor(self) -> int:
        return min(self.min_anchor_mentions, self.min_mentions)


class JunkFilterConfig(BaseSettings):
    """Junk filter thresholds."""

    max_sentence_start_ratio: float = Field(default=0.5, ge=0.0, le=1.0)
    min_mentions_for_ratio: int = 5
    truncated_prefix_min_groups: int = 3
    list_separation_max_mentions: int = 10
    list_separation_min_occurrences: int = 3
    high_frequency_max_mentions: int = 30
    high_frequency_min_word_mentions: int = 40


class TierConfig(BaseSettings):
    """Tier classification thresholds."""

    min_candidate_mentions: int = Field(default=8, ge=0)
    min_possessive_for_confirm: int = 5
    min_mentions_for_possessive_confirm: int = 20
    min_independent_part_mentions: int = 10
    high_frequency_note_mentions: int = 50


class LLMConfig(BaseSettings):
    """LLM configuration."""

    provider: Literal["openai", "anthropic"] = "anthropic"
    model: str = "claude-3-5-haiku-20241022"
    temperature: float = 0.3
    max_tokens: int = 1024
    timeout: int = 60
    base_url: str | None = None

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        """Validate temperature is between 0 and 1."""
        if not 0 <= v <= 1:
            raise ValueError("Temperature must be between 0 and 1")
        return v


class CorefConfig(BaseSettings):
    """Co-reference merge configuration."""

    enabled: bool = True
    prompts_file: Path = RESOURCES_DIR / "coref_prompts.yaml"
    llm: LLMConfig = Field(default_factory=LLMConfig)


class SnippetConfig(BaseSettings):
    """Snippet extraction configuration."""

    context_sentences: int = Field(default=1, ge=0)
    max_sentence_gap: int = Field(default=2, ge=0)
    include_candidates: bool = False


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["json", "text"] = "text"
    file: str | None = None
    max_size_mb: int = 100
    backup_count: int = 5


class Config(BaseSettings):
    """Main configuration class."""

    model_config = SettingsConfigDict(
        env_prefix="CHARINDEX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    lexicon: LexiconConfig = Field(default_factory=LexiconConfig)
    grouping: GroupingConfig = Field(default_factory=GroupingConfig)
    junk_filter: JunkFilterConfig = Field(default_factory=JunkFilterConfig)
    tiers: TierConfig = Field(default_factory=TierConfig)
    coref: CorefConfig = Field(default_factory=CorefConfig)
    snippets: SnippetConfig = Field(default_factory=SnippetConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @staticmethod
    def _deep_merge_dict(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Deep-merge two dicts (overrides win).

        This is used to apply environment-derived overrides on top of YAML defaults.
        """
        merged: Dict[str, Any] = dict(base)
        for key, value in overrides.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge_dict(merged[key], value)
            else:
                merged[key] = value
        return merged

    @classmethod
    def from_yaml(cls, yaml_path: str | Path = "config/config.yaml") -> "Config":
        """Load configuration from YAML file and environment variables.

        Precedence (highest to lowest):
        1) Environment variables / .env
        2) YAML file
        3) Model defaults

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ValueError: If the YAML root is not a mapping
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        if not isinstance(yaml_config, dict):
            raise ValueError(f"YAML config root must be a mapping/dict: {yaml_path}")

        env_overrides = cls().model_dump(exclude_defaults=True)
        merged = cls._deep_merge_dict(yaml_config, env_overrides)

        return cls(**merged)


def load_config(yaml_path: str | Path | None = None) -> Config:
    """Load configuration from YAML, or fall back to defaults + environment."""
    if yaml_path is None:
        return Config()
    return Config.from_yaml(yaml_path)
