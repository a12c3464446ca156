"""Configuration management for Sage."""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124 Safari/537.36"
)


class FeatureFlags(BaseSettings):
    """Pipeline feature flags. All default off for safe rollout."""

    # Score page identity against the wanted product
    identity_gate: bool = Field(default=False, alias="SAGE_FEATURE_IDENTITY_GATE")
    # Try structured data before DOM extraction
    jsonld_first: bool = Field(default=False, alias="SAGE_FEATURE_JSONLD_FIRST")
    # Structural checks on top of looks_like_ingredients
    validator_v2: bool = Field(default=False, alias="SAGE_FEATURE_VALIDATOR_V2")
    # False = shadow mode (score is logged, never blocks)
    enforce_gate: bool = Field(default=False, alias="SAGE_ENFORCE_GATE")
    identity_threshold: float = Field(default=4.0, alias="SAGE_IDENTITY_THRESHOLD")

    def snapshot(self) -> dict[str, Any]:
        """Flag values for traces."""
        return {
            "identityGate": self.identity_gate,
            "jsonldFirst": self.jsonld_first,
            "validatorV2": self.validator_v2,
            "enforceGate": self.enforce_gate,
            "identityThreshold": self.identity_threshold,
        }


class LLMSettings(BaseSettings):
    """Chat-completions service used for cleaning, classification and matching."""

    api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    base_url: str = Field(default="https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    timeout: float = Field(default=30.0, alias="LLM_TIMEOUT")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


class FetchSettings(BaseSettings):
    """Candidate page fetching."""

    timeout: float = Field(default=15.0, alias="FETCH_TIMEOUT")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, alias="FETCH_USER_AGENT")
    max_concurrency: int = Field(default=6, alias="FETCH_MAX_CONCURRENCY")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Sub-settings
    flags: FeatureFlags = Field(default_factory=FeatureFlags)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    fetch: FetchSettings = Field(default_factory=FetchSettings)

    # Paths
    package_root: Path = Field(default_factory=lambda: Path(__file__).parent.parent)

    @property
    def data_dir(self) -> Path:
        """Get bundled data directory."""
        return self.package_root / "data"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@lru_cache()
def load_source_registry() -> dict[str, Any]:
    """Load host tier tables from YAML."""
    settings = get_settings()
    registry_path = settings.data_dir / "source_registry.yaml"

    with open(registry_path, encoding="utf-8") as f:
        return yaml.safe_load(f)
