"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from agora.services.quotes.config import QuoteConfig
from agora.settlement.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class SettlementConfig(BaseModel):
    """Settlement run parameters."""

    batch_size: int = Field(default=50, gt=0)  # Max games settled per run
    default_band_pct: float = Field(default=0.01, ge=0)  # Target band when a game sets none
    commit_timeout_seconds: float = Field(default=30.0, gt=0)
    games_collection: str = "community_games"
    participants_collection: str = "community_game_participants"


class SchedulerConfig(BaseModel):
    """Job scheduling intervals in minutes."""

    settle_interval_minutes: int = Field(default=15, gt=0)


class Settings(BaseSettings):
    """Main configuration class."""

    config_path: Path = Path("config.yaml")

    # Store credentials
    mongodb_url: str = ""
    mongodb_database: str = ""
    mongodb_server_selection_timeout_ms: int = 10000

    logfire_token: str = ""

    # Nested configuration sections
    settlement: SettlementConfig = Field(default_factory=SettlementConfig)
    quotes: QuoteConfig = Field(default_factory=QuoteConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("mongodb_url", "mongodb_database", mode="after")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()

    def require_store_credentials(self) -> None:
        """Raise ConfigurationError unless the store can be addressed."""
        missing = []
        if not self.mongodb_url:
            missing.append("MONGODB_URL")
        if not self.mongodb_database:
            missing.append("MONGODB_DATABASE")
        if missing:
            raise ConfigurationError(f"Missing {' or '.join(missing)}")

    def load_yaml_config(self) -> None:
        """Load and merge YAML configuration."""
        config_path = self.config_path

        if not config_path.exists():
            logger.debug(f"Config file not found: {config_path}. Using defaults.")
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)

            if not yaml_config:
                logger.warning(f"Empty config file: {config_path}")
                return

            for section_name in ["settlement", "quotes", "scheduler"]:
                if section_name in yaml_config:
                    section = getattr(self, section_name)
                    yaml_section = yaml_config[section_name]

                    section_dict = section.model_dump()
                    section_dict.update(yaml_section)

                    new_section = section.__class__(**section_dict)
                    setattr(self, section_name, new_section)

            logger.info(f"Loaded configuration from {config_path}")

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise


@lru_cache()
def get_settings() -> Settings:
    """Get singleton Settings instance."""
    settings = Settings()
    settings.load_yaml_config()
    return settings
