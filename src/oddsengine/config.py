"""Configuration management for oddsengine."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Process-level settings for oddsengine."""

    config_path: Path | None = Field(
        default=None,
        description="Base YAML file holding engine heuristics",
        alias="ODDSENGINE_CONFIG_PATH",
    )

    log_level: str = Field(
        default="WARNING",
        description="Log level used by the command line interface",
        alias="ODDSENGINE_LOG_LEVEL",
    )

    default_stake: float = Field(
        default=100.0,
        description="Stake used by the CLI when none is given",
        alias="ODDSENGINE_DEFAULT_STAKE",
    )

    volatility: str = Field(
        default="medium",
        description="Volatility requested from the simulation service",
        alias="ODDSENGINE_VOLATILITY",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global configuration instance
config = EngineSettings()


def get_config() -> EngineSettings:
    """Get the current configuration."""
    return config


def update_config(**kwargs) -> None:
    """Update configuration settings."""
    global config
    for key, value in kwargs.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            raise ValueError(f"Unknown configuration option: {key}")


def reset_config() -> None:
    """Reset configuration to defaults."""
    global config
    config = EngineSettings()
