"""Configuration management for API discovery.

Supports YAML configuration files and environment variable overrides.
Configuration is loaded once and cached for performance.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.models import DiscoveryOptions


DEFAULT_DISCOVERY_URL = "https://discovery.googleapis.com/discovery/v1/apis"


class TransportSettings(BaseSettings):
    """HTTP transport configuration."""
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    retry_attempts: int = Field(default=3, ge=1, description="Attempts for connection-level failures")
    user_agent: str = Field(default="apidiscovery/0.1.0")

    model_config = SettingsConfigDict(
        env_prefix="DISCOVERY_TRANSPORT_",
        env_file=".env",
        extra="ignore"
    )


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)

    # Discovery
    discovery_url: str = Field(default=DEFAULT_DISCOVERY_URL)
    include_private: bool = Field(default=False)

    # Component settings
    transport: TransportSettings = Field(default_factory=TransportSettings)

    model_config = SettingsConfigDict(
        env_prefix="DISCOVERY_",
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        return cls(**load_yaml_config(path))

    def discovery_options(self) -> DiscoveryOptions:
        """Build the immutable options shared by every resolution call."""
        return DiscoveryOptions(include_private=self.include_private, debug=self.debug)


def load_yaml_config(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file."""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path) as f:
        return yaml.safe_load(f) or {}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("DISCOVERY_CONFIG_PATH", "config/settings.yaml")
    return Settings.from_yaml(config_path)
